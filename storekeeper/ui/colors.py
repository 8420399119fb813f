"""Board palette and color utilities for the UI."""

from storekeeper.core.grid import Cell


class BoardColors:
    """Flat palette used to paint cells; no sprite sheets."""

    BACKGROUND = "#1e2a2a"
    FLOOR = "#2f3d3d"

    WALL = "#8d6e63"
    WALL_EDGE = "#5d4037"

    GOAL = "#ffb74d"
    BOX = "#c58b3a"
    BOX_EDGE = "#7a5224"
    BOX_ON_GOAL = "#69f0ae"

    WORKER = "#4fb3bf"
    WORKER_EYE = "#e0f7fa"

    TEXT_PRIMARY = "#f0f0f0"
    TEXT_ACCENT = "#32e600"
    TEXT_MUTED = "#78909c"


CELL_COLORS = {
    Cell.WALL: BoardColors.WALL,
    Cell.GOAL: BoardColors.GOAL,
    Cell.BOX: BoardColors.BOX,
    Cell.BOX_ON_GOAL: BoardColors.BOX_ON_GOAL,
}


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    try:
        a = a.strip()
        b = b.strip()
        if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
            return a
        t = max(0.0, min(1.0, float(t)))
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
        r = int(ar + (br - ar) * t)
        g = int(ag + (bg - ag) * t)
        bl = int(ab + (bb - ab) * t)
        return f"#{r:02X}{g:02X}{bl:02X}"
    except ValueError:
        return a
