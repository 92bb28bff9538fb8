"""
scroll.py

Offset arithmetic behind the viewer's scroll controls. Kept free of Tk so the
key, wheel, slider and entry behaviour can be checked without a display.
"""

from .config import parse_number
from .source import clamp

WHEEL_NOTCH = 120


def move(offset: int, delta: int, max_offset: int) -> int:
    """Shift ``offset`` by ``delta`` bytes, clamped to ``[0, max_offset]``."""
    return clamp(int(offset) + int(delta), 0, max_offset)


def page_step(capacity: int) -> int:
    """PgUp/PgDn distance: 2/3 of the buffered window, at least one byte."""
    return max(1, capacity * 2 // 3)


def wheel_row(canvas_width: int, capacity: int) -> int:
    """One drawn row, never more than the whole window."""
    return max(1, min(canvas_width, capacity))


def wheel_step(delta, num, row: int) -> int:
    """Signed byte distance for one wheel event.

    ``delta`` is the Windows/macOS wheel delta (positive = up); on X11 it is 0
    and ``num`` is 4 (up) or 5 (down). Large deltas move three rows.
    """
    if not delta:
        # Button-4 up, Button-5 down
        delta = WHEEL_NOTCH if num == 4 else -WHEEL_NOTCH if num == 5 else 0
    if delta == 0:
        return 0
    step_rows = 3 if abs(delta) > WHEEL_NOTCH else 1
    direction = -1 if delta > 0 else +1
    return direction * step_rows * row


def scale_offset(value, max_offset: int) -> int:
    """Slider position (Tk hands it over as a float string) to a byte offset."""
    return clamp(int(float(value)), 0, max_offset)


def parse_offset(text: str) -> int:
    """Offset typed into the entry: decimal or 0x hex, never negative."""
    v = parse_number(text)
    if v < 0:
        raise ValueError(f"negative offset {v}")
    return v
