"""Theme colors and color utilities for the UI."""

import string
from typing import Optional, Tuple


class Palette:
    """Minimal dark theme."""

    BG = "#14161a"
    SURFACE = "#1d2026"
    BORDER = "#2a2e36"

    PRIMARY = "#e2b714"
    PRIMARY_DARK = "#9c7f0e"

    TEXT_PRIMARY = "#d1d0c5"
    TEXT_MUTED = "#646669"

    CORRECT = "#d1d0c5"
    INCORRECT = "#ca4754"
    CARET_BG = "#d1d0c5"
    CARET_FG = "#14161a"

    SYNC_OK = "#69f0ae"
    SYNC_FAILED = "#ca4754"


def _rgb(color: str) -> Optional[Tuple[int, int, int]]:
    """Channels of a #RRGGBB string, or None if it is not one."""
    digits = color[1:]
    if len(color) != 7 or color[0] != "#" or any(c not in string.hexdigits for c in digits):
        return None
    value = int(digits, 16)
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def blend_hex(a: str, b: str, t: float) -> str:
    """Linear mix of two #RRGGBB colors (t=0 gives a, t=1 gives b); a is returned as-is if either is malformed."""
    a = a.strip()
    start, end = _rgb(a), _rgb(b.strip())
    if start is None or end is None:
        return a
    t = max(0.0, min(1.0, float(t)))
    mixed = (int(lo + (hi - lo) * t) for lo, hi in zip(start, end))
    return "#" + "".join(f"{channel:02X}" for channel in mixed)


def progress_color(progress: int) -> str:
    """Progress bar fill: muted at 0%, primary at 100%."""
    return blend_hex(Palette.TEXT_MUTED, Palette.PRIMARY, progress / 100.0)
