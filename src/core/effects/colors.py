from __future__ import annotations

from typing import Tuple

Color = Tuple[int, int, int]

OFF: Color = (0, 0, 0)


def clamp01(x: float) -> float:
    return 0.0 if x <= 0.0 else (1.0 if x >= 1.0 else x)


def mix(a: Color, b: Color, t: float) -> Color:
    """Interpolate from *a* (t=0) to *b* (t=1)."""
    tt = clamp01(t)
    return (
        int(round(a[0] + (b[0] - a[0]) * tt)),
        int(round(a[1] + (b[1] - a[1]) * tt)),
        int(round(a[2] + (b[2] - a[2]) * tt)),
    )

