"""Decay curves for key fades.

A curve maps fade progress t in [0, 1] to an intensity weight in [0, 1]. Every
curve is 1 at t=0, 0 at t=1 and never increases in between, so a fading key
never brightens.
"""

from __future__ import annotations

import math
from typing import Callable, Dict

DecayCurve = Callable[[float], float]

# Steepness of the exponential curve; higher drops faster early on.
EXPONENTIAL_K = 5.0


def linear(t: float) -> float:
    if t <= 0.0:
        return 1.0
    if t >= 1.0:
        return 0.0
    return 1.0 - t


def exponential(t: float, *, k: float = EXPONENTIAL_K) -> float:
    # Plain e^(-kt) never reaches 0; rescale so the fade ends exactly at t=1.
    if t <= 0.0:
        return 1.0
    if t >= 1.0:
        return 0.0
    floor = math.exp(-k)
    return (math.exp(-k * t) - floor) / (1.0 - floor)


CURVES: Dict[str, DecayCurve] = {
    "linear": linear,
    "exponential": exponential,
}


def get_curve(name: str) -> DecayCurve:
    try:
        return CURVES[str(name).strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown decay curve: {name}. Valid: {', '.join(CURVES)}") from None
