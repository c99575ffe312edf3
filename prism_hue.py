# -*- coding: utf-8 -*-
"""
Prism: Perceptual color conversion and difference metrics
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Circular hue arithmetic shared by LCh, Oklch and CIEDE2000.

All angles are in degrees.  Every formula that needs a hue difference or a
hue mean goes through these kernels so the wraparound rule lives in one
place.
"""

from typing import Final

import numpy as np
from numba import njit

__all__ = [
    "ACHROMATIC_CHROMA",
    "HALF_TURN_TOLERANCE",
    "DEG2RAD",
    "RAD2DEG",
    "normalize_hue",
    "hue_difference",
    "mean_hue",
    "hue_from_ab",
]

# Chroma at or below which a color is treated as achromatic (hue := 0).
ACHROMATIC_CHROMA: Final[float] = 1e-7

# Slack for deciding whether two hues are exactly a half-turn apart.
HALF_TURN_TOLERANCE: Final[float] = 1e-9

DEG2RAD: Final[float] = np.pi / 180.0
RAD2DEG: Final[float] = 180.0 / np.pi


@njit(cache=True, error_model="numpy")
def normalize_hue(h: float) -> float:
    """Wraps an angle into [0, 360)."""
    wrapped = h % 360.0
    # A tiny negative input rounds to exactly 360.0 under the modulo.
    if wrapped >= 360.0:
        wrapped = 0.0
    return wrapped


@njit(cache=True, error_model="numpy")
def hue_difference(h1: float, h2: float) -> float:
    """
    Signed difference ``h2 - h1`` along the shorter arc.

    Result lies in [-180, 180].  An exact half-turn keeps the sign of the
    raw difference, matching the CIEDE2000 reference implementation.
    """
    d = normalize_hue(h2) - normalize_hue(h1)
    if d > 180.0:
        d -= 360.0
    elif d < -180.0:
        d += 360.0
    return d


@njit(cache=True, error_model="numpy")
def mean_hue(h1: float, h2: float) -> float:
    """
    Circular mean of two hues.

    When the hues are more than a half-turn apart the mean is taken across
    the 0/360 seam, so mean_hue(350, 10) == 0 rather than 180.  Hues an
    exact half-turn apart (up to rounding in the inputs) are averaged
    directly.
    """
    n1 = normalize_hue(h1)
    n2 = normalize_hue(h2)
    h_sum = n1 + n2
    if abs(n1 - n2) <= 180.0 + HALF_TURN_TOLERANCE:
        return h_sum * 0.5
    if h_sum < 360.0:
        return (h_sum + 360.0) * 0.5
    return (h_sum - 360.0) * 0.5


@njit(cache=True, error_model="numpy")
def hue_from_ab(a: float, b: float) -> float:
    """Hue angle of the (a, b) plane in [0, 360); 0 for achromatic input."""
    if np.hypot(a, b) <= ACHROMATIC_CHROMA:
        return 0.0
    return normalize_hue(np.arctan2(b, a) * RAD2DEG)
