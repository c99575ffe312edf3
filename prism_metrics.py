# -*- coding: utf-8 -*-
"""
Prism: Perceptual color conversion and difference metrics
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Color Difference Metrics
========================
Scalar distance formulas between two colors of the same space:

    weighted_euclidean   Rgb   caller-supplied channel weights
    delta_E_76           Lab   plain Euclidean distance
    delta_E_94           Lab   CIE 116-1995, asymmetric (first color is the reference)
    delta_E_2000         Lab   CIE 142-2001, symmetric

Inputs are never converted; pass values already expressed in the space the
metric expects.

References:
    - CIE 116-1995 "Industrial colour-difference evaluation"
    - Sharma, G., Wu, W., Dalal, E. N. (2005). "The CIEDE2000 color-difference
      formula: Implementation notes, supplementary test data, and
      mathematical observations".
"""

from __future__ import annotations

import warnings
from typing import Final, Sequence, Tuple

import numpy as np
from numba import float64, njit

from prism_hue import ACHROMATIC_CHROMA, DEG2RAD, hue_difference, hue_from_ab, mean_hue
from prism_spaces import Lab, Rgb, as_components

__all__ = [
    "C25_7",
    "REDMEAN_WEIGHTS_HIGH",
    "REDMEAN_WEIGHTS_LOW",
    "ColorMetrics",
]

# 25^7, shared by the CIEDE2000 G factor and rotation term.
C25_7: Final[float] = 25.0**7

# Red-mean channel weights; "high" applies when the mean red exceeds 0.5.
REDMEAN_WEIGHTS_HIGH: Final[Tuple[float, float, float]] = (3.0, 4.0, 2.0)
REDMEAN_WEIGHTS_LOW: Final[Tuple[float, float, float]] = (2.0, 4.0, 3.0)


# =============================================================================
# 1. KERNELS (Numba)
# =============================================================================

@njit(cache=True, error_model="numpy")
def _weighted_euclidean_kernel(r1: float, g1: float, b1: float,
                               r2: float, g2: float, b2: float,
                               wr: float, wg: float, wb: float) -> float:
    dr = r1 - r2
    dg = g1 - g2
    db = b1 - b2
    return np.sqrt(wr * dr * dr + wg * dg * dg + wb * db * db)


@njit(cache=True, error_model="numpy")
def _delta_e_76_kernel(L1: float, a1: float, b1: float, L2: float, a2: float, b2: float) -> float:
    dL = L1 - L2
    da = a1 - a2
    db = b1 - b2
    return np.sqrt(dL * dL + da * da + db * db)


@njit(cache=True, error_model="numpy")
def _delta_e_94_kernel(L1: float, a1: float, b1: float, L2: float, a2: float, b2: float,
                       k_L: float, k_C: float, k_H: float, K1: float, K2: float) -> float:
    """
    CIE 1994 Delta E (CIE Publication 116-1995).

    The weighting functions use the *reference* chroma C1 only, making the
    metric asymmetric.
    """
    dL = L1 - L2
    C1 = np.hypot(a1, b1)
    C2 = np.hypot(a2, b2)
    dC = C1 - C2

    da = a1 - a2
    db = b1 - b2
    # dH² = da² + db² - dC²  (can be negative due to FP noise → clamp)
    dH_sq = da * da + db * db - dC * dC
    if dH_sq < 0.0:
        dH_sq = 0.0

    SL = 1.0
    SC = 1.0 + K1 * C1
    SH = 1.0 + K2 * C1

    term_L = dL / (k_L * SL)
    term_C = dC / (k_C * SC)
    term_H_sq = dH_sq / ((k_H * SH) * (k_H * SH))

    return np.sqrt(term_L * term_L + term_C * term_C + term_H_sq)


@njit(float64(float64, float64, float64, float64, float64, float64, float64, float64, float64),
      cache=True, error_model="numpy")
def _delta_e_2000_kernel(L1: float, a1: float, b1: float, L2: float, a2: float, b2: float,
                         k_L: float, k_C: float, k_H: float) -> float:
    """Single-pair CIEDE2000 with parametric factors."""
    # G factor rescales a* near the neutral axis
    C1 = np.hypot(a1, b1)
    C2 = np.hypot(a2, b2)
    C_bar = (C1 + C2) * 0.5
    C_bar_7 = C_bar**7
    G = 0.5 * (1.0 - np.sqrt(C_bar_7 / (C_bar_7 + C25_7)))
    scale = 1.0 + G
    a1_p = scale * a1
    a2_p = scale * a2
    C1_p = np.hypot(a1_p, b1)
    C2_p = np.hypot(a2_p, b2)
    h1_p = hue_from_ab(a1_p, b1)
    h2_p = hue_from_ab(a2_p, b2)

    achromatic = C1_p <= ACHROMATIC_CHROMA or C2_p <= ACHROMATIC_CHROMA

    dL_p = L2 - L1
    dC_p = C2_p - C1_p
    dh_p = 0.0 if achromatic else hue_difference(h1_p, h2_p)
    dH_p = 2.0 * np.sqrt(C1_p * C2_p) * np.sin((dh_p * DEG2RAD) * 0.5)

    L_bar_p = (L1 + L2) * 0.5
    C_bar_p = (C1_p + C2_p) * 0.5
    # One side achromatic: its hue is 0, so the sum is the other hue.
    h_bar_p = h1_p + h2_p if achromatic else mean_hue(h1_p, h2_p)

    T = 1.0 - 0.17 * np.cos((h_bar_p - 30.0) * DEG2RAD) + \
        0.24 * np.cos((2.0 * h_bar_p) * DEG2RAD) + \
        0.32 * np.cos((3.0 * h_bar_p + 6.0) * DEG2RAD) - \
        0.20 * np.cos((4.0 * h_bar_p - 63.0) * DEG2RAD)
    d_theta = 30.0 * np.exp(-((h_bar_p - 275.0) / 25.0)**2)
    C_bar_p_7 = C_bar_p**7
    RC = 2.0 * np.sqrt(C_bar_p_7 / (C_bar_p_7 + C25_7))
    RT = -np.sin((2.0 * d_theta) * DEG2RAD) * RC

    L_term = (L_bar_p - 50.0)**2
    SL = 1.0 + (0.015 * L_term) / np.sqrt(20.0 + L_term)
    SC = 1.0 + 0.045 * C_bar_p
    SH = 1.0 + 0.015 * C_bar_p * T

    term_L = dL_p / (k_L * SL)
    term_C = dC_p / (k_C * SC)
    term_H = dH_p / (k_H * SH)
    return np.sqrt(term_L * term_L + term_C * term_C + term_H * term_H + RT * term_C * term_H)


# =============================================================================
# 2. PUBLIC API
# =============================================================================

class ColorMetrics:
    """Static namespace for the color difference formulas."""

    @staticmethod
    def redmean_weights(rgb_a: Sequence[float], rgb_b: Sequence[float]) -> Tuple[float, float, float]:
        """
        Red-mean channel weights for ``weighted_euclidean``.

        A cheap approximation of perceptual RGB distance: green always
        dominates, and red or blue gets the larger share depending on how
        red the pair is on average.

        Returns:
            (3, 4, 2) if the mean red exceeds 0.5, else (2, 4, 3).
        """
        r1 = as_components(rgb_a, Rgb)[0]
        r2 = as_components(rgb_b, Rgb)[0]
        if (r1 + r2) * 0.5 > 0.5:
            return REDMEAN_WEIGHTS_HIGH
        return REDMEAN_WEIGHTS_LOW

    @staticmethod
    def weighted_euclidean(rgb_a: Sequence[float], rgb_b: Sequence[float],
                           weights: Sequence[float]) -> float:
        """
        Weighted Euclidean distance between two sRGB colors.

        Args:
            rgb_a: First color (Rgb or untagged 3-sequence).
            rgb_b: Second color.
            weights: Non-negative (wr, wg, wb).  There is no default; use
                ``(1, 1, 1)`` for the plain distance or ``redmean_weights``.

        Returns:
            sqrt(wr*dr^2 + wg*dg^2 + wb*db^2).

        Raises:
            ValueError: If ``weights`` is not three long or has a negative entry.
        """
        if len(weights) != 3:
            raise ValueError(f"Expected 3 channel weights, got {len(weights)}")
        wr, wg, wb = (float(w) for w in weights)
        if wr < 0.0 or wg < 0.0 or wb < 0.0:
            raise ValueError(f"Channel weights must be non-negative, got {tuple(weights)}")
        if wr == 0.0 and wg == 0.0 and wb == 0.0:
            warnings.warn("All channel weights are zero; every distance will be 0.", stacklevel=2)

        c1 = as_components(rgb_a, Rgb)
        c2 = as_components(rgb_b, Rgb)
        return float(_weighted_euclidean_kernel(*c1, *c2, wr, wg, wb))

    @staticmethod
    def delta_E_76(lab1: Sequence[float], lab2: Sequence[float]) -> float:
        """
        Calculates CIE Delta E 1976 (Euclidean distance in Lab).

        Args:
            lab1: Reference color.
            lab2: Sample color.
        """
        return float(_delta_e_76_kernel(*as_components(lab1, Lab), *as_components(lab2, Lab)))

    @staticmethod
    def delta_E_94(lab1: Sequence[float], lab2: Sequence[float],
                   textiles: bool = False,
                   k_L: float = 1.0, k_C: float = 1.0, k_H: float = 1.0,
                   K1: float = 0.045, K2: float = 0.015) -> float:
        """
        Calculates CIE 1994 Color Difference (CIE Publication 116-1995).

        Note: This metric is **asymmetric**: lab1 is the *reference* and lab2
        is the *sample*.  Swapping them may give a different result.

        Args:
            lab1: Reference color.
            lab2: Sample color.
            textiles: If True, overrides k_L=2.0, K1=0.048, K2=0.014
                      (textile industry parameters).
            k_L: Lightness parametric factor (default 1.0 for graphic arts).
            k_C: Chroma parametric factor (default 1.0).
            k_H: Hue parametric factor (default 1.0).
            K1: Chroma weighting constant (default 0.045 for graphic arts).
            K2: Hue weighting constant (default 0.015 for graphic arts).
        """
        if textiles:
            k_L, K1, K2 = 2.0, 0.048, 0.014
        return float(_delta_e_94_kernel(
            *as_components(lab1, Lab), *as_components(lab2, Lab),
            float(k_L), float(k_C), float(k_H), float(K1), float(K2),
        ))

    @staticmethod
    def delta_E_2000(lab1: Sequence[float], lab2: Sequence[float],
                     k_L: float = 1.0, k_C: float = 1.0, k_H: float = 1.0,
                     textiles: bool = False) -> float:
        """
        Calculates CIEDE2000 Color Difference.

        Args:
            lab1: Reference color.
            lab2: Sample color.
            k_L: Parametric lightness weight (default 1.0).
            k_C: Parametric chroma weight (default 1.0).
            k_H: Parametric hue weight (default 1.0).
            textiles: If True, overrides k_L=2.0, k_C=1.0, k_H=1.0 as per
                      CIE recommendation for textile applications.
        """
        if textiles:
            k_L, k_C, k_H = 2.0, 1.0, 1.0
        return float(_delta_e_2000_kernel(
            *as_components(lab1, Lab), *as_components(lab2, Lab),
            float(k_L), float(k_C), float(k_H),
        ))
