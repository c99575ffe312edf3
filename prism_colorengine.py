# -*- coding: utf-8 -*-
"""
Prism: Perceptual color conversion and difference metrics
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Color Conversion Engine
=======================
Scalar, JIT-compiled conversions between the color spaces of ``prism_spaces``:

    Rgb <-> Hsl
    Rgb <-> XyzD65 <-> XyzD50 <-> Lab <-> Lch
            XyzD65 <-> Oklab <-> Oklch

Every edge is a pair of pure functions on three floats.  Conversions are
never composed implicitly; callers build a path themselves, either step by
step or through ``chain`` with one of the predefined ``*_TO_*`` paths:

    >>> chain(Rgb(1.0, 0.0, 0.0), *RGB_TO_LAB)
    Lab(l=54.29..., a=80.80..., b=69.89...)

Design:
1. Exactness: CIE constants are defined as exact rationals, and every inverse
   matrix is derived from its forward matrix with ``numpy.linalg.inv`` so
   round trips hold to machine precision.
2. Strict IEEE: kernels are compiled with ``fastmath=False`` and the NumPy
   error model, so NaN and infinity propagate instead of raising.
3. No allocation: kernels take and return plain float tuples.

References:
    - CIE 15:2004 "Colorimetry"
    - IEC 61966-2-1:1999 (sRGB Standard)
    - Lindbloom, B. "Chromatic Adaptation" (Bradford method)
    - Ottosson, B. (2020). "A perceptual color space for image processing".
"""

from __future__ import annotations

import functools
import logging
import math
from typing import Callable, Final, Sequence, Tuple, TypeAlias, Union

import numpy as np
import numpy.typing as npt
from numba import njit

from prism_hue import DEG2RAD, hue_from_ab, normalize_hue
from prism_spaces import (
    D50_WHITE,
    D65_WHITE,
    ColorTuple,
    Components,
    Hsl,
    Lab,
    Lch,
    Oklab,
    Oklch,
    Rgb,
    XyzD50,
    XyzD65,
    handle_space,
)

__all__ = [
    # --- Type Aliases ---
    "ArrayFloat",

    # --- Constants ---
    "LAB_EPSILON",
    "LAB_KAPPA",
    "SRGB_DECODE_THRESHOLD",
    "SRGB_ENCODE_THRESHOLD",

    # --- Matrices ---
    "M_SRGB_TO_XYZ",
    "M_XYZ_TO_SRGB",
    "M_BRADFORD",
    "M_XYZ_D65_TO_D50",
    "M_XYZ_D50_TO_D65",
    "M1_XYZ_TO_LMS_OKLAB",
    "M1_LMS_TO_XYZ_OKLAB",
    "M2_LMS_TO_LAB_OKLAB",
    "M2_LAB_TO_LMS_OKLAB",

    # --- Transfer functions ---
    "srgb_to_linear",
    "linear_to_srgb",
    "lab_f",
    "lab_f_inv",

    # --- Classes ---
    "ColorSpaceEngine",
    "ChromaticAdaptation",

    # --- Chaining ---
    "chain",
    "RGB_TO_LAB",
    "LAB_TO_RGB",
    "RGB_TO_LCH",
    "LCH_TO_RGB",
    "RGB_TO_OKLAB",
    "OKLAB_TO_RGB",
    "RGB_TO_OKLCH",
    "OKLCH_TO_RGB",
]

logger = logging.getLogger(__name__)

# --- Type Aliases ---
ArrayFloat: TypeAlias = npt.NDArray[np.float64]
Conversion: TypeAlias = Callable[[Sequence[float]], ColorTuple]


def _frozen(m: ArrayFloat) -> ArrayFloat:
    m.setflags(write=False)
    return m


def _derive_inverse(m: ArrayFloat, label: str) -> ArrayFloat:
    """Inverts a fixed 3x3 matrix and logs how close the pair is to identity."""
    inv = np.linalg.inv(m)
    residual = float(np.max(np.abs(m @ inv - np.eye(3))))
    logger.debug("%s inverse residual: %.3e", label, residual)
    return _frozen(inv)


# --- Exact Rational Math Constants ---
# Defined by CIE 15:2004 for the Lab transformation.
# delta = 6/29 is the threshold where f(t) switches from cube root to linear.
_LAB_DELTA: Final[float] = 6.0 / 29.0
LAB_EPSILON: Final[float] = 216.0 / 24389.0  # (6/29)^3 ~0.008856
LAB_KAPPA: Final[float] = 24389.0 / 27.0     # (29/3)^3 ~903.296

# IEC 61966-2-1 transfer function breakpoints.
SRGB_DECODE_THRESHOLD: Final[float] = 0.04045
SRGB_ENCODE_THRESHOLD: Final[float] = 0.0031308

# Reference whites as arrays for the kernels.
_D50: Final[ArrayFloat] = _frozen(np.array(D50_WHITE, dtype=np.float64))

# --- Matrices (column-vector convention: out = M @ [x, y, z]) ---

# sRGB primaries with the D65 white above; high-precision derivation so
# Rgb(1, 1, 1) lands on D65_WHITE.
M_SRGB_TO_XYZ: Final[ArrayFloat] = _frozen(np.array([
    [0.41239079926595934, 0.357584339383878,   0.1804807884018343 ],
    [0.21263900587151027, 0.715168678767756,   0.07219231536073371],
    [0.01933081871559182, 0.11919477979462598, 0.9505321522496607 ],
], dtype=np.float64))
M_XYZ_TO_SRGB: Final[ArrayFloat] = _derive_inverse(M_SRGB_TO_XYZ, "sRGB")

# Oklab, XYZ (D65) oriented.
# M1: XYZ to cone response (LMS), fitted to the D65 white above.
M1_XYZ_TO_LMS_OKLAB: Final[ArrayFloat] = _frozen(np.array([
    [0.819022443216431900, 0.36190625628012210, -0.12887378261216414],
    [0.032983667198027100, 0.92928684689655460,  0.03614466816999844],
    [0.048177199566046255, 0.26423952494422764,  0.63354782581369370],
], dtype=np.float64))
M1_LMS_TO_XYZ_OKLAB: Final[ArrayFloat] = _derive_inverse(M1_XYZ_TO_LMS_OKLAB, "Oklab M1")

# M2: non-linear LMS (cube root) to Oklab.
M2_LMS_TO_LAB_OKLAB: Final[ArrayFloat] = _frozen(np.array([
    [0.2104542553,  0.7936177850, -0.0040720468],
    [1.9779984951, -2.4285922050,  0.4505937099],
    [0.0259040371,  0.7827717662, -0.8086757660],
], dtype=np.float64))
M2_LAB_TO_LMS_OKLAB: Final[ArrayFloat] = _derive_inverse(M2_LMS_TO_LAB_OKLAB, "Oklab M2")

# Bradford Adaptation
# Transforms XYZ to "sharpened" cone responses for gain application.
M_BRADFORD: Final[ArrayFloat] = _frozen(np.array([
    [ 0.8951000,  0.2664000, -0.1614000],
    [-0.7502000,  1.7135000,  0.0367000],
    [ 0.0389000, -0.0685000,  1.0296000],
], dtype=np.float64))
_M_BRADFORD_INV: Final[ArrayFloat] = _derive_inverse(M_BRADFORD, "Bradford")


def _to_hashable(obj: Union[ArrayFloat, Sequence[float]]) -> Tuple[float, ...]:
    """Helper to ensure inputs are hashable tuples for caching."""
    if isinstance(obj, np.ndarray):
        return tuple(float(v) for v in obj.ravel())
    return tuple(float(v) for v in obj)


@functools.lru_cache(maxsize=16)
def _get_cached_bradford_matrix(src_white_tuple: Tuple[float, ...], dst_white_tuple: Tuple[float, ...]) -> ArrayFloat:
    """
    Cached worker for calculating the Bradford matrix.

    Derivation:
    M_composite = M_inv @ Gain @ M
    """
    src = np.array(src_white_tuple, dtype=np.float64)
    dst = np.array(dst_white_tuple, dtype=np.float64)

    # 1. Convert Source XYZ -> LMS (Cone Response)
    src_lms = M_BRADFORD @ src
    dst_lms = M_BRADFORD @ dst

    # 2. Compute Gain Factors (Von Kries)
    # Prevent divide-by-zero for extremely dark white points
    src_lms = np.where(np.abs(src_lms) < 1e-12, 1e-12, src_lms)
    gains = dst_lms / src_lms

    # 3. Back to XYZ
    return _frozen(_M_BRADFORD_INV @ np.diag(gains) @ M_BRADFORD)


M_XYZ_D65_TO_D50: Final[ArrayFloat] = _get_cached_bradford_matrix(
    _to_hashable(D65_WHITE), _to_hashable(D50_WHITE)
)
M_XYZ_D50_TO_D65: Final[ArrayFloat] = _derive_inverse(M_XYZ_D65_TO_D50, "Bradford D65->D50")


# =============================================================================
# 1. LOW-LEVEL MATH KERNELS (Numba)
# =============================================================================

@njit(cache=True, error_model="numpy")
def _apply_matrix(m: ArrayFloat, x: float, y: float, z: float) -> Components:
    """3x3 matrix times column vector, without allocating."""
    return (
        m[0, 0] * x + m[0, 1] * y + m[0, 2] * z,
        m[1, 0] * x + m[1, 1] * y + m[1, 2] * z,
        m[2, 0] * x + m[2, 1] * y + m[2, 2] * z,
    )


@njit(cache=True, error_model="numpy")
def srgb_to_linear(v: float) -> float:
    """
    Applies the sRGB EOTF (gamma decoding) to one channel.

    Standard: IEC 61966-2-1.  Negative (HDR) values mirror the curve.
    """
    mag = abs(v)
    if mag <= SRGB_DECODE_THRESHOLD:
        lin = mag / 12.92
    else:
        lin = ((mag + 0.055) / 1.055) ** 2.4
    return math.copysign(lin, v)


@njit(cache=True, error_model="numpy")
def linear_to_srgb(v: float) -> float:
    """
    Applies the sRGB OETF (gamma encoding) to one channel.

    Standard: IEC 61966-2-1.  Negative (HDR) values mirror the curve.
    """
    mag = abs(v)
    # IEC 61966-2-1 defines the slope as exactly 12.92
    if mag <= SRGB_ENCODE_THRESHOLD:
        enc = 12.92 * mag
    else:
        enc = 1.055 * (mag ** (1.0 / 2.4)) - 0.055
    return math.copysign(enc, v)


@njit(cache=True, error_model="numpy")
def lab_f(t: float) -> float:
    """
    Non-linear transfer function f(t) for CIELAB.

    Cube root above LAB_EPSILON, linear slope below it.  With the exact
    rational constants both the value and the slope are continuous at the
    threshold.
    """
    if t > LAB_EPSILON:
        return t ** (1.0 / 3.0)
    return (LAB_KAPPA * t + 16.0) / 116.0


@njit(cache=True, error_model="numpy")
def lab_f_inv(t: float) -> float:
    """
    Inverse of ``lab_f``.

    Uses multiplication form (116*t - 16)/k instead of (t - 16/116)/(k/116)
    to minimize floating point division errors near the delta threshold.
    """
    if t > _LAB_DELTA:
        return t * t * t
    return (116.0 * t - 16.0) / LAB_KAPPA


@njit(cache=True, error_model="numpy")
def _signed_cbrt(v: float) -> float:
    return math.copysign(abs(v) ** (1.0 / 3.0), v)


@njit(cache=True, error_model="numpy")
def _rgb_to_hsl_kernel(r: float, g: float, b: float) -> Components:
    rgb_max = max(r, g, b)
    rgb_min = min(r, g, b)
    chroma = rgb_max - rgb_min
    lightness = (rgb_max + rgb_min) * 0.5

    # Achromatic: hue and saturation are 0 by convention.
    if chroma == 0.0:
        return 0.0, 0.0, lightness

    if rgb_max == r:
        sector = ((g - b) / chroma) % 6.0
    elif rgb_max == g:
        sector = (b - r) / chroma + 2.0
    else:
        sector = (r - g) / chroma + 4.0

    denom = 1.0 - abs(2.0 * lightness - 1.0)
    saturation = chroma / denom if denom != 0.0 else 0.0
    return normalize_hue(sector * 60.0), saturation, lightness


@njit(cache=True, error_model="numpy")
def _hsl_to_rgb_kernel(h: float, s: float, l: float) -> Components:
    hp = normalize_hue(h) / 60.0
    if np.isnan(hp):
        return np.nan, np.nan, np.nan

    chroma = (1.0 - abs(2.0 * l - 1.0)) * s
    x = chroma * (1.0 - abs(hp % 2.0 - 1.0))

    # h == 360 wraps to sector 0
    sector = int(hp) % 6
    if sector == 0:
        r1, g1, b1 = chroma, x, 0.0
    elif sector == 1:
        r1, g1, b1 = x, chroma, 0.0
    elif sector == 2:
        r1, g1, b1 = 0.0, chroma, x
    elif sector == 3:
        r1, g1, b1 = 0.0, x, chroma
    elif sector == 4:
        r1, g1, b1 = x, 0.0, chroma
    else:
        r1, g1, b1 = chroma, 0.0, x

    m = l - chroma * 0.5
    return r1 + m, g1 + m, b1 + m


@njit(cache=True, error_model="numpy")
def _rgb_to_xyz_d65_kernel(r: float, g: float, b: float) -> Components:
    return _apply_matrix(M_SRGB_TO_XYZ, srgb_to_linear(r), srgb_to_linear(g), srgb_to_linear(b))


@njit(cache=True, error_model="numpy")
def _xyz_d65_to_rgb_kernel(x: float, y: float, z: float) -> Components:
    lr, lg, lb = _apply_matrix(M_XYZ_TO_SRGB, x, y, z)
    return linear_to_srgb(lr), linear_to_srgb(lg), linear_to_srgb(lb)


@njit(cache=True, error_model="numpy")
def _xyz_d65_to_d50_kernel(x: float, y: float, z: float) -> Components:
    return _apply_matrix(M_XYZ_D65_TO_D50, x, y, z)


@njit(cache=True, error_model="numpy")
def _xyz_d50_to_d65_kernel(x: float, y: float, z: float) -> Components:
    return _apply_matrix(M_XYZ_D50_TO_D65, x, y, z)


@njit(cache=True, error_model="numpy")
def _xyz_d50_to_lab_kernel(x: float, y: float, z: float) -> Components:
    fx = lab_f(x / _D50[0])
    fy = lab_f(y / _D50[1])
    fz = lab_f(z / _D50[2])
    return 116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)


@njit(cache=True, error_model="numpy")
def _lab_to_xyz_d50_kernel(l: float, a: float, b: float) -> Components:
    fy = (l + 16.0) / 116.0
    fx = a / 500.0 + fy
    fz = fy - b / 200.0
    return lab_f_inv(fx) * _D50[0], lab_f_inv(fy) * _D50[1], lab_f_inv(fz) * _D50[2]


@njit(cache=True, error_model="numpy")
def _to_polar_kernel(l: float, a: float, b: float) -> Components:
    """Shared Lab -> LCh and Oklab -> Oklch transform."""
    return l, np.hypot(a, b), hue_from_ab(a, b)


@njit(cache=True, error_model="numpy")
def _from_polar_kernel(l: float, c: float, h: float) -> Components:
    """Shared LCh -> Lab and Oklch -> Oklab transform."""
    chroma = c
    if chroma < 0.0:
        chroma = 0.0
    h_rad = h * DEG2RAD
    return l, chroma * np.cos(h_rad), chroma * np.sin(h_rad)


@njit(cache=True, error_model="numpy")
def _xyz_d65_to_oklab_kernel(x: float, y: float, z: float) -> Components:
    lms_l, lms_m, lms_s = _apply_matrix(M1_XYZ_TO_LMS_OKLAB, x, y, z)
    return _apply_matrix(
        M2_LMS_TO_LAB_OKLAB, _signed_cbrt(lms_l), _signed_cbrt(lms_m), _signed_cbrt(lms_s)
    )


@njit(cache=True, error_model="numpy")
def _oklab_to_xyz_d65_kernel(l: float, a: float, b: float) -> Components:
    lp, mp, sp = _apply_matrix(M2_LAB_TO_LMS_OKLAB, l, a, b)
    return _apply_matrix(M1_LMS_TO_XYZ_OKLAB, lp * lp * lp, mp * mp * mp, sp * sp * sp)


# =============================================================================
# 2. COLOR SPACE ENGINE
# =============================================================================

class ColorSpaceEngine:
    """Static namespace for the color space conversions.

    Each method accepts a value of its source space (or an untagged
    3-sequence) and returns a value of its target space.  Passing a value
    tagged with any other space raises ``TypeError``.
    """

    # --- sRGB <-> HSL ---
    @staticmethod
    @handle_space(Rgb, Hsl)
    def rgb_to_hsl(rgb: Components) -> Components:
        """
        Converts sRGB to HSL.

        Returns:
            Hsl with h in [0, 360) and h = s = 0 for achromatic input.
        """
        return _rgb_to_hsl_kernel(*rgb)

    @staticmethod
    @handle_space(Hsl, Rgb)
    def hsl_to_rgb(hsl: Components) -> Components:
        """
        Converts HSL to sRGB.

        Any hue is accepted and wrapped into [0, 360) first.
        """
        return _hsl_to_rgb_kernel(*hsl)

    # --- sRGB <-> XYZ (D65) ---
    @staticmethod
    @handle_space(Rgb, XyzD65)
    def rgb_to_xyz_d65(rgb: Components) -> Components:
        """
        Converts gamma-encoded sRGB to XYZ (D65).

        Decodes each channel with the sRGB EOTF, then applies the sRGB
        primaries matrix.  Out-of-range (HDR) input is not clipped.
        """
        return _rgb_to_xyz_d65_kernel(*rgb)

    @staticmethod
    @handle_space(XyzD65, Rgb)
    def xyz_d65_to_rgb(xyz: Components) -> Components:
        """
        Converts XYZ (D65) to gamma-encoded sRGB.

        Out-of-gamut colors come back outside [0, 1]; gamut mapping is the
        caller's concern.
        """
        return _xyz_d65_to_rgb_kernel(*xyz)

    # --- XYZ (D50) <-> CIELAB ---
    @staticmethod
    @handle_space(XyzD50, Lab)
    def xyz_d50_to_lab(xyz: Components) -> Components:
        """
        Converts XYZ (D50) to CIELAB.

        XYZ (D65) must be adapted first with
        ``ChromaticAdaptation.xyz_d65_to_xyz_d50``.
        """
        return _xyz_d50_to_lab_kernel(*xyz)

    @staticmethod
    @handle_space(Lab, XyzD50)
    def lab_to_xyz_d50(lab: Components) -> Components:
        """Converts CIELAB to XYZ (D50)."""
        return _lab_to_xyz_d50_kernel(*lab)

    # --- CIELAB <-> CIELCh ---
    @staticmethod
    @handle_space(Lab, Lch)
    def lab_to_lch(lab: Components) -> Components:
        """
        Converts CIELAB to CIELCh (cylindrical representation).

        Hue is 0 when chroma is at or below ``ACHROMATIC_CHROMA``.
        """
        return _to_polar_kernel(*lab)

    @staticmethod
    @handle_space(Lch, Lab)
    def lch_to_lab(lch: Components) -> Components:
        """Converts CIELCh to CIELAB.  Negative chroma is clamped to 0."""
        return _from_polar_kernel(*lch)

    # --- XYZ (D65) <-> Oklab ---
    @staticmethod
    @handle_space(XyzD65, Oklab)
    def xyz_d65_to_oklab(xyz: Components) -> Components:
        """
        Converts XYZ (D65) to Oklab directly.

        LMS = M1 @ XYZ, cube root per component, Oklab = M2 @ LMS'.
        """
        return _xyz_d65_to_oklab_kernel(*xyz)

    @staticmethod
    @handle_space(Oklab, XyzD65)
    def oklab_to_xyz_d65(oklab: Components) -> Components:
        """Converts Oklab to XYZ (D65)."""
        return _oklab_to_xyz_d65_kernel(*oklab)

    # --- Oklab <-> Oklch ---
    @staticmethod
    @handle_space(Oklab, Oklch)
    def oklab_to_oklch(oklab: Components) -> Components:
        """Converts Oklab to Oklch.  Same polar transform as ``lab_to_lch``."""
        return _to_polar_kernel(*oklab)

    @staticmethod
    @handle_space(Oklch, Oklab)
    def oklch_to_oklab(oklch: Components) -> Components:
        """Converts Oklch to Oklab.  Negative chroma is clamped to 0."""
        return _from_polar_kernel(*oklch)


# =============================================================================
# 3. CHROMATIC ADAPTATION
# =============================================================================

class ChromaticAdaptation:
    """Handles White Point Adaptation (Bradford Method)."""

    @staticmethod
    def calc_transform_matrix(src_white: Union[ArrayFloat, Sequence[float]],
                              dst_white: Union[ArrayFloat, Sequence[float]]) -> ArrayFloat:
        """
        Computes the Bradford adaptation matrix between two white points.

        Args:
            src_white: Source white point (XYZ).
            dst_white: Destination white point (XYZ).

        Returns:
            Read-only 3x3 adaptation matrix for column vectors.
        """
        t_src = _to_hashable(src_white)
        t_dst = _to_hashable(dst_white)
        return _get_cached_bradford_matrix(t_src, t_dst)

    @staticmethod
    @handle_space(XyzD65, XyzD50)
    def xyz_d65_to_xyz_d50(xyz: Components) -> Components:
        """Adapts XYZ from the D65 white to the D50 white."""
        return _xyz_d65_to_d50_kernel(*xyz)

    @staticmethod
    @handle_space(XyzD50, XyzD65)
    def xyz_d50_to_xyz_d65(xyz: Components) -> Components:
        """Adapts XYZ from the D50 white to the D65 white."""
        return _xyz_d50_to_d65_kernel(*xyz)


# =============================================================================
# 4. CONVERSION CHAINING
# =============================================================================

def chain(color: Sequence[float], *conversions: Conversion) -> Union[ColorTuple, Sequence[float]]:
    """
    Applies conversions left to right.

    The path is checked before anything is computed: each step must
    produce the space the next step consumes.

    Args:
        color: Starting value.
        *conversions: Conversion functions, e.g. ``*RGB_TO_LAB``.

    Returns:
        The value produced by the last conversion (``color`` itself for an
        empty chain).

    Raises:
        TypeError: If two adjacent steps do not connect.
    """
    for prev, nxt in zip(conversions, conversions[1:]):
        produced = getattr(prev, "target", None)
        expected = getattr(nxt, "source", None)
        if produced is not None and expected is not None and produced is not expected:
            raise TypeError(
                f"{prev.__name__} produces {produced.__name__} but "
                f"{nxt.__name__} expects {expected.__name__}"
            )

    result: Union[ColorTuple, Sequence[float]] = color
    for conversion in conversions:
        result = conversion(result)
    return result


RGB_TO_LAB: Final[Tuple[Conversion, ...]] = (
    ColorSpaceEngine.rgb_to_xyz_d65,
    ChromaticAdaptation.xyz_d65_to_xyz_d50,
    ColorSpaceEngine.xyz_d50_to_lab,
)
LAB_TO_RGB: Final[Tuple[Conversion, ...]] = (
    ColorSpaceEngine.lab_to_xyz_d50,
    ChromaticAdaptation.xyz_d50_to_xyz_d65,
    ColorSpaceEngine.xyz_d65_to_rgb,
)
RGB_TO_LCH: Final[Tuple[Conversion, ...]] = RGB_TO_LAB + (ColorSpaceEngine.lab_to_lch,)
LCH_TO_RGB: Final[Tuple[Conversion, ...]] = (ColorSpaceEngine.lch_to_lab,) + LAB_TO_RGB

RGB_TO_OKLAB: Final[Tuple[Conversion, ...]] = (
    ColorSpaceEngine.rgb_to_xyz_d65,
    ColorSpaceEngine.xyz_d65_to_oklab,
)
OKLAB_TO_RGB: Final[Tuple[Conversion, ...]] = (
    ColorSpaceEngine.oklab_to_xyz_d65,
    ColorSpaceEngine.xyz_d65_to_rgb,
)
RGB_TO_OKLCH: Final[Tuple[Conversion, ...]] = RGB_TO_OKLAB + (ColorSpaceEngine.oklab_to_oklch,)
OKLCH_TO_RGB: Final[Tuple[Conversion, ...]] = (ColorSpaceEngine.oklch_to_oklab,) + OKLAB_TO_RGB
