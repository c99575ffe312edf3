# -*- coding: utf-8 -*-
"""
Prism: Perceptual color conversion and difference metrics
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Color Space Value Types
=======================
One immutable ``NamedTuple`` per color space.  The type *is* the tag: an
``XyzD65`` and an ``XyzD50`` hold the same three floats but are never
interchangeable, and the public conversion functions refuse a value tagged
with the wrong space instead of silently skipping chromatic adaptation.

Plain tuples (or any 3-component sequence) are treated as untagged and are
trusted as-is.

Component conventions:
    Rgb     r, g, b   [0, 1], gamma-encoded sRGB (HDR values allowed)
    Hsl     h, s, l   h in [0, 360), s and l in [0, 1]
    XyzD65  x, y, z   tristimulus, Y = 1 for the D65 white
    XyzD50  x, y, z   tristimulus, Y = 1 for the D50 white
    Lab     l, a, b   CIELAB rooted in D50, L in [0, 100]
    Lch     l, c, h   cylindrical Lab, h in [0, 360)
    Oklab   l, a, b   L in [0, 1]
    Oklch   l, c, h   cylindrical Oklab, h in [0, 360)
"""

from __future__ import annotations

import functools
from typing import Callable, Final, NamedTuple, Sequence, Tuple, TypeAlias, Union

__all__ = [
    # --- Types ---
    "Rgb",
    "Hsl",
    "XyzD65",
    "XyzD50",
    "Lab",
    "Lch",
    "Oklab",
    "Oklch",
    "ColorTuple",
    "Components",
    "SPACE_TYPES",

    # --- Reference whites ---
    "D65_WHITE",
    "D50_WHITE",

    # --- Boundary helpers ---
    "as_components",
    "handle_space",
]

# --- Type Aliases ---
Components: TypeAlias = Tuple[float, float, float]


class Rgb(NamedTuple):
    """Gamma-encoded sRGB."""
    r: float
    g: float
    b: float


class Hsl(NamedTuple):
    """Hue (degrees), saturation, lightness derived from sRGB."""
    h: float
    s: float
    l: float


class XyzD65(NamedTuple):
    """CIE XYZ relative to the D65 white."""
    x: float
    y: float
    z: float


class XyzD50(NamedTuple):
    """CIE XYZ relative to the D50 white."""
    x: float
    y: float
    z: float


class Lab(NamedTuple):
    """CIELAB (D50)."""
    l: float
    a: float
    b: float


class Lch(NamedTuple):
    """CIELCh (D50): lightness, chroma, hue in degrees."""
    l: float
    c: float
    h: float


class Oklab(NamedTuple):
    l: float
    a: float
    b: float


class Oklch(NamedTuple):
    l: float
    c: float
    h: float


ColorTuple: TypeAlias = Union[Rgb, Hsl, XyzD65, XyzD50, Lab, Lch, Oklab, Oklch]

SPACE_TYPES: Final[Tuple[type, ...]] = (Rgb, Hsl, XyzD65, XyzD50, Lab, Lch, Oklab, Oklch)

# Standard Illuminants (Y=1.0), from their CIE 1931 xy chromaticities.
# D65: Average daylight (approx 6500K)
D65_WHITE: Final[XyzD65] = XyzD65(0.3127 / 0.3290, 1.0, (1.0 - 0.3127 - 0.3290) / 0.3290)
# D50: Horizon daylight (approx 5000K), standard for printing (ICC)
D50_WHITE: Final[XyzD50] = XyzD50(0.3457 / 0.3585, 1.0, (1.0 - 0.3457 - 0.3585) / 0.3585)


def as_components(color: Sequence[float], space: type) -> Components:
    """
    Validates a color against the space a function expects.

    Args:
        color: A value of ``space`` or any untagged 3-component sequence.
        space: The expected ``NamedTuple`` type.

    Returns:
        The three components as plain floats.

    Raises:
        TypeError: If ``color`` is tagged with a different color space.
        ValueError: If ``color`` does not have exactly three components.
    """
    if isinstance(color, SPACE_TYPES) and type(color) is not space:
        raise TypeError(
            f"Expected {space.__name__}, got {type(color).__name__}. "
            "Convert explicitly between color spaces."
        )
    if len(color) != 3:
        raise ValueError(f"Expected 3 components, got {len(color)}")
    return (float(color[0]), float(color[1]), float(color[2]))


def handle_space(source: type, target: type) -> Callable[[Callable[[Components], Components]], Callable[..., ColorTuple]]:
    """
    Decorator binding a conversion to its source and target spaces.

    The wrapped function receives the validated components as a plain
    float tuple and returns a plain float tuple; the wrapper tags the
    result with ``target``.  ``source`` and ``target`` are exposed as
    attributes so conversion chains can be checked before running.

    Args:
        source: Space type the conversion consumes.
        target: Space type the conversion produces.
    """
    def decorator(func: Callable[[Components], Components]) -> Callable[..., ColorTuple]:
        @functools.wraps(func)
        def wrapper(color: Sequence[float]) -> ColorTuple:
            res = func(as_components(color, source))
            return target._make(res)  # type: ignore[attr-defined]

        wrapper.source = source  # type: ignore[attr-defined]
        wrapper.target = target  # type: ignore[attr-defined]
        return wrapper
    return decorator
