# -*- coding: utf-8 -*-
"""
Prism: Perceptual color conversion and difference metrics
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later
"""

import math

import pytest

from prism_hue import ACHROMATIC_CHROMA, hue_difference, hue_from_ab, mean_hue, normalize_hue


@pytest.mark.parametrize("h, expected", [
    (0.0, 0.0),
    (359.5, 359.5),
    (360.0, 0.0),
    (725.0, 5.0),
    (-10.0, 350.0),
    (-360.0, 0.0),
    (-1e-20, 0.0),
])
def test_normalize_hue(h, expected):
    assert normalize_hue(h) == pytest.approx(expected, abs=1e-12)


def test_normalize_hue_propagates_nan():
    assert math.isnan(normalize_hue(math.nan))


@pytest.mark.parametrize("h1, h2, expected", [
    (10.0, 20.0, 10.0),
    (20.0, 10.0, -10.0),
    (359.0, 1.0, 2.0),
    (1.0, 359.0, -2.0),
    (350.0, 370.0, 20.0),
    (-90.0, 90.0, -180.0),
    (0.0, 180.0, 180.0),
])
def test_hue_difference_takes_shorter_arc(h1, h2, expected):
    assert hue_difference(h1, h2) == pytest.approx(expected, abs=1e-12)


@pytest.mark.parametrize("h1, h2", [(0.0, 359.999), (123.4, 303.3), (270.0, 10.0), (5.0, 5.0)])
def test_hue_difference_is_antisymmetric_and_bounded(h1, h2):
    d = hue_difference(h1, h2)
    assert -180.0 <= d <= 180.0
    assert hue_difference(h2, h1) == pytest.approx(-d, abs=1e-12)


@pytest.mark.parametrize("h1, h2, expected", [
    (10.0, 30.0, 20.0),
    (350.0, 10.0, 0.0),
    (10.0, 350.0, 0.0),
    (340.0, 30.0, 5.0),
    (200.0, 10.0, 285.0),
    (90.0, 270.0, 180.0),
])
def test_mean_hue_is_circular(h1, h2, expected):
    assert mean_hue(h1, h2) == pytest.approx(expected, abs=1e-12)
    assert mean_hue(h2, h1) == pytest.approx(expected, abs=1e-12)


@pytest.mark.parametrize("a, b, expected", [
    (1.0, 0.0, 0.0),
    (0.0, 1.0, 90.0),
    (-1.0, 0.0, 180.0),
    (0.0, -1.0, 270.0),
    (1.0, -1.0, 315.0),
])
def test_hue_from_ab(a, b, expected):
    assert hue_from_ab(a, b) == pytest.approx(expected, abs=1e-12)


@pytest.mark.parametrize("a, b", [(0.0, 0.0), (-0.0, -0.0), (ACHROMATIC_CHROMA / 2, -ACHROMATIC_CHROMA / 2)])
def test_hue_from_ab_is_zero_for_achromatic(a, b):
    assert hue_from_ab(a, b) == 0.0
