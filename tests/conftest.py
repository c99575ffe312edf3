# -*- coding: utf-8 -*-
"""
Prism: Perceptual color conversion and difference metrics
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later
"""

import pytest

from prism_spaces import Lab, Rgb
from reference_data import SAMPLE_LAB, SAMPLE_RGB


@pytest.fixture(params=SAMPLE_RGB, ids=lambda c: "rgb(%g,%g,%g)" % c)
def sample_rgb(request) -> Rgb:
    return Rgb(*request.param)


@pytest.fixture(params=SAMPLE_LAB, ids=lambda c: "lab(%g,%g,%g)" % c)
def sample_lab(request) -> Lab:
    return Lab(*request.param)
