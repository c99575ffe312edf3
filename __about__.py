# -*- coding: utf-8 -*-
# Prism: Perceptual color conversion and difference metrics
#
# Copyright (c) 2026 opticsWolf
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Project metadata for the opticsWolf Prism.
"""

from typing import Final

# Metadata Definitions
__title__: Final[str] = "Prism"
__description__: Final[str] = (
    "JIT-compiled conversions between sRGB, HSL, CIE XYZ, CIELAB, CIELCh, "
    "Oklab and Oklch, with CIE76, CIE94 and CIEDE2000 color differences."
)
__version__: Final[str] = "0.1.0"
__author__: Final[str] = "opticsWolf"
__license__: Final[str] = "LGPL-3.0-or-later"
__copyright__: Final[str] = "Copyright (c) 2026 opticsWolf"

def metadata_summary() -> dict[str, str]:
    """Returns a dictionary of project metadata for introspection."""
    return {
        "title": __title__,
        "version": __version__,
        "license": __license__,
        "description": __description__,
        "copyright": __copyright__,
    }
