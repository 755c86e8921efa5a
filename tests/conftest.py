"""
Shared fixtures: synthetic bowl photos built with NumPy.

The default canvas is 200x200, which puts the bowl ellipse at center
(100, 112) with radii 76 x 88.
"""

import numpy as np
import pytest

from services.interfaces import PixelBuffer

PORCELAIN = (230, 230, 230)
BLOOD_RED = (140, 15, 15)
URINE_YELLOW = (220, 200, 60)
STOOL_BROWN = (110, 70, 30)


def build_rgba(width=200, height=200, fill=PORCELAIN, alpha=255, patches=()):
    """
    RGBA canvas with optional rectangular patches.

    Args:
        patches: Iterable of (x, y, w, h, (r, g, b))
    """
    image = np.empty((height, width, 4), dtype=np.uint8)
    image[..., :3] = fill
    image[..., 3] = alpha
    for x, y, w, h, color in patches:
        image[y:y + h, x:x + w, :3] = color
    return image


@pytest.fixture
def make_rgba():
    return build_rgba


@pytest.fixture
def make_buffer():
    def _make(**kwargs):
        return PixelBuffer.from_rgba(build_rgba(**kwargs))
    return _make
