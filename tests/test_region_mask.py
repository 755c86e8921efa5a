"""
Unit tests for the bowl region mask.
"""

import numpy as np

from services.interfaces import EllipseRegion
from services.pipeline.steps.region_mask import RegionMask


class TestRegionMask:
    """Test cases for RegionMask."""

    def setup_method(self):
        self.mask = RegionMask()

    def test_geometry_scales_with_image(self):
        cx, cy, rx, ry = self.mask.geometry(200, 200)
        assert cx == 100
        assert cy == 112
        assert rx == 76
        assert ry == 88

    def test_center_is_inside(self):
        assert self.mask.contains(100, 112, 200, 200)

    def test_corners_are_outside(self):
        for x, y in ((0, 0), (199, 0), (0, 199), (199, 199)):
            assert not self.mask.contains(x, y, 200, 200)

    def test_boundary_is_inside(self):
        assert self.mask.contains(176, 112, 200, 200)
        assert not self.mask.contains(177, 112, 200, 200)

    def test_array_matches_scalar(self):
        ys, xs = np.mgrid[0:200:7, 0:200:7]
        inside = self.mask.contains_array(xs, ys, 200, 200)
        assert inside.shape == xs.shape
        for x, y, flag in zip(xs.ravel(), ys.ravel(), inside.ravel()):
            assert bool(flag) == self.mask.contains(x, y, 200, 200)

    def test_custom_region(self):
        mask = RegionMask(EllipseRegion(center_x=0.25, center_y=0.25, radius_x=0.1, radius_y=0.1))
        assert mask.contains(25, 25, 100, 100)
        assert not mask.contains(50, 50, 100, 100)
