"""
Unit tests for finding overlays.
"""

import numpy as np
import pytest

from config.color_profiles import BLOOD_PROFILES
from services.interfaces import Finding
from utils.detection_visualization import (
    draw_findings,
    draw_hatch,
    draw_shape_glyph,
    visualize_matched_pixels,
    visualize_region_mask,
)


class TestDetectionVisualization:
    """Test cases for overlay drawing."""

    def setup_method(self):
        self.image = np.full((200, 200, 3), 230, dtype=np.uint8)
        self.finding = Finding(x=84, y=96, width=36, height=36, profile=BLOOD_PROFILES[0], pixel_count=99)

    def test_draw_findings_keeps_shape_and_source(self):
        vis = draw_findings(self.image, [self.finding])
        assert vis.shape == self.image.shape
        assert np.all(self.image == 230)

    def test_draw_findings_marks_region(self):
        vis = draw_findings(self.image, [self.finding])
        region = vis[96:132, 84:120]
        assert np.any(region != 230)

    def test_no_findings_is_identity(self):
        vis = draw_findings(self.image, [])
        assert np.array_equal(vis, self.image)

    def test_finding_at_edge(self):
        edge = Finding(x=0, y=0, width=12, height=12, profile=BLOOD_PROFILES[4], pixel_count=10)
        vis = draw_findings(self.image, [edge])
        assert vis.shape == self.image.shape

    @pytest.mark.parametrize('hatch', ['diagonal', 'crosshatch', 'horizontal', 'vertical', 'dots'])
    def test_hatches(self, hatch):
        image = self.image.copy()
        draw_hatch(image, (50, 50, 40, 40), hatch, (0, 0, 255))
        assert np.any(image[50:90, 50:90] != 230)
        assert np.all(image[:50] == 230)

    def test_hatch_outside_image_is_noop(self):
        image = self.image.copy()
        draw_hatch(image, (300, 300, 20, 20), 'dots', (0, 0, 255))
        assert np.array_equal(image, self.image)

    @pytest.mark.parametrize('shape', ['circle', 'triangle', 'square', 'diamond', 'cross'])
    def test_shapes(self, shape):
        image = self.image.copy()
        draw_shape_glyph(image, shape, (100, 100), 20, (0, 0, 255))
        assert np.any(image[88:113, 88:113] != 230)

    def test_region_mask_dims_outside(self):
        vis = visualize_region_mask(self.image, (100, 112, 76, 88))
        assert vis[0, 0].tolist() == [92, 92, 92]
        assert vis[112, 100].tolist() == [230, 230, 230]

    def test_matched_pixels(self):
        vis = visualize_matched_pixels(self.image, [10], [10], [(0, 0, 255)])
        assert vis[10, 10].tolist() == [0, 0, 255]
