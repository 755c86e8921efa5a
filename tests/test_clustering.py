"""
Unit tests for spatial clustering of matched pixels.
"""

from dataclasses import replace

import pytest

from config.color_profiles import BLOOD_PROFILES
from services.interfaces import MatchedPixel
from services.pipeline.steps.clustering import ClusterEngine

BRIGHT_RED, DARK_RED = BLOOD_PROFILES[0], BLOOD_PROFILES[1]


def block(x0, y0, size, profile, step=2):
    return [
        MatchedPixel(x=x, y=y, profile=profile)
        for y in range(y0, y0 + size, step)
        for x in range(x0, x0 + size, step)
    ]


class TestClusterEngine:
    """Test cases for ClusterEngine."""

    def setup_method(self):
        self.engine = ClusterEngine(BLOOD_PROFILES)

    def test_single_block_gives_one_finding(self):
        findings = self.engine.cluster(block(90, 102, 20, BRIGHT_RED), 200, 200)

        assert len(findings) == 1
        finding = findings[0]
        assert finding.label == 'Bright Red'
        assert finding.x <= 90 and finding.y <= 102
        assert finding.x + finding.width >= 110
        assert finding.y + finding.height >= 122
        # Corner cell (108..119, 120..131) holds a single pixel and stays inactive
        assert finding.pixel_count == 99

    def test_distant_blocks_stay_separate(self):
        pixels = block(10, 10, 20, BRIGHT_RED) + block(150, 150, 20, DARK_RED)
        findings = self.engine.cluster(pixels, 200, 200)

        assert len(findings) == 2
        assert findings[0].label == 'Bright Red'
        assert findings[1].label == 'Dark Red'
        assert findings[0].x + findings[0].width < findings[1].x

    def test_scattered_noise_is_ignored(self):
        pixels = [MatchedPixel(x, y, BRIGHT_RED) for x in range(0, 200, 24) for y in range(0, 200, 24)]
        assert self.engine.cluster(pixels, 200, 200) == ()

    def test_small_component_is_discarded(self):
        # One active cell with 5 matches is below the component minimum of 8
        pixels = [MatchedPixel(x, 0, BRIGHT_RED) for x in range(0, 10, 2)]
        assert self.engine.cluster(pixels, 200, 200) == ()

    def test_dominant_profile_tie_goes_to_earlier_profile(self):
        pixels = (
            [MatchedPixel(x, 0, DARK_RED) for x in range(0, 8, 2)]
            + [MatchedPixel(x, 2, BRIGHT_RED) for x in range(0, 8, 2)]
        )
        findings = self.engine.cluster(pixels, 200, 200)
        assert len(findings) == 1
        assert findings[0].profile is BRIGHT_RED
        assert findings[0].pixel_count == 8

    def test_majority_profile_wins(self):
        pixels = block(0, 0, 12, DARK_RED) + [MatchedPixel(1, 1, BRIGHT_RED)]
        findings = self.engine.cluster(pixels, 200, 200)
        assert findings[0].label == 'Dark Red'

    def test_bounding_box_is_clamped_to_image(self):
        findings = self.engine.cluster(block(12, 12, 8, BRIGHT_RED, step=1), 20, 20)
        assert len(findings) == 1
        finding = findings[0]
        assert (finding.x, finding.y) == (12, 12)
        assert (finding.width, finding.height) == (8, 8)

    def test_diagonal_cells_are_not_connected(self):
        pixels = block(0, 0, 12, BRIGHT_RED) + block(12, 12, 12, BRIGHT_RED)
        assert len(self.engine.cluster(pixels, 200, 200)) == 2

    def test_empty_input(self):
        assert self.engine.cluster([], 200, 200) == ()

    def test_out_of_bounds_pixel_raises(self):
        with pytest.raises(ValueError):
            self.engine.cluster(block(0, 0, 12, BRIGHT_RED) + [MatchedPixel(200, 0, BRIGHT_RED)], 200, 200)

    def test_unknown_profile_raises(self):
        stranger = replace(BRIGHT_RED, label='Stranger')
        with pytest.raises(ValueError):
            self.engine.cluster([MatchedPixel(0, 0, stranger)], 200, 200)

    def test_findings_in_row_major_order(self):
        pixels = block(150, 10, 12, BRIGHT_RED) + block(10, 10, 12, BRIGHT_RED) + block(10, 150, 12, BRIGHT_RED)
        findings = self.engine.cluster(pixels, 200, 200)
        assert [(f.x, f.y) for f in findings] == [(0, 0), (144, 0), (0, 144)]
