"""
Unit tests for sample type inference.
"""

import numpy as np
import pytest

from config.analysis_config import get_analysis_config
from services.pipeline.steps.sample_type import SampleTypeClassifier
from utils.color_conversion import rgb_to_hsl_array


class TestRatioClassification:
    """Test cases for the ratio-based verdict."""

    def setup_method(self):
        self.classifier = SampleTypeClassifier(get_analysis_config())

    def classify(self, urine, stool, total=1000):
        return self.classifier.classify(SampleTypeClassifier.build_tally(urine, stool, total))

    def test_verdicts(self):
        assert self.classify(0, 0) == 'unknown'
        assert self.classify(50, 0) == 'urine'
        assert self.classify(0, 50) == 'stool'
        assert self.classify(50, 50) == 'both'

    def test_threshold_is_inclusive(self):
        assert self.classify(20, 0) == 'urine'
        assert self.classify(19, 0) == 'unknown'

    def test_incidental_matches_are_ignored(self):
        assert self.classify(5, 3) == 'unknown'

    def test_zero_samples(self):
        tally = SampleTypeClassifier.build_tally(0, 0, 0)
        assert tally.urine_ratio == 0.0
        assert tally.stool_ratio == 0.0
        assert self.classifier.classify(tally) == 'unknown'

    def test_monotonic_in_urine_ratio(self):
        urine_seen = False
        for urine in range(0, 200, 5):
            verdict = self.classify(urine, 0)
            if urine_seen:
                assert verdict == 'urine'
            urine_seen = urine_seen or verdict == 'urine'
        assert urine_seen

    def test_adding_stool_never_removes_urine(self):
        for stool in range(0, 200, 10):
            assert self.classify(100, stool) in ('urine', 'both')

    def test_custom_thresholds(self):
        classifier = SampleTypeClassifier(get_analysis_config(min_urine_ratio=0.5))
        tally = SampleTypeClassifier.build_tally(100, 0, 1000)
        assert classifier.classify(tally) == 'unknown'


class TestCenterStatistic:
    """Test cases for the center-statistic verdict."""

    def setup_method(self):
        self.classifier = SampleTypeClassifier(get_analysis_config(sample_type_method='center_statistic'))
        self.ys, self.xs = np.mgrid[0:100:2, 0:100:2]

    def verdict(self, rgb, valid=True):
        corrected = np.empty(self.xs.shape + (3,), dtype=np.float64)
        corrected[...] = rgb
        _, saturation, _ = rgb_to_hsl_array(corrected)
        valid_mask = np.full(self.xs.shape, valid)
        return self.classifier.classify_center_statistic(
            corrected, saturation, valid_mask, self.xs, self.ys, 100, 100
        )

    def test_bright_pale_center_is_urine(self):
        assert self.verdict((230, 220, 180)) == 'urine'

    def test_dark_center_is_stool(self):
        assert self.verdict((110, 70, 30)) == 'stool'

    @pytest.mark.parametrize('rgb', [(255, 255, 0), (0, 200, 255)])
    def test_saturated_center_is_stool(self, rgb):
        assert self.verdict(rgb) == 'stool'

    def test_no_valid_samples_is_unknown(self):
        assert self.verdict((230, 220, 180), valid=False) == 'unknown'
