"""
Unit tests for analysis configuration and profile tables.
"""

import pytest

from config.analysis_config import AnalysisConfig, get_analysis_config
from config.color_profiles import BLOOD_PROFILES, CONTENT_PROFILES, SEVERITY_INFO, SEVERITY_ORDER
from services.interfaces import EllipseRegion


class TestAnalysisConfig:
    """Test cases for AnalysisConfig."""

    def test_defaults(self):
        config = get_analysis_config()
        assert config.target_white(False) == 240
        assert config.target_white(True) == 250
        assert config.gain_clamp == (0.6, 1.6)
        assert config.shade_factor_clamp == (0.7, 1.5)
        assert config.sample_stride == 2
        assert config.min_alpha == 128
        assert config.min_blood_pixels == 36
        assert config.min_blood_ratio == 0.002
        assert config.cluster_cell_size == 12
        assert config.region_mask == EllipseRegion()
        assert config.sample_type_method == 'ratio'

    def test_overrides(self):
        config = get_analysis_config(min_blood_pixels=10, gain_clamp=[0.5, 2.0])
        assert config.min_blood_pixels == 10
        assert config.gain_clamp == (0.5, 2.0)

    def test_config_is_immutable(self):
        config = get_analysis_config()
        with pytest.raises(AttributeError):
            config.min_alpha = 0

    @pytest.mark.parametrize('overrides', [
        {'gain_clamp': (1.6, 0.6)},
        {'shade_factor_clamp': (0.0, 1.5)},
        {'sample_stride': 0},
        {'cluster_cell_size': 0},
        {'white_percentile': 1.0},
        {'center_region_fraction': 0.0},
        {'sample_type_method': 'vibes'},
        {'blood_profiles': ()},
        {'blood_profiles': (BLOOD_PROFILES[0], BLOOD_PROFILES[0])},
        {'region_mask': EllipseRegion(radius_x=0)},
        {'no_such_option': 1},
    ])
    def test_invalid_config(self, overrides):
        with pytest.raises(ValueError):
            get_analysis_config(**overrides)

    def test_to_dict(self):
        data = AnalysisConfig().to_dict()
        assert data['blood_profiles'] == [p.label for p in BLOOD_PROFILES]
        assert data['gain_clamp'] == [0.6, 1.6]
        assert data['region_mask']['center_y'] == 0.56


class TestColorProfiles:
    """Test cases for the profile tables."""

    def test_blood_profile_order(self):
        assert [p.label for p in BLOOD_PROFILES] == [
            'Bright Red', 'Dark Red', 'Maroon', 'Brown Blood', 'Black (Tarry)'
        ]

    def test_encodings_are_unique(self):
        assert len({p.shape for p in BLOOD_PROFILES}) == len(BLOOD_PROFILES)
        assert len({p.hatch for p in BLOOD_PROFILES}) == len(BLOOD_PROFILES)

    def test_every_severity_is_described(self):
        assert set(SEVERITY_ORDER) == set(SEVERITY_INFO)
        assert {p.severity for p in BLOOD_PROFILES} <= set(SEVERITY_ORDER)

    def test_content_kinds(self):
        assert {p.content for p in CONTENT_PROFILES} == {'urine', 'stool'}
