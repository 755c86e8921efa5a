"""
Configuration for the blood detection analysis pipeline.

Defaults are read from the environment (HEALTHSCAN_* variables) at import
time and collected into an immutable AnalysisConfig that is passed into the
pipeline. Use get_analysis_config(**overrides) to build a variant for tests or
experiments instead of mutating module state.
"""

import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Tuple

from config.color_profiles import BLOOD_PROFILES, CONTENT_PROFILES
from services.interfaces import ColorProfile, ContentProfile, EllipseRegion

SAMPLE_TYPE_METHODS = ('ratio', 'center_statistic')

# Neutral white that porcelain should map to after correction. Flash drives
# porcelain brighter, so its neutral point is higher.
TARGET_WHITE_AMBIENT: float = float(os.getenv('HEALTHSCAN_TARGET_WHITE_AMBIENT', '240'))
TARGET_WHITE_FLASH: float = float(os.getenv('HEALTHSCAN_TARGET_WHITE_FLASH', '250'))

# White-balance evidence: every Nth pixel, top 15% luminance, all channels >= 140
WHITE_BALANCE_STRIDE: int = int(os.getenv('HEALTHSCAN_WHITE_BALANCE_STRIDE', '4'))
WHITE_PERCENTILE: float = float(os.getenv('HEALTHSCAN_WHITE_PERCENTILE', '0.85'))
WHITE_MIN_CHANNEL: int = int(os.getenv('HEALTHSCAN_WHITE_MIN_CHANNEL', '140'))
WHITE_MIN_SAMPLES: int = int(os.getenv('HEALTHSCAN_WHITE_MIN_SAMPLES', '20'))

GAIN_CLAMP: Tuple[float, float] = (
    float(os.getenv('HEALTHSCAN_GAIN_CLAMP_MIN', '0.6')),
    float(os.getenv('HEALTHSCAN_GAIN_CLAMP_MAX', '1.6')),
)

# Local shade correction grid (SHADE_GRID_SIZE x SHADE_GRID_SIZE cells)
SHADE_GRID_SIZE: int = int(os.getenv('HEALTHSCAN_SHADE_GRID_SIZE', '8'))
SHADE_STRIDE: int = int(os.getenv('HEALTHSCAN_SHADE_STRIDE', '2'))
SHADE_FACTOR_CLAMP: Tuple[float, float] = (
    float(os.getenv('HEALTHSCAN_SHADE_FACTOR_MIN', '0.7')),
    float(os.getenv('HEALTHSCAN_SHADE_FACTOR_MAX', '1.5')),
)

REGION_MASK: EllipseRegion = EllipseRegion(
    center_x=float(os.getenv('HEALTHSCAN_MASK_CENTER_X', '0.5')),
    center_y=float(os.getenv('HEALTHSCAN_MASK_CENTER_Y', '0.56')),
    radius_x=float(os.getenv('HEALTHSCAN_MASK_RADIUS_X', '0.38')),
    radius_y=float(os.getenv('HEALTHSCAN_MASK_RADIUS_Y', '0.44')),
)

# Per-pixel scan
SAMPLE_STRIDE: int = int(os.getenv('HEALTHSCAN_SAMPLE_STRIDE', '2'))
MIN_ALPHA: int = int(os.getenv('HEALTHSCAN_MIN_ALPHA', '128'))

# Evidentiary floor before any finding is reported
MIN_BLOOD_PIXELS: int = int(os.getenv('HEALTHSCAN_MIN_BLOOD_PIXELS', '36'))
MIN_BLOOD_RATIO: float = float(os.getenv('HEALTHSCAN_MIN_BLOOD_RATIO', '0.002'))

# Sample typing
MIN_URINE_RATIO: float = float(os.getenv('HEALTHSCAN_MIN_URINE_RATIO', '0.02'))
MIN_STOOL_RATIO: float = float(os.getenv('HEALTHSCAN_MIN_STOOL_RATIO', '0.02'))
SAMPLE_TYPE_METHOD: str = os.getenv('HEALTHSCAN_SAMPLE_TYPE_METHOD', 'ratio')
CENTER_REGION_FRACTION: float = float(os.getenv('HEALTHSCAN_CENTER_REGION_FRACTION', '0.4'))
CENTER_URINE_MIN_LUMINANCE: float = float(os.getenv('HEALTHSCAN_CENTER_URINE_MIN_LUMINANCE', '140'))
CENTER_URINE_MAX_SATURATION: float = float(os.getenv('HEALTHSCAN_CENTER_URINE_MAX_SATURATION', '80'))

# Clustering grid and noise thresholds
CLUSTER_CELL_SIZE: int = int(os.getenv('HEALTHSCAN_CLUSTER_CELL_SIZE', '12'))
CLUSTER_CELL_THRESHOLD: int = int(os.getenv('HEALTHSCAN_CLUSTER_CELL_THRESHOLD', '3'))
CLUSTER_MIN_TOTAL: int = int(os.getenv('HEALTHSCAN_CLUSTER_MIN_TOTAL', '8'))


def _check_clamp(name: str, bounds: Tuple[float, float]) -> None:
    low, high = bounds
    if low <= 0 or low > high:
        raise ValueError(f'{name} must satisfy 0 < min <= max, got {bounds}')


@dataclass(frozen=True)
class AnalysisConfig:
    """Immutable set of thresholds and tables used by one pipeline instance."""
    target_white_ambient: float = TARGET_WHITE_AMBIENT
    target_white_flash: float = TARGET_WHITE_FLASH
    white_balance_stride: int = WHITE_BALANCE_STRIDE
    white_percentile: float = WHITE_PERCENTILE
    white_min_channel: int = WHITE_MIN_CHANNEL
    white_min_samples: int = WHITE_MIN_SAMPLES
    gain_clamp: Tuple[float, float] = GAIN_CLAMP
    shade_grid_size: int = SHADE_GRID_SIZE
    shade_stride: int = SHADE_STRIDE
    shade_factor_clamp: Tuple[float, float] = SHADE_FACTOR_CLAMP
    region_mask: EllipseRegion = REGION_MASK
    sample_stride: int = SAMPLE_STRIDE
    min_alpha: int = MIN_ALPHA
    min_blood_pixels: int = MIN_BLOOD_PIXELS
    min_blood_ratio: float = MIN_BLOOD_RATIO
    min_urine_ratio: float = MIN_URINE_RATIO
    min_stool_ratio: float = MIN_STOOL_RATIO
    sample_type_method: str = SAMPLE_TYPE_METHOD
    center_region_fraction: float = CENTER_REGION_FRACTION
    center_urine_min_luminance: float = CENTER_URINE_MIN_LUMINANCE
    center_urine_max_saturation: float = CENTER_URINE_MAX_SATURATION
    cluster_cell_size: int = CLUSTER_CELL_SIZE
    cluster_cell_threshold: int = CLUSTER_CELL_THRESHOLD
    cluster_min_total: int = CLUSTER_MIN_TOTAL
    blood_profiles: Tuple[ColorProfile, ...] = BLOOD_PROFILES
    content_profiles: Tuple[ContentProfile, ...] = CONTENT_PROFILES

    def __post_init__(self):
        # Accept lists for the tuple-valued options but store them immutably
        for name in ('gain_clamp', 'shade_factor_clamp', 'blood_profiles', 'content_profiles'):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

        _check_clamp('gain_clamp', self.gain_clamp)
        _check_clamp('shade_factor_clamp', self.shade_factor_clamp)

        for name in ('white_balance_stride', 'shade_grid_size', 'shade_stride',
                     'sample_stride', 'cluster_cell_size'):
            if getattr(self, name) < 1:
                raise ValueError(f'{name} must be >= 1, got {getattr(self, name)}')

        if not 0.0 <= self.white_percentile < 1.0:
            raise ValueError(f'white_percentile must be in [0, 1), got {self.white_percentile}')
        if not 0.0 < self.center_region_fraction <= 1.0:
            raise ValueError(
                f'center_region_fraction must be in (0, 1], got {self.center_region_fraction}'
            )
        if self.target_white_ambient <= 0 or self.target_white_flash <= 0:
            raise ValueError('target white values must be positive')
        if self.region_mask.radius_x <= 0 or self.region_mask.radius_y <= 0:
            raise ValueError(f'region mask radii must be positive, got {self.region_mask}')
        if self.sample_type_method not in SAMPLE_TYPE_METHODS:
            raise ValueError(
                f'sample_type_method must be one of {SAMPLE_TYPE_METHODS}, '
                f'got {self.sample_type_method!r}'
            )
        if not self.blood_profiles:
            raise ValueError('blood_profiles must contain at least one profile')

        labels = [profile.label for profile in self.blood_profiles]
        if len(set(labels)) != len(labels):
            raise ValueError(f'blood profile labels must be unique, got {labels}')

    def target_white(self, flash_is_on: bool) -> float:
        return self.target_white_flash if flash_is_on else self.target_white_ambient

    def to_dict(self) -> Dict[str, Any]:
        """Scalar options only; profile tables are summarized by label."""
        data = asdict(self)
        data['gain_clamp'] = list(self.gain_clamp)
        data['shade_factor_clamp'] = list(self.shade_factor_clamp)
        data['blood_profiles'] = [profile.label for profile in self.blood_profiles]
        data['content_profiles'] = [profile.label for profile in self.content_profiles]
        return data


def get_analysis_config(**overrides: Any) -> AnalysisConfig:
    """
    Get analysis configuration.

    Args:
        **overrides: AnalysisConfig fields to replace on top of the defaults

    Returns:
        Validated AnalysisConfig

    Raises:
        ValueError: If an override is unknown or the result is inconsistent
    """
    base = AnalysisConfig()
    if not overrides:
        return base
    try:
        return replace(base, **overrides)
    except TypeError as e:
        raise ValueError(f'Unknown analysis option: {e}') from e
