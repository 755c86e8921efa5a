"""
Pipeline step services.

Steps:
- WhiteBalanceService: Estimates global per-channel gains from the porcelain
- ShadeCorrectionService: Builds the coarse luminance grid for local correction
- PixelCorrector: Applies gains and shade factors to sampled pixels
- RegionMask: Restricts the scan to the bowl ellipse
- ColorClassifier: Matches corrected pixels against blood and content profiles
- ClusterEngine: Groups matched pixels into findings
- SampleTypeClassifier: Decides urine / stool / both / unknown
"""

from services.pipeline.steps.white_balance import WhiteBalanceService
from services.pipeline.steps.shade_correction import ShadeCorrectionService, ShadeGrid
from services.pipeline.steps.pixel_correction import PixelCorrector
from services.pipeline.steps.region_mask import RegionMask
from services.pipeline.steps.color_classification import ColorClassifier
from services.pipeline.steps.clustering import ClusterEngine
from services.pipeline.steps.sample_type import SampleTypeClassifier

__all__ = [
    'WhiteBalanceService',
    'ShadeCorrectionService',
    'ShadeGrid',
    'PixelCorrector',
    'RegionMask',
    'ColorClassifier',
    'ClusterEngine',
    'SampleTypeClassifier'
]
