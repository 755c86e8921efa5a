"""
Sample type inference (urine, stool, both or unknown).

Two strategies are available:

- ``ratio`` (default): the fraction of in-bowl samples matching urine and
  stool content profiles is compared against a minimum ratio each. A handful
  of incidental matches therefore never yields a confident verdict, and the
  four-way result can report both or neither.
- ``center_statistic``: mean corrected luminance and saturation over the
  central part of the frame decide between urine (bright, not overly
  saturated) and stool. Binary verdict only.
"""

import logging
from typing import Optional

import numpy as np

from config.analysis_config import AnalysisConfig, get_analysis_config
from services.interfaces import ContentTally, SampleType
from utils.color_conversion import luminance

logger = logging.getLogger(__name__)


class SampleTypeClassifier:
    """Turns content tallies (or a center statistic) into a sample-type verdict."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or get_analysis_config()
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def build_tally(urine_pixels: int, stool_pixels: int, in_region_samples: int) -> ContentTally:
        """Content tally with ratios over in-region samples (0 when there are none)."""
        if in_region_samples <= 0:
            return ContentTally(urine_pixels=urine_pixels, stool_pixels=stool_pixels)
        return ContentTally(
            urine_pixels=urine_pixels,
            stool_pixels=stool_pixels,
            urine_ratio=urine_pixels / in_region_samples,
            stool_ratio=stool_pixels / in_region_samples
        )

    def classify(self, tally: ContentTally) -> SampleType:
        """Ratio-gated four-way verdict."""
        urine_present = tally.urine_pixels > 0 and tally.urine_ratio >= self.config.min_urine_ratio
        stool_present = tally.stool_pixels > 0 and tally.stool_ratio >= self.config.min_stool_ratio

        if urine_present and stool_present:
            return 'both'
        if urine_present:
            return 'urine'
        if stool_present:
            return 'stool'
        return 'unknown'

    def classify_center_statistic(
        self,
        corrected_rgb: np.ndarray,
        saturation: np.ndarray,
        valid: np.ndarray,
        xs: np.ndarray,
        ys: np.ndarray,
        width: int,
        height: int
    ) -> SampleType:
        """
        Binary verdict from the central region of the frame.

        Args:
            corrected_rgb: (..., 3) corrected RGB of the sampled pixels
            saturation: HSL saturation (percent) of the same pixels
            valid: Boolean mask of usable (opaque) samples
            xs: x coordinate of each sample
            ys: y coordinate of each sample
            width: Image width
            height: Image height

        Returns:
            'urine' or 'stool', or 'unknown' when the central region is empty
        """
        cfg = self.config
        margin = (1.0 - cfg.center_region_fraction) / 2.0
        in_center = (
            valid
            & (xs >= width * margin) & (xs < width * (1.0 - margin))
            & (ys >= height * margin) & (ys < height * (1.0 - margin))
        )
        if not np.any(in_center):
            return 'unknown'

        center_rgb = corrected_rgb[in_center]
        mean_lum = float(np.mean(luminance(center_rgb[:, 0], center_rgb[:, 1], center_rgb[:, 2])))
        mean_sat = float(np.mean(saturation[in_center]))

        self.logger.debug(f'Center statistic: luminance={mean_lum:.1f}, saturation={mean_sat:.1f}')

        if mean_lum >= cfg.center_urine_min_luminance and mean_sat <= cfg.center_urine_max_saturation:
            return 'urine'
        return 'stool'
