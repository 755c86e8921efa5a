"""
White-balance estimation for HealthScan CV Service.

Tungsten bulbs push bathroom photos orange, cool LEDs push them blue; an orange
cast is indistinguishable from brown blood without correction. The porcelain
rim is the one surface we can assume is white, so we estimate its color and
compute per-channel gains that map it to a neutral target.
"""

import logging
from typing import Optional

import numpy as np

from config.analysis_config import AnalysisConfig, get_analysis_config
from services.interfaces import WhiteBalanceGains
from utils.color_conversion import luminance

logger = logging.getLogger(__name__)


class WhiteBalanceService:
    """Estimates global white-balance gains from the brightest near-white pixels."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize white balance service.

        Args:
            config: Analysis configuration (defaults from environment if omitted)
        """
        self.config = config or get_analysis_config()
        self.logger = logging.getLogger(__name__)

    def estimate_gains(self, pixels: np.ndarray, flash_is_on: bool = False) -> WhiteBalanceGains:
        """
        Estimate per-channel gains for an RGBA image.

        Candidates are every Nth pixel (flat order) whose luminance is in the
        top percentile of the sample and whose channels are all bright. The
        per-channel median of the candidates is robust to blood or water
        outliers. With too few candidates the identity gains are returned.

        Args:
            pixels: (H, W, 4) RGBA uint8 array
            flash_is_on: Whether the camera flash fired (raises the target white)

        Returns:
            WhiteBalanceGains clamped to config.gain_clamp
        """
        cfg = self.config
        samples = pixels.reshape(-1, pixels.shape[-1])[::cfg.white_balance_stride, :3]
        samples = samples.astype(np.float64)

        if samples.shape[0] == 0:
            return WhiteBalanceGains.identity()

        lum = luminance(samples[:, 0], samples[:, 1], samples[:, 2])
        threshold_idx = int(np.floor(len(lum) * cfg.white_percentile))
        lum_threshold = np.sort(lum)[threshold_idx]

        is_white = (lum >= lum_threshold) & np.all(samples >= cfg.white_min_channel, axis=1)
        white_count = int(np.count_nonzero(is_white))

        if white_count < cfg.white_min_samples:
            self.logger.debug(
                f'Insufficient white evidence ({white_count} < {cfg.white_min_samples}), '
                f'using identity gains'
            )
            return WhiteBalanceGains.identity(sample_count=white_count)

        medians = np.median(samples[is_white], axis=0)
        target = cfg.target_white(flash_is_on)
        low, high = cfg.gain_clamp
        gains = np.clip(target / medians, low, high)

        self.logger.debug(
            f'White balance: medians={medians.tolist()}, target={target}, '
            f'gains={gains.tolist()}, samples={white_count}'
        )
        return WhiteBalanceGains(
            r=float(gains[0]),
            g=float(gains[1]),
            b=float(gains[2]),
            sample_count=white_count
        )
