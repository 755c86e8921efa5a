"""
Per-pixel color correction: global white balance followed by local shade scaling.

A single global gain cannot undo a shadow without also distorting the
unshadowed parts of the bowl, hence the two stages. The source pixels are never
modified; corrected values are computed on the fly.
"""

from typing import Tuple

import numpy as np

from services.interfaces import WhiteBalanceGains
from services.pipeline.steps.shade_correction import ShadeGrid


class PixelCorrector:
    """Maps raw RGB values at a given coordinate to corrected RGB."""

    def __init__(
        self,
        gains: WhiteBalanceGains,
        shade_grid: ShadeGrid,
        shade_factor_clamp: Tuple[float, float] = (0.7, 1.5)
    ):
        self.gains = gains
        self.shade_grid = shade_grid
        self.shade_factor_clamp = shade_factor_clamp

    def correct_array(self, rgb: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """
        Correct an array of pixels.

        Args:
            rgb: (..., 3) raw RGB values
            xs: x coordinates, broadcastable to rgb.shape[:-1]
            ys: y coordinates, broadcastable to rgb.shape[:-1]

        Returns:
            (..., 3) float64 corrected RGB clamped to [0, 255]
        """
        balanced = np.asarray(rgb, dtype=np.float64) * self.gains.as_array()
        factors = self.shade_grid.shade_factors(xs, ys, self.shade_factor_clamp)
        return np.clip(balanced * factors[..., None], 0.0, 255.0)

    def correct(self, r: float, g: float, b: float, x: float, y: float) -> Tuple[float, float, float]:
        """Correct a single pixel at (x, y)."""
        corrected = self.correct_array(
            np.array([[r, g, b]], dtype=np.float64),
            np.array([x]),
            np.array([y])
        )[0]
        return float(corrected[0]), float(corrected[1]), float(corrected[2])
