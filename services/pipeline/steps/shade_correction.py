"""
Local shade correction for HealthScan CV Service.

The user's body or the toilet lid often casts a shadow over part of the bowl.
Blood inside that shadow drops below detection thresholds or drifts toward
black. We measure average luminance on a coarse grid after white balance, then
scale each pixel so shadowed cells are brought back toward the image-wide
average.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from config.analysis_config import AnalysisConfig, get_analysis_config
from services.interfaces import WhiteBalanceGains
from utils.color_conversion import luminance

logger = logging.getLogger(__name__)

# Reported for cells (or whole images) with no samples
NEUTRAL_LUMINANCE = 128.0


@dataclass(frozen=True, eq=False)
class ShadeGrid:
    """
    Coarse luminance map of one image.

    cell_averages and cell_counts are (size, size) arrays indexed [gy, gx].
    """
    size: int
    cell_width: float
    cell_height: float
    cell_averages: np.ndarray
    cell_counts: np.ndarray
    global_average: float

    def cell_of(self, x: float, y: float) -> Tuple[int, int]:
        """(gx, gy) grid cell containing a pixel coordinate."""
        gx = min(int(math.floor(x / self.cell_width)), self.size - 1)
        gy = min(int(math.floor(y / self.cell_height)), self.size - 1)
        return gx, gy

    def cell_indices(self, xs: np.ndarray, ys: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Vectorized cell_of()."""
        gx = np.minimum(np.floor(np.asarray(xs) / self.cell_width).astype(np.intp), self.size - 1)
        gy = np.minimum(np.floor(np.asarray(ys) / self.cell_height).astype(np.intp), self.size - 1)
        return gx, gy

    def cell_average(self, x: float, y: float) -> float:
        gx, gy = self.cell_of(x, y)
        return float(self.cell_averages[gy, gx])

    def shade_factors(self, xs: np.ndarray, ys: np.ndarray, clamp: Tuple[float, float]) -> np.ndarray:
        """
        Brightness scale for each coordinate: global / cell average, clamped.

        A zero cell average is treated as 1 to keep the ratio finite.
        """
        gx, gy = self.cell_indices(xs, ys)
        cell_lum = self.cell_averages[gy, gx]
        cell_lum = np.where(cell_lum == 0, 1.0, cell_lum)
        return np.clip(self.global_average / cell_lum, clamp[0], clamp[1])

    def shade_factor(self, x: float, y: float, clamp: Tuple[float, float]) -> float:
        cell_lum = self.cell_average(x, y) or 1.0
        return min(clamp[1], max(clamp[0], self.global_average / cell_lum))

    def to_dict(self):
        return {
            'size': self.size,
            'cell_width': self.cell_width,
            'cell_height': self.cell_height,
            'global_average': round(self.global_average, 3),
            'cell_averages': np.round(self.cell_averages, 2).tolist(),
        }


class ShadeCorrectionService:
    """Builds the shade grid used for local brightness normalization."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or get_analysis_config()
        self.logger = logging.getLogger(__name__)

    def build_grid(self, pixels: np.ndarray, gains: WhiteBalanceGains) -> ShadeGrid:
        """
        Build the shade grid for an RGBA image.

        Every Nth row and column is white-balanced (channels capped at 255),
        converted to luminance and accumulated per cell and globally.

        Args:
            pixels: (H, W, 4) RGBA uint8 array with H, W > 0
            gains: White-balance gains to apply before measuring

        Returns:
            ShadeGrid with empty cells reported as neutral luminance
        """
        cfg = self.config
        height, width = pixels.shape[:2]
        size = cfg.shade_grid_size
        stride = cfg.shade_stride
        cell_width = width / size
        cell_height = height / size

        sample = pixels[::stride, ::stride, :3].astype(np.float64)
        balanced = np.minimum(255.0, sample * gains.as_array())
        lum = luminance(balanced[..., 0], balanced[..., 1], balanced[..., 2])

        xs = np.arange(0, width, stride)
        ys = np.arange(0, height, stride)
        gx = np.minimum(np.floor(xs / cell_width).astype(np.intp), size - 1)
        gy = np.minimum(np.floor(ys / cell_height).astype(np.intp), size - 1)
        flat_idx = (gy[:, None] * size + gx[None, :]).ravel()

        sums = np.bincount(flat_idx, weights=lum.ravel(), minlength=size * size)
        counts = np.bincount(flat_idx, minlength=size * size)

        averages = np.full(size * size, NEUTRAL_LUMINANCE)
        filled = counts > 0
        averages[filled] = sums[filled] / counts[filled]

        total = int(counts.sum())
        global_average = float(sums.sum() / total) if total > 0 else NEUTRAL_LUMINANCE

        empty_cells = int(np.count_nonzero(~filled))
        if empty_cells:
            self.logger.debug(f'Shade grid has {empty_cells} empty cells, using neutral luminance')

        return ShadeGrid(
            size=size,
            cell_width=cell_width,
            cell_height=cell_height,
            cell_averages=averages.reshape(size, size),
            cell_counts=counts.reshape(size, size),
            global_average=global_average
        )
