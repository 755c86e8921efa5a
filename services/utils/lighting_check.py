"""
Lighting check service for HealthScan CV Service.

Measures the average luminance of the central part of a frame so a client can
block capture while the bathroom is too dark or the frame is washed out.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Literal, Optional

import numpy as np

from services.interfaces import PixelBuffer
from utils.color_conversion import luminance
from utils.image_loader import load_pixel_buffer

logger = logging.getLogger(__name__)

LightingStatus = Literal["dim", "ok", "bright"]

RECOMMENDATIONS = {
    'dim': 'Move closer to a light source or turn on the bathroom light.',
    'bright': 'Step back or turn off direct overhead light to reduce glare.',
    'ok': 'Lighting OK',
}


@dataclass(frozen=True)
class LightingReading:
    status: LightingStatus
    value: float  # average luminance, 0-255

    @property
    def can_capture(self) -> bool:
        return self.status == 'ok'

    def to_dict(self) -> Dict:
        return {
            'status': self.status,
            'value': round(self.value, 2),
            'level_percent': int(round(self.value / 255 * 100)),
            'can_capture': self.can_capture,
            'recommendation': RECOMMENDATIONS[self.status],
        }


class LightingCheckService:
    """Classifies frame brightness as dim, ok or bright."""

    DIM_MAX = 38.0
    BRIGHT_MIN = 220.0
    CROP_FRACTION = 0.6
    STRIDE = 4

    def __init__(self, dim_max: Optional[float] = None, bright_min: Optional[float] = None):
        self.dim_max = self.DIM_MAX if dim_max is None else dim_max
        self.bright_min = self.BRIGHT_MIN if bright_min is None else bright_min
        self.logger = logging.getLogger(__name__)

    def measure(self, buffer: PixelBuffer) -> Optional[LightingReading]:
        """
        Measure the central crop of a frame.

        Every STRIDE-th pixel of the crop (flat order) contributes its luminance.

        Returns:
            LightingReading, or None for an empty frame
        """
        if buffer.is_empty:
            return None

        pixels = buffer.as_array()
        height, width = pixels.shape[:2]
        margin = (1.0 - self.CROP_FRACTION) / 2.0
        x0, y0 = int(width * margin), int(height * margin)
        crop_w = max(1, int(width * self.CROP_FRACTION))
        crop_h = max(1, int(height * self.CROP_FRACTION))

        crop = pixels[y0:y0 + crop_h, x0:x0 + crop_w, :3]
        samples = crop.reshape(-1, 3)[::self.STRIDE].astype(np.float64)
        avg = float(np.mean(luminance(samples[:, 0], samples[:, 1], samples[:, 2])))

        if avg < self.dim_max:
            status = 'dim'
        elif avg > self.bright_min:
            status = 'bright'
        else:
            status = 'ok'
        return LightingReading(status=status, value=avg)

    def check_image(self, image_path: str) -> Dict:
        """
        Check lighting of an image file or URL.

        Returns:
            {'success': True, 'data': {...}} or an error dict with error_code
        """
        try:
            buffer = load_pixel_buffer(image_path)
        except ValueError as e:
            self.logger.error(f'Error loading image for lighting check: {e}')
            return {
                'success': False,
                'error': str(e),
                'error_code': 'IMAGE_LOAD_ERROR'
            }

        reading = self.measure(buffer)
        if reading is None:
            return {
                'success': False,
                'error': 'Image is empty',
                'error_code': 'IMAGE_LOAD_ERROR'
            }

        self.logger.debug(f'Lighting {reading.status} (avg luminance {reading.value:.1f})')
        return {
            'success': True,
            'data': reading.to_dict()
        }
