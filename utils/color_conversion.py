"""
Color space conversion utilities for HealthScan CV Service.
Handles luminance, RGB to HSL and hex color conversions.
"""

import logging
from typing import Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114


def luminance(
    r: Union[np.ndarray, float],
    g: Union[np.ndarray, float],
    b: Union[np.ndarray, float]
) -> Union[np.ndarray, float]:
    """
    Perceived luminance of RGB values (0-255 scale).

    Args:
        r: Red channel value(s)
        g: Green channel value(s)
        b: Blue channel value(s)

    Returns:
        Luminance with the same shape as the inputs
    """
    return LUMA_R * r + LUMA_G * g + LUMA_B * b


def rgb_to_hsl_array(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Convert an array of RGB values to HSL.

    Uses OpenCV's floating-point HLS conversion, which yields hue in degrees
    and lightness/saturation in 0-1.

    Args:
        rgb: Array of shape (..., 3) with channels in 0-255 (any numeric dtype)

    Returns:
        Tuple of (hue, saturation, lightness) arrays of shape (...):
        - hue: degrees, 0-360 (0 for achromatic pixels)
        - saturation: percent, 0-100
        - lightness: percent, 0-100
    """
    rgb = np.asarray(rgb)
    shape = rgb.shape[:-1]
    if rgb.size == 0:
        empty = np.zeros(shape, dtype=np.float64)
        return empty, empty.copy(), empty.copy()

    pixels = (rgb.astype(np.float32) / 255.0).reshape(-1, 1, 3)
    hls = cv2.cvtColor(pixels, cv2.COLOR_RGB2HLS).reshape(shape + (3,)).astype(np.float64)

    hue = hls[..., 0]
    # float32 rounding can land a hue just below zero on 360
    hue = np.where(hue >= 360.0, hue - 360.0, hue)
    return hue, hls[..., 2] * 100.0, hls[..., 1] * 100.0


def rgb_to_hsl(r: float, g: float, b: float) -> Tuple[float, float, float]:
    """
    Convert a single RGB pixel to HSL.

    Args:
        r: Red value (0-255)
        g: Green value (0-255)
        b: Blue value (0-255)

    Returns:
        Tuple of (hue degrees, saturation %, lightness %)
    """
    h, s, l = rgb_to_hsl_array(np.array([[r, g, b]], dtype=np.float64))
    return float(h[0]), float(s[0]), float(l[0])


def hex_to_bgr(hex_color: str) -> Tuple[int, int, int]:
    """
    Convert a hex color string to an OpenCV BGR tuple.

    Args:
        hex_color: Color like "#ef4444" or "ef4444"

    Returns:
        (b, g, r) tuple of ints

    Raises:
        ValueError: If the string is not a 6-digit hex color
    """
    value = hex_color.lstrip('#')
    if len(value) != 6:
        raise ValueError(f'Invalid hex color: {hex_color}')
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return b, g, r
