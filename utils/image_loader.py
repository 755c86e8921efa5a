"""
Image loading utilities for HealthScan CV Service.
Supports loading images from local paths, HTTP(S) URLs and uploaded bytes.
"""

import logging
from typing import Callable, Optional
from urllib.parse import urlparse

import cv2
import numpy as np
import requests

from services.interfaces import PixelBuffer

logger = logging.getLogger(__name__)

MIN_IMAGE_SIDE = 10
SUPPORTED_FORMATS = ('.jpg', '.jpeg', '.png', '.webp', '.bmp')


def _normalize_depth(image: np.ndarray) -> np.ndarray:
    """Reduce 16-bit images (e.g. some PNGs) to 8 bits per channel."""
    if image.dtype == np.uint16:
        return (image // 257).astype(np.uint8)
    if image.dtype != np.uint8:
        raise ValueError(f'Unsupported image depth: {image.dtype}')
    return image


def _validate(image: np.ndarray, source: str) -> np.ndarray:
    if image is None:
        raise ValueError(f'Failed to decode image: {source}')
    if image.size == 0:
        raise ValueError(f'Image is empty: {source}')

    height, width = image.shape[:2]
    if height < MIN_IMAGE_SIDE or width < MIN_IMAGE_SIDE:
        raise ValueError(f'Image too small: {width}x{height} pixels')

    image = _normalize_depth(image)
    logger.debug(f'Successfully loaded image: {width}x{height} pixels')
    return image


def _read(decode: Callable[[int], Optional[np.ndarray]], source: str) -> np.ndarray:
    """
    Decode with alpha when the image has it, otherwise with EXIF orientation.

    IMREAD_UNCHANGED keeps the alpha channel but ignores the EXIF orientation
    tag, so phone photos stored sideways would come back rotated.

    Args:
        decode: Function taking cv2 IMREAD_* flags and returning the decoded array
        source: Path or name used in error messages
    """
    image = decode(cv2.IMREAD_UNCHANGED)
    if image is None or (image.ndim == 3 and image.shape[2] == 4):
        return _validate(image, source)
    # ANYDEPTH keeps 16-bit data for _normalize_depth
    return _validate(decode(cv2.IMREAD_COLOR | cv2.IMREAD_ANYDEPTH), source)


def decode_image_bytes(data: bytes, source: str = 'upload') -> np.ndarray:
    """
    Decode encoded image bytes (JPEG, PNG, ...) into an OpenCV array.

    Alpha channels are preserved, so the result is BGR or BGRA. Images without
    alpha are rotated according to their EXIF orientation.

    Raises:
        ValueError: If the bytes are empty or cannot be decoded
    """
    if not data:
        raise ValueError(f'Image data is empty: {source}')
    encoded = np.frombuffer(data, np.uint8)
    return _read(lambda flags: cv2.imdecode(encoded, flags), source)


def load_image(image_path: str, timeout: int = 30) -> np.ndarray:
    """
    Load image from local path or URL.

    Args:
        image_path: Path to image (local file path or HTTP/HTTPS URL)
        timeout: Request timeout in seconds for URL downloads

    Returns:
        OpenCV image array (BGR, or BGRA when the image has alpha)

    Raises:
        ValueError: If image path is invalid or image cannot be loaded
    """
    if not image_path:
        raise ValueError('image_path cannot be empty')

    parsed = urlparse(image_path)
    if parsed.scheme in ('http', 'https'):
        logger.info(f'Loading image from URL: {image_path}')
        try:
            response = requests.get(image_path, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f'Failed to download image from URL: {e}')
            raise ValueError(f'Failed to load image from URL: {str(e)}') from e
        return decode_image_bytes(response.content, image_path)

    logger.info(f'Loading image from local path: {image_path}')
    return _read(lambda flags: cv2.imread(image_path, flags), image_path)


def load_pixel_buffer(image_path: str, timeout: int = 30) -> PixelBuffer:
    """Load an image and convert it to an RGBA PixelBuffer."""
    return PixelBuffer.from_bgr(load_image(image_path, timeout=timeout))


def validate_image_format(image_path: str) -> bool:
    """
    Validate that image path has a supported format.

    Args:
        image_path: Path to image file

    Returns:
        True if format is supported, False otherwise
    """
    return image_path.lower().endswith(SUPPORTED_FORMATS)


def get_image_info(image: np.ndarray) -> dict:
    """
    Get basic information about an image.

    Args:
        image: OpenCV image array

    Returns:
        Dictionary with image information (width, height, channels, dtype)
    """
    height, width = image.shape[:2]
    channels = image.shape[2] if len(image.shape) == 3 else 1

    return {
        'width': width,
        'height': height,
        'channels': channels,
        'dtype': str(image.dtype),
        'size_bytes': image.nbytes
    }
