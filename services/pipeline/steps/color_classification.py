"""
HSL color classification against ordered profile tables.

Blood and content (urine/stool) profiles are matched independently. Within a
table the first matching profile wins, so overlapping ranges are resolved by
table order.
"""

import logging
from typing import Optional, Sequence, TypeVar

import numpy as np

from services.interfaces import ColorProfile, ContentProfile, HslRange
from utils.color_conversion import rgb_to_hsl, rgb_to_hsl_array

logger = logging.getLogger(__name__)

NO_MATCH = -1

ProfileT = TypeVar('ProfileT', bound=HslRange)


def first_match_indices(
    profiles: Sequence[HslRange],
    hue: np.ndarray,
    saturation: np.ndarray,
    lightness: np.ndarray
) -> np.ndarray:
    """
    Index of the first matching profile for each HSL value.

    Returns:
        int16 array shaped like hue, NO_MATCH where nothing matched
    """
    indices = np.full(np.shape(hue), NO_MATCH, dtype=np.int16)
    for idx, profile in enumerate(profiles):
        hit = (indices == NO_MATCH) & profile.matches(hue, saturation, lightness)
        indices[hit] = idx
    return indices


def first_match(
    profiles: Sequence[ProfileT],
    hue: float,
    saturation: float,
    lightness: float
) -> Optional[ProfileT]:
    """First profile matching a single HSL value, or None."""
    for profile in profiles:
        if profile.matches(hue, saturation, lightness):
            return profile
    return None


class ColorClassifier:
    """Classifies corrected RGB pixels into blood and content profiles."""

    def __init__(
        self,
        blood_profiles: Sequence[ColorProfile],
        content_profiles: Sequence[ContentProfile] = ()
    ):
        self.blood_profiles = tuple(blood_profiles)
        self.content_profiles = tuple(content_profiles)

    def classify_blood(self, r: float, g: float, b: float) -> Optional[ColorProfile]:
        """First blood profile matching a corrected RGB value, or None."""
        return first_match(self.blood_profiles, *rgb_to_hsl(r, g, b))

    def classify_content(self, r: float, g: float, b: float) -> Optional[ContentProfile]:
        """First content profile matching a corrected RGB value, or None."""
        return first_match(self.content_profiles, *rgb_to_hsl(r, g, b))

    def classify_blood_array(self, rgb: np.ndarray) -> np.ndarray:
        """Blood profile index per pixel of an (..., 3) array."""
        return first_match_indices(self.blood_profiles, *rgb_to_hsl_array(rgb))

    def classify_content_array(self, rgb: np.ndarray) -> np.ndarray:
        """Content profile index per pixel of an (..., 3) array."""
        return first_match_indices(self.content_profiles, *rgb_to_hsl_array(rgb))

    def classify_arrays(self, rgb: np.ndarray):
        """
        Blood and content indices from a single HSL conversion.

        Returns:
            Tuple of (blood_indices, content_indices, (hue, saturation, lightness))
        """
        hsl = rgb_to_hsl_array(rgb)
        blood = first_match_indices(self.blood_profiles, *hsl)
        content = first_match_indices(self.content_profiles, *hsl)
        return blood, content, hsl
