"""
Data model and type definitions for HealthScan CV Service.

This module defines the structures passed between pipeline steps and returned
to callers. Everything except PixelBuffer is created fresh for each analysis
run, and all result types are immutable.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple, Union

import cv2
import numpy as np

Severity = Literal["urgent", "warning", "caution"]
ContentKind = Literal["urine", "stool"]
SampleType = Literal["urine", "stool", "both", "unknown"]

ArrayOrFloat = Union[np.ndarray, float]


@dataclass(frozen=True)
class PixelBuffer:
    """
    Decoded still image as interleaved RGBA bytes.

    Owned by the caller; the pipeline only reads it. A zero width or height
    with empty data is allowed and analyzes to an empty result. A data length
    that does not match 4 * width * height is a precondition violation.
    """
    width: int
    height: int
    data: bytes = field(repr=False)

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f'Invalid buffer dimensions: {self.width}x{self.height}')
        expected = 4 * self.width * self.height
        if len(self.data) != expected:
            raise ValueError(
                f'Buffer length {len(self.data)} does not match '
                f'4*{self.width}*{self.height} = {expected}'
            )
        if not isinstance(self.data, bytes):
            object.__setattr__(self, 'data', bytes(self.data))

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def as_array(self) -> np.ndarray:
        """Read-only (height, width, 4) uint8 view of the buffer."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)

    @classmethod
    def from_rgba(cls, array: np.ndarray) -> 'PixelBuffer':
        """Build a buffer from an (H, W, 4) RGBA array."""
        if array.ndim != 3 or array.shape[2] != 4:
            raise ValueError(f'Expected (H, W, 4) RGBA array, got shape {array.shape}')
        height, width = array.shape[:2]
        data = np.ascontiguousarray(array, dtype=np.uint8).tobytes()
        return cls(width=width, height=height, data=data)

    @classmethod
    def from_bgr(cls, image: np.ndarray) -> 'PixelBuffer':
        """
        Build a buffer from an OpenCV image.

        Accepts grayscale, BGR and BGRA arrays (as returned by cv2.imread /
        cv2.imdecode). Images without alpha become fully opaque.
        """
        if image.ndim == 2:
            rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
        elif image.ndim == 3 and image.shape[2] == 3:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
        elif image.ndim == 3 and image.shape[2] == 4:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        else:
            raise ValueError(f'Unsupported image shape: {image.shape}')
        return cls.from_rgba(rgba)


@dataclass(frozen=True)
class HslRange:
    """Hue/saturation/lightness window shared by blood and content profiles."""
    label: str
    h_min: float
    h_max: float
    s_min: float
    s_max: float
    l_min: float
    l_max: float

    @property
    def wraps_hue(self) -> bool:
        return self.h_min > self.h_max

    def matches(self, h: ArrayOrFloat, s: ArrayOrFloat, l: ArrayOrFloat) -> Union[np.ndarray, bool]:
        """
        Test HSL values against all three ranges.

        Works on scalars (returns bool) or numpy arrays (returns a boolean
        array). When h_min > h_max the hue range wraps: h >= h_min or h <= h_max.
        """
        h = np.asarray(h, dtype=np.float64)
        s = np.asarray(s, dtype=np.float64)
        l = np.asarray(l, dtype=np.float64)
        if self.wraps_hue:
            hue_ok = (h >= self.h_min) | (h <= self.h_max)
        else:
            hue_ok = (h >= self.h_min) & (h <= self.h_max)
        result = (
            hue_ok
            & (s >= self.s_min) & (s <= self.s_max)
            & (l >= self.l_min) & (l <= self.l_max)
        )
        if result.ndim == 0:
            return bool(result)
        return result

    def ranges_dict(self) -> Dict[str, Any]:
        return {
            'hue': [self.h_min, self.h_max],
            'saturation': [self.s_min, self.s_max],
            'lightness': [self.l_min, self.l_max],
        }


@dataclass(frozen=True)
class ColorProfile(HslRange):
    """
    Named blood severity class.

    shape and hatch are the non-color encodings of the profile; together with
    the label they carry the finding's meaning without relying on color.
    """
    color: str
    severity: Severity
    shape: str
    hatch: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'color': self.color,
            'severity': self.severity,
            'shape': self.shape,
            'hatch': self.hatch,
            **self.ranges_dict(),
        }


@dataclass(frozen=True)
class ContentProfile(HslRange):
    """Color range used to recognize urine or stool, independent of blood profiles."""
    content: ContentKind

    def to_dict(self) -> Dict[str, Any]:
        return {'label': self.label, 'content': self.content, **self.ranges_dict()}


@dataclass(frozen=True)
class EllipseRegion:
    """Analysis ellipse expressed as fractions of the image width/height."""
    center_x: float = 0.5
    center_y: float = 0.56
    radius_x: float = 0.38
    radius_y: float = 0.44

    def to_dict(self) -> Dict[str, float]:
        return {
            'center_x': self.center_x,
            'center_y': self.center_y,
            'radius_x': self.radius_x,
            'radius_y': self.radius_y,
        }


@dataclass(frozen=True)
class WhiteBalanceGains:
    """Per-channel multipliers neutralizing the ambient color cast."""
    r: float = 1.0
    g: float = 1.0
    b: float = 1.0
    sample_count: int = 0  # white samples backing the estimate

    @classmethod
    def identity(cls, sample_count: int = 0) -> 'WhiteBalanceGains':
        return cls(1.0, 1.0, 1.0, sample_count)

    @property
    def is_identity(self) -> bool:
        return self.r == 1.0 and self.g == 1.0 and self.b == 1.0

    def as_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=np.float64)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'r': round(self.r, 4),
            'g': round(self.g, 4),
            'b': round(self.b, 4),
            'sample_count': self.sample_count,
        }


@dataclass(frozen=True)
class MatchedPixel:
    """A sampled pixel whose corrected color matched a blood profile."""
    x: int
    y: int
    profile: ColorProfile


@dataclass(frozen=True)
class Finding:
    """
    Bounding box of one cluster of matched blood pixels.

    Coordinates are absolute pixel coordinates in the analyzed image.
    """
    x: int
    y: int
    width: int
    height: int
    profile: ColorProfile
    pixel_count: int

    @property
    def label(self) -> str:
        return self.profile.label

    @property
    def severity(self) -> Severity:
        return self.profile.severity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'label': self.profile.label,
            'color': self.profile.color,
            'severity': self.profile.severity,
            'shape': self.profile.shape,
            'hatch': self.profile.hatch,
            'pixel_count': self.pixel_count,
        }


@dataclass(frozen=True)
class ContentTally:
    """Urine/stool matches among in-region samples."""
    urine_pixels: int = 0
    stool_pixels: int = 0
    urine_ratio: float = 0.0
    stool_ratio: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'urine_pixels': self.urine_pixels,
            'stool_pixels': self.stool_pixels,
            'urine_ratio': round(self.urine_ratio, 6),
            'stool_ratio': round(self.stool_ratio, 6),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Complete, immutable result of one analysis run."""
    findings: Tuple[Finding, ...] = ()
    blood_pixel_count: int = 0
    blood_ratio: float = 0.0
    in_region_sample_count: int = 0
    content: ContentTally = ContentTally()
    sample_type: SampleType = 'unknown'
    gains: WhiteBalanceGains = WhiteBalanceGains()
    flash_is_on: bool = False
    highest_severity: Optional[Severity] = None

    @classmethod
    def empty(cls, flash_is_on: bool = False) -> 'AnalysisResult':
        return cls(flash_is_on=flash_is_on)

    @property
    def has_findings(self) -> bool:
        return len(self.findings) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'findings': [finding.to_dict() for finding in self.findings],
            'finding_count': len(self.findings),
            'blood_pixel_count': self.blood_pixel_count,
            'blood_ratio': round(self.blood_ratio, 6),
            'in_region_sample_count': self.in_region_sample_count,
            'content': self.content.to_dict(),
            'sample_type': self.sample_type,
            'highest_severity': self.highest_severity,
            'flash_is_on': self.flash_is_on,
            'white_balance': self.gains.to_dict(),
        }
