"""
Bowl region mask.

Restricts analysis to an ellipse approximating the toilet bowl so that blood-
colored surfaces around it (floor, seat, bath mat) are never reported.
"""

from typing import Tuple

import numpy as np

from services.interfaces import EllipseRegion


class RegionMask:
    """Elliptical region of interest defined by fractions of the image size."""

    def __init__(self, region: EllipseRegion = EllipseRegion()):
        self.region = region

    def geometry(self, width: int, height: int) -> Tuple[float, float, float, float]:
        """Absolute (cx, cy, rx, ry) of the ellipse for an image size."""
        return (
            self.region.center_x * width,
            self.region.center_y * height,
            self.region.radius_x * width,
            self.region.radius_y * height,
        )

    def contains(self, x: float, y: float, width: int, height: int) -> bool:
        """True if (x, y) lies inside or on the ellipse."""
        cx, cy, rx, ry = self.geometry(width, height)
        if rx <= 0 or ry <= 0:
            return False
        dx = (x - cx) / rx
        dy = (y - cy) / ry
        return dx * dx + dy * dy <= 1.0

    def contains_array(self, xs: np.ndarray, ys: np.ndarray, width: int, height: int) -> np.ndarray:
        """Vectorized contains() over broadcastable coordinate arrays."""
        cx, cy, rx, ry = self.geometry(width, height)
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        if rx <= 0 or ry <= 0:
            return np.zeros(np.broadcast(xs, ys).shape, dtype=bool)
        dx = (xs - cx) / rx
        dy = (ys - cy) / ry
        return dx * dx + dy * dy <= 1.0
