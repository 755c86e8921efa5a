"""
Visualization utilities for bowl analysis results.

Findings are drawn with three redundant encodings so none of the information
depends on color perception alone: an outline shape glyph, a hatch texture
over the region, and a text label.
"""

from typing import Iterable, Optional, Sequence, Tuple

import cv2
import numpy as np

from services.interfaces import Finding
from utils.color_conversion import hex_to_bgr

LABEL_BACKGROUND = (39, 24, 17)  # BGR of #111827
MASK_COLOR = (0, 255, 255)
HATCH_SPACING = 8
HATCH_ALPHA = 0.45


def _clip_rect(
    x: int, y: int, w: int, h: int, img_w: int, img_h: int
) -> Optional[Tuple[int, int, int, int]]:
    """Clamp a rectangle to the image; None if nothing is left."""
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(img_w, x + w), min(img_h, y + h)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1 - x0, y1 - y0


def draw_hatch(
    image: np.ndarray,
    rect: Tuple[int, int, int, int],
    hatch: str,
    color: Tuple[int, int, int],
    spacing: int = HATCH_SPACING,
    alpha: float = HATCH_ALPHA
) -> None:
    """
    Blend a hatch pattern into a rectangle of the image (in place).

    Supported hatches: diagonal, crosshatch, horizontal, vertical, dots.
    Unknown names fall back to diagonal.
    """
    clipped = _clip_rect(*rect, image.shape[1], image.shape[0])
    if clipped is None:
        return
    x, y, w, h = clipped
    roi = image[y:y + h, x:x + w]
    layer = roi.copy()

    if hatch == 'horizontal':
        for yy in range(0, h, spacing):
            cv2.line(layer, (0, yy), (w, yy), color, 1)
    elif hatch == 'vertical':
        for xx in range(0, w, spacing):
            cv2.line(layer, (xx, 0), (xx, h), color, 1)
    elif hatch == 'dots':
        for yy in range(spacing // 2, h, spacing):
            for xx in range(spacing // 2, w, spacing):
                cv2.circle(layer, (xx, yy), 1, color, -1)
    else:
        # Diagonal lines run bottom-left to top-right; crosshatch adds the mirror
        for offset in range(-h, w, spacing):
            cv2.line(layer, (offset, h), (offset + h, 0), color, 1)
            if hatch == 'crosshatch':
                cv2.line(layer, (offset, 0), (offset + h, h), color, 1)

    cv2.addWeighted(layer, alpha, roi, 1.0 - alpha, 0, dst=roi)


def draw_shape_glyph(
    image: np.ndarray,
    shape: str,
    center: Tuple[int, int],
    size: int,
    color: Tuple[int, int, int],
    thickness: int = 2
) -> None:
    """
    Draw a profile's shape glyph centered on a point (in place).

    Supported shapes: circle, triangle, square, diamond, cross.
    """
    cx, cy = center
    r = max(2, size // 2)
    if shape == 'circle':
        cv2.circle(image, (cx, cy), r, color, thickness, cv2.LINE_AA)
    elif shape == 'triangle':
        pts = np.array([[cx, cy - r], [cx + r, cy + r], [cx - r, cy + r]], dtype=np.int32)
        cv2.polylines(image, [pts], True, color, thickness, cv2.LINE_AA)
    elif shape == 'square':
        cv2.rectangle(image, (cx - r, cy - r), (cx + r, cy + r), color, thickness)
    elif shape == 'diamond':
        pts = np.array([[cx, cy - r], [cx + r, cy], [cx, cy + r], [cx - r, cy]], dtype=np.int32)
        cv2.polylines(image, [pts], True, color, thickness, cv2.LINE_AA)
    else:
        cv2.line(image, (cx - r, cy - r), (cx + r, cy + r), color, thickness, cv2.LINE_AA)
        cv2.line(image, (cx - r, cy + r), (cx + r, cy - r), color, thickness, cv2.LINE_AA)


def draw_findings(
    image: np.ndarray,
    findings: Sequence[Finding],
    padding: int = 6
) -> np.ndarray:
    """
    Draw findings onto a copy of a BGR image.

    Each finding gets a hatched fill, an outline, its shape glyph in the top-left
    corner and a "<label> (<n>px)" text tag placed above the box, or below it
    when there is no room.

    Args:
        image: BGR image the findings were computed on
        findings: Findings to draw
        padding: Extra pixels around each bounding box

    Returns:
        Annotated copy of the image
    """
    vis = image.copy()
    img_h, img_w = vis.shape[:2]
    font_scale = max(0.45, img_w / 1400.0)
    glyph_size = max(12, int(img_w * 0.02))

    for finding in findings:
        color = hex_to_bgr(finding.profile.color)
        rx, ry = finding.x - padding, finding.y - padding
        rw, rh = finding.width + 2 * padding, finding.height + 2 * padding

        draw_hatch(vis, (rx, ry, rw, rh), finding.profile.hatch, color)
        cv2.rectangle(vis, (rx, ry), (rx + rw, ry + rh), color, 3)
        draw_shape_glyph(
            vis,
            finding.profile.shape,
            (rx + glyph_size // 2 + 4, ry + glyph_size // 2 + 4),
            glyph_size,
            color
        )

        label = f'{finding.profile.label} ({finding.pixel_count}px)'
        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, 2)
        tag_h = th + baseline + 8
        ly = ry - tag_h - 4 if ry - tag_h - 4 >= 0 else ry + rh + 4
        cv2.rectangle(vis, (rx, ly), (rx + tw + 16, ly + tag_h), LABEL_BACKGROUND, -1)
        cv2.putText(vis, label, (rx + 8, ly + th + 4),
                    cv2.FONT_HERSHEY_SIMPLEX, font_scale, color, 2, cv2.LINE_AA)

    return vis


def visualize_region_mask(
    image: np.ndarray,
    geometry: Tuple[float, float, float, float],
    color: Tuple[int, int, int] = MASK_COLOR
) -> np.ndarray:
    """Outline the analysis ellipse (cx, cy, rx, ry) and dim everything outside it."""
    vis = image.copy()
    cx, cy, rx, ry = (int(round(v)) for v in geometry)
    inside = np.zeros(vis.shape[:2], dtype=np.uint8)
    cv2.ellipse(inside, (cx, cy), (rx, ry), 0, 0, 360, 255, -1)
    vis[inside == 0] = (vis[inside == 0] * 0.4).astype(vis.dtype)
    cv2.ellipse(vis, (cx, cy), (rx, ry), 0, 0, 360, color, 2)
    return vis


def visualize_matched_pixels(
    image: np.ndarray,
    xs: Iterable[int],
    ys: Iterable[int],
    colors: Iterable[Tuple[int, int, int]]
) -> np.ndarray:
    """Mark matched sample positions with their profile color."""
    vis = image.copy()
    for x, y, color in zip(xs, ys, colors):
        cv2.circle(vis, (int(x), int(y)), 1, color, -1)
    return vis
