"""
Debug utilities for HealthScan CV Service.

Provides unified debugging interface with visual logging and step tracking.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import cv2
import numpy as np

from services.interfaces import ColorProfile, Finding
from utils.color_conversion import hex_to_bgr
from utils.detection_visualization import draw_findings, visualize_matched_pixels, visualize_region_mask
from utils.visual_logger import VisualLogger

logger = logging.getLogger(__name__)


@dataclass
class DebugStep:
    """Represents a single debug step in the pipeline."""
    step_id: str
    name: str
    description: str
    data: Dict[str, Any] = field(default_factory=dict)
    has_image: bool = False


class DebugContext:
    """
    Manages debug state and visual logging throughout the pipeline.

    Usage:
        debug = DebugContext(enabled=True, output_dir="logs", image_name="bowl.jpg")
        debug.add_step("01_white_balance", "White Balance", image, {"r": 1.1})
        debug.save_log()
    """

    def __init__(
        self,
        enabled: bool = False,
        output_dir: Optional[str] = None,
        image_name: str = "unknown",
        run_name: str = "analysis",
        step_filter: Optional[List[str]] = None
    ):
        """
        Initialize debug context.

        Args:
            enabled: Whether debug mode is enabled
            output_dir: Directory for saving visual logs
            image_name: Name of the image being processed
            run_name: Sub-directory grouping this run's log files
            step_filter: Optional list of step IDs to log (None = log all)
        """
        self.enabled = enabled
        self.image_name = image_name
        self.run_name = run_name
        self.step_filter = step_filter
        self.steps: List[DebugStep] = []
        self.visual_logger: Optional[VisualLogger] = None

        if enabled:
            self.visual_logger = VisualLogger(output_dir)
            self.visual_logger.start_log(run_name, image_name)

    def is_enabled(self) -> bool:
        return self.enabled

    def add_step(
        self,
        step_id: str,
        name: str,
        image: Optional[np.ndarray] = None,
        data: Optional[Dict[str, Any]] = None,
        description: str = ""
    ) -> None:
        """
        Add a debug step.

        Args:
            step_id: Unique identifier for the step (e.g., "02_shade_grid")
            name: Human-readable step name
            image: Optional BGR image to log
            data: Optional metadata dictionary
            description: Optional description of the step
        """
        if not self.enabled:
            return
        if self.step_filter and step_id not in self.step_filter:
            return

        clean_data = {key: self._clean_value(value) for key, value in (data or {}).items()}
        self.steps.append(DebugStep(
            step_id=step_id,
            name=name,
            description=description,
            data=clean_data,
            has_image=image is not None
        ))

        if self.visual_logger and image is not None:
            try:
                self.visual_logger.add_step(step_id, description or name, image, clean_data)
            except cv2.error as e:
                logger.warning(f"Failed to add visual step {step_id}: {e}")

    def _clean_value(self, value):
        """Recursively clean a value for JSON serialization."""
        if hasattr(value, 'to_dict') and callable(getattr(value, 'to_dict')):
            return self._clean_value(value.to_dict())
        if isinstance(value, np.ndarray):
            return value.tolist() if value.size < 100 else f"<ndarray shape={value.shape}>"
        if isinstance(value, np.bool_):
            return bool(value)
        if isinstance(value, np.integer):
            return int(value)
        if isinstance(value, np.floating):
            return float(value)
        if isinstance(value, (list, tuple)):
            return [self._clean_value(v) for v in value]
        if isinstance(value, dict):
            return {k: self._clean_value(v) for k, v in value.items()}
        return value

    def save_log(
        self,
        final_image: Optional[np.ndarray] = None,
        result: Optional[Dict[str, Any]] = None
    ) -> Optional[str]:
        """
        Save the debug log.

        Args:
            final_image: Optional final image to save. If None, uses the last step's image.
            result: Optional analysis result recorded alongside the steps in log.json

        Returns:
            Path to saved log, or None if disabled or nothing to save
        """
        if not self.enabled or not self.visual_logger:
            return None

        if final_image is None:
            if not self.visual_logger.steps:
                logger.warning("No steps available to use as final image")
                return None
            final_image = self.visual_logger.steps[-1]['image']

        try:
            clean_result = self._clean_value(result) if result is not None else None
            return self.visual_logger.save_log(final_image, clean_result) or None
        except OSError as e:
            logger.warning(f"Failed to save debug log: {e}", exc_info=True)
            return None

    @property
    def log_dir(self) -> Optional[Path]:
        return self.visual_logger.log_dir() if self.visual_logger else None

    def get_summary(self) -> Dict[str, Any]:
        """
        Get debug summary as dictionary.

        Returns:
            Dictionary with debug information
        """
        return {
            "enabled": self.enabled,
            "image_name": self.image_name,
            "run_name": self.run_name,
            "steps": [
                {
                    "step_id": step.step_id,
                    "name": step.name,
                    "description": step.description,
                    "data": step.data,
                    "has_image": step.has_image
                }
                for step in self.steps
            ],
            "step_count": len(self.steps),
        }

    def visualize_region(self, image: np.ndarray, geometry) -> np.ndarray:
        """Create visualization of the analysis ellipse."""
        return visualize_region_mask(image, geometry)

    def visualize_shade_grid(self, image: np.ndarray, cell_averages: np.ndarray) -> np.ndarray:
        """Overlay the shade grid with each cell's average luminance."""
        vis = image.copy()
        h, w = vis.shape[:2]
        size = cell_averages.shape[0]
        for gy in range(size):
            for gx in range(size):
                x0, y0 = int(gx * w / size), int(gy * h / size)
                x1, y1 = int((gx + 1) * w / size), int((gy + 1) * h / size)
                cv2.rectangle(vis, (x0, y0), (x1, y1), (255, 255, 0), 1)
                cv2.putText(vis, f"{cell_averages[gy, gx]:.0f}", (x0 + 3, y0 + 14),
                            cv2.FONT_HERSHEY_SIMPLEX, 0.4, (255, 255, 0), 1)
        return vis

    def visualize_matches(
        self,
        image: np.ndarray,
        xs: np.ndarray,
        ys: np.ndarray,
        profile_indices: np.ndarray,
        profiles: Sequence[ColorProfile]
    ) -> np.ndarray:
        """Mark matched blood samples in their profile color."""
        colors = [hex_to_bgr(profile.color) for profile in profiles]
        return visualize_matched_pixels(image, xs, ys, [colors[int(i)] for i in profile_indices])

    def visualize_findings(self, image: np.ndarray, findings: Sequence[Finding]) -> np.ndarray:
        """Create visualization of final findings."""
        vis = draw_findings(image, findings)
        text = f"Findings: {len(findings)}"
        cv2.putText(vis, text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 255, 0), 2)
        return vis

    def visualize_error(
        self,
        image: np.ndarray,
        error_message: str,
        error_code: Optional[str] = None
    ) -> np.ndarray:
        """Create visualization for error state."""
        vis = image.copy()
        text = error_message
        if error_code:
            text = f"{error_code}: {error_message}"
        cv2.putText(vis, text, (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 0, 255), 2)
        return vis
