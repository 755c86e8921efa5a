"""
Visual logging utilities for debugging analysis runs.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = 'tests/fixtures/analysis_logs'


class VisualLogger:
    """Collects annotated step images for one run and writes them to disk."""

    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize visual logger.

        Args:
            output_dir: Base directory for saving logs. If None, uses tests/fixtures/analysis_logs/
        """
        self.output_dir = output_dir or DEFAULT_LOG_DIR
        self.steps: List[Dict] = []
        self.run_name: Optional[str] = None
        self.image_name: Optional[str] = None

    def start_log(self, run_name: str, image_name: str):
        """Start a new visual log for a run."""
        self.run_name = run_name
        self.image_name = image_name
        self.steps = []

    def log_dir(self) -> Optional[Path]:
        """Directory the log is (or will be) written to."""
        if not self.run_name or not self.image_name:
            return None
        # Timestamped run names are used as-is, file names lose their extension
        if re.search(r'_\d{8}_\d{6}', self.image_name):
            image_base = self.image_name
        else:
            image_base = Path(self.image_name).stem
        return Path(self.output_dir) / image_base / self.run_name

    def add_step(
        self,
        step_name: str,
        description: str,
        image: np.ndarray,
        data: Optional[Dict] = None
    ):
        """
        Add a visualization step to the log.

        Args:
            step_name: Name of the step (used in filename)
            description: Human-readable description
            image: Annotated BGR image for this step
            data: Additional debug data (gains, counts, thresholds, ...)
        """
        self.steps.append({
            'step_name': step_name,
            'description': description,
            'image': image.copy(),
            'data': data or {}
        })

    def save_log(self, final_visualization: np.ndarray, result: Optional[Dict] = None) -> str:
        """
        Save visual log to disk.

        Args:
            final_visualization: Final annotated result image
            result: Analysis result (findings, sample type, gains) stored under 'result'

        Returns:
            Path to saved log directory, or '' if no run was started
        """
        log_dir = self.log_dir()
        if log_dir is None:
            logger.warning('Cannot save log: run_name or image_name not set')
            return ''
        log_dir.mkdir(parents=True, exist_ok=True)

        step_files = []
        for idx, step in enumerate(self.steps):
            step_filename = f'step_{idx:02d}_{step["step_name"]}.jpg'
            cv2.imwrite(str(log_dir / step_filename), step['image'])
            step_files.append(step_filename)

        cv2.imwrite(str(log_dir / 'final_result.jpg'), final_visualization)

        metadata = {
            'run_name': self.run_name,
            'image_name': self.image_name,
            'timestamp': datetime.now().isoformat(),
            'steps': [
                {
                    'step_name': step['step_name'],
                    'description': step['description'],
                    'image_file': filename,
                    'data': step['data']
                }
                for step, filename in zip(self.steps, step_files)
            ],
            'final_image': 'final_result.jpg'
        }
        if result is not None:
            metadata['result'] = result

        with open(log_dir / 'log.json', 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f'Visual log saved to: {log_dir}')
        return str(log_dir)
