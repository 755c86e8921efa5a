"""
Pipeline service for analyzing toilet bowl images.

Orchestrates: White Balance → Shade Grid → Masked Pixel Scan (correct +
classify) → Evidence Gate → Clustering → Sample Type
"""

import logging
import time
from typing import Dict, Optional

import cv2
import numpy as np

from config.analysis_config import AnalysisConfig, get_analysis_config
from services.interfaces import AnalysisResult, PixelBuffer
from services.pipeline.steps.clustering import ClusterEngine
from services.pipeline.steps.color_classification import NO_MATCH, ColorClassifier
from services.pipeline.steps.pixel_correction import PixelCorrector
from services.pipeline.steps.region_mask import RegionMask
from services.pipeline.steps.sample_type import SampleTypeClassifier
from services.pipeline.steps.shade_correction import ShadeCorrectionService
from services.pipeline.steps.white_balance import WhiteBalanceService
from services.utils.debug import DebugContext
from services.utils.severity_legend import highest_severity, summarize
from utils.detection_visualization import draw_findings

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """
    Main pipeline service that analyzes a single bowl image.

    Pipeline: Image → Gains → Shade Grid → Scan → Gate → Clusters → Sample Type

    The pipeline only holds its immutable configuration and the step services
    built from it, so one instance can analyze any number of images.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize pipeline service.

        Args:
            config: Analysis configuration (defaults from environment if omitted)
        """
        self.config = config or get_analysis_config()
        self.white_balance = WhiteBalanceService(self.config)
        self.shade_correction = ShadeCorrectionService(self.config)
        self.region_mask = RegionMask(self.config.region_mask)
        self.classifier = ColorClassifier(self.config.blood_profiles, self.config.content_profiles)
        self.sample_type = SampleTypeClassifier(self.config)
        self.cluster_engine = ClusterEngine(
            self.config.blood_profiles,
            cell_size=self.config.cluster_cell_size,
            cell_threshold=self.config.cluster_cell_threshold,
            min_total=self.config.cluster_min_total
        )
        # Lookup tables from content profile index to kind; the trailing False
        # catches NO_MATCH (-1)
        self._urine_lut = np.array(
            [p.content == 'urine' for p in self.config.content_profiles] + [False], dtype=bool
        )
        self._stool_lut = np.array(
            [p.content == 'stool' for p in self.config.content_profiles] + [False], dtype=bool
        )
        self.logger = logging.getLogger(__name__)

    def analyze(
        self,
        buffer: PixelBuffer,
        flash_is_on: bool = False,
        debug: Optional[DebugContext] = None
    ) -> AnalysisResult:
        """
        Analyze one RGBA image.

        Args:
            buffer: Decoded image
            flash_is_on: Whether the camera flash fired
            debug: Optional DebugContext for visual logging

        Returns:
            Immutable AnalysisResult
        """
        if buffer.is_empty:
            self.logger.warning(f'Empty image ({buffer.width}x{buffer.height}), nothing to analyze')
            return AnalysisResult.empty(flash_is_on)

        cfg = self.config
        pixels = buffer.as_array()
        height, width = pixels.shape[:2]
        debug_image = cv2.cvtColor(pixels, cv2.COLOR_RGBA2BGR) if debug and debug.is_enabled() else None

        # Step 1: Global white balance
        gains = self.white_balance.estimate_gains(pixels, flash_is_on)
        if debug_image is not None:
            balanced = np.clip(debug_image * gains.as_array()[::-1], 0, 255).astype(np.uint8)
            debug.add_step(
                '01_white_balance', 'White Balance', balanced, gains.to_dict(),
                f'Gains r={gains.r:.3f} g={gains.g:.3f} b={gains.b:.3f} '
                f'from {gains.sample_count} white samples'
            )

        # Step 2: Local shade grid
        shade_grid = self.shade_correction.build_grid(pixels, gains)
        corrector = PixelCorrector(gains, shade_grid, cfg.shade_factor_clamp)
        if debug_image is not None:
            debug.add_step(
                '02_shade_grid', 'Shade Grid',
                debug.visualize_shade_grid(debug_image, shade_grid.cell_averages),
                shade_grid.to_dict(),
                f'Global average luminance {shade_grid.global_average:.1f}'
            )

        # Step 3: Masked scan of every Nth row/column
        stride = cfg.sample_stride
        ys, xs = np.mgrid[0:height:stride, 0:width:stride]
        samples = pixels[::stride, ::stride]
        valid = samples[..., 3] >= cfg.min_alpha
        in_region = valid & self.region_mask.contains_array(xs, ys, width, height)
        in_region_count = int(np.count_nonzero(in_region))

        if debug_image is not None:
            geometry = self.region_mask.geometry(width, height)
            debug.add_step(
                '03_region_mask', 'Region Mask',
                debug.visualize_region(debug_image, geometry),
                {'geometry': list(geometry), 'in_region_samples': in_region_count,
                 'valid_samples': int(np.count_nonzero(valid))}
            )

        corrected = corrector.correct_array(samples[..., :3], xs, ys)
        blood_idx, content_idx, (_, saturation, _) = self.classifier.classify_arrays(corrected)

        blood_hit = in_region & (blood_idx != NO_MATCH)
        blood_count = int(np.count_nonzero(blood_hit))
        blood_ratio = blood_count / in_region_count if in_region_count else 0.0

        urine_count = int(np.count_nonzero(in_region & self._urine_lut[content_idx]))
        stool_count = int(np.count_nonzero(in_region & self._stool_lut[content_idx]))
        tally = SampleTypeClassifier.build_tally(urine_count, stool_count, in_region_count)

        if debug_image is not None:
            debug.add_step(
                '04_matched_pixels', 'Matched Pixels',
                debug.visualize_matches(debug_image, xs[blood_hit], ys[blood_hit],
                                        blood_idx[blood_hit], cfg.blood_profiles),
                {'blood_pixel_count': blood_count, 'blood_ratio': blood_ratio, 'content': tally}
            )

        # Step 4: Evidence gate, then clustering
        findings = ()
        if blood_count < cfg.min_blood_pixels or blood_ratio < cfg.min_blood_ratio:
            self.logger.debug(
                f'Blood evidence below threshold: {blood_count} pixels, ratio {blood_ratio:.5f}'
            )
        else:
            findings = self.cluster_engine.cluster_arrays(
                xs[blood_hit], ys[blood_hit], blood_idx[blood_hit], width, height
            )

        # Step 5: Sample type
        if cfg.sample_type_method == 'center_statistic':
            sample_type = self.sample_type.classify_center_statistic(
                corrected, saturation, valid, xs, ys, width, height
            )
        else:
            sample_type = self.sample_type.classify(tally)

        result = AnalysisResult(
            findings=findings,
            blood_pixel_count=blood_count,
            blood_ratio=blood_ratio,
            in_region_sample_count=in_region_count,
            content=tally,
            sample_type=sample_type,
            gains=gains,
            flash_is_on=flash_is_on,
            highest_severity=highest_severity(findings)
        )

        if debug_image is not None:
            debug.add_step(
                '05_findings', 'Findings',
                debug.visualize_findings(debug_image, findings),
                {'findings': list(findings), 'blood_pixel_count': blood_count,
                 'blood_ratio': blood_ratio, 'content': tally, 'sample_type': sample_type},
                summarize(result)['headline']
            )

        self.logger.info(
            f'Analyzed {width}x{height} image: {len(findings)} findings, '
            f'{blood_count}/{in_region_count} blood samples, sample type {sample_type}'
        )
        return result

    def process_image(
        self,
        image: np.ndarray,
        flash_is_on: bool = False,
        image_name: str = "unknown",
        debug: Optional[DebugContext] = None
    ) -> Dict:
        """
        Process an OpenCV image through the full pipeline.

        Args:
            image: Input image (BGR, BGRA or grayscale)
            flash_is_on: Whether the camera flash fired
            image_name: Name of image for logging
            debug: Optional DebugContext for visual logging

        Returns:
            Result dictionary with success status and data or error
        """
        start_time = time.time()
        try:
            buffer = PixelBuffer.from_bgr(image)
        except ValueError as e:
            self.logger.error(f'Cannot convert {image_name} for analysis: {e}')
            failure = {
                'success': False,
                'error': str(e),
                'error_code': 'INVALID_IMAGE'
            }
            if debug and debug.is_enabled():
                # The input cannot be shown as BGR, so the error goes on a blank panel
                panel = np.zeros((120, 640, 3), dtype=np.uint8)
                debug.add_step(
                    '00_invalid_image',
                    'Invalid Image',
                    debug.visualize_error(panel, str(e), 'INVALID_IMAGE'),
                    {'error': str(e), 'error_code': 'INVALID_IMAGE', 'shape': list(getattr(image, 'shape', ()))}
                )
                log_path = debug.save_log()
                if log_path:
                    failure['debug_log'] = log_path
            return failure

        result = self.analyze(buffer, flash_is_on=flash_is_on, debug=debug)

        data = result.to_dict()
        data['summary'] = summarize(result)
        data['image_width'] = buffer.width
        data['image_height'] = buffer.height
        data['processing_time_ms'] = int((time.time() - start_time) * 1000)

        if debug and debug.is_enabled():
            final = draw_final(image, result) if result.findings and image.ndim == 3 else None
            log_path = debug.save_log(final, result=data)
            if log_path:
                data['debug_log'] = log_path

        return {
            'success': True,
            'data': data
        }


def draw_final(image: np.ndarray, result: AnalysisResult) -> np.ndarray:
    """Final overlay for debug logs; BGRA input is flattened to BGR."""
    if image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return draw_findings(image, result.findings)


def analyze(
    buffer: PixelBuffer,
    flash_is_on: bool = False,
    config: Optional[AnalysisConfig] = None
) -> AnalysisResult:
    """Analyze one image with a freshly built pipeline."""
    return AnalysisPipeline(config).analyze(buffer, flash_is_on=flash_is_on)
