"""
HealthScan CV Service - Flask Application
Computer Vision service for detecting blood in toilet bowl photos
"""

from flask import Flask, request, jsonify, g
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import cv2
import numpy as np
import logging
import os
import uuid
from dotenv import load_dotenv
from typing import Dict, Optional, Tuple

# Import services
from config.analysis_config import get_analysis_config
from services.pipeline import AnalysisPipeline
from services.utils.debug import DebugContext
from services.utils.lighting_check import LightingCheckService
from services.utils.severity_legend import build_legend
from config.color_profiles import ADVISORY_NOTE
from utils.image_loader import decode_image_bytes, load_image, validate_image_format

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create Flask app
app = Flask(__name__)
CORS(app)

# Determine if we're in production mode
is_production = os.getenv('FLASK_DEBUG', 'False').lower() != 'true'


# Request ID middleware for tracing
@app.before_request
def generate_request_id():
    """Generate or use existing request ID for tracing."""
    g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
    logger.debug(f'[Request {g.request_id}] {request.method} {request.path}')


@app.after_request
def add_request_id_header(response):
    """Add request ID to response headers."""
    if hasattr(g, 'request_id'):
        response.headers['X-Request-ID'] = g.request_id
    return response


def sanitize_error_message(error: Exception) -> str:
    """
    Sanitize error messages for production.

    In production, returns generic messages to prevent information disclosure.
    In development, returns full error details for debugging.

    Args:
        error: Exception object

    Returns:
        Sanitized error message string
    """
    if is_production:
        return "An internal error occurred. Please try again later."
    return str(error)


# Rate limiting configuration
limiter = Limiter(
    app=app,
    key_func=get_remote_address,
    default_limits=["200 per hour", "20 per minute"],
    storage_uri=os.getenv('RATELIMIT_STORAGE_URI', 'memory://'),
    headers_enabled=True
)

# Configuration
app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024  # 10MB max upload
DEBUG_LOG_DIR = os.getenv('HEALTHSCAN_DEBUG_LOG_DIR', 'logs/analysis')

# Initialize services
analysis_config = get_analysis_config()
analysis_pipeline = AnalysisPipeline(analysis_config)
lighting_check_service = LightingCheckService()


def error_response(message: str, error_code: str, status: int):
    return jsonify({
        'success': False,
        'error': message,
        'error_code': error_code
    }), status


def parse_bool(value, name: str) -> bool:
    """
    Parse a boolean flag from JSON (bool) or form data ('true'/'false', '1'/'0').

    Raises:
        ValueError: If the value is not a recognizable boolean
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', '1', 'yes', 'on'):
        return True
    if isinstance(value, str) and value.strip().lower() in ('false', '0', 'no', 'off', ''):
        return False
    raise ValueError(f'{name} must be a boolean')


def validate_image_path_request(data: Dict) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Validate a request that names an image by path or URL.

    Args:
        data: Request JSON data

    Returns:
        Tuple of (is_valid, error_message, error_code)
    """
    if not isinstance(data, dict):
        return False, 'Request must be JSON object', 'INVALID_PARAMETER'

    if 'image_path' not in data:
        return False, 'image_path is required', 'MISSING_PARAMETER'

    if not isinstance(data['image_path'], str) or not data['image_path'].strip():
        return False, 'image_path must be a non-empty string', 'INVALID_PARAMETER'

    for flag in ('flash', 'debug'):
        if flag in data and not isinstance(data[flag], bool):
            return False, f'{flag} must be a boolean', 'INVALID_PARAMETER'

    return True, None, None


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'service': 'healthscan-cv-service',
        'opencv_version': cv2.__version__,
        'numpy_version': np.__version__
    })


@app.route('/analyze', methods=['POST'])
@limiter.limit("10 per minute")  # More restrictive for heavy image processing
def analyze_image():
    """
    Analyze a toilet bowl photo for blood.

    Pipeline: Image → White Balance → Shade Correction → Masked Scan → Clustering

    Request, either:
    - JSON: image_path (local path or URL), flash (bool, default false),
      debug (bool, default false)
    - multipart/form-data: image (file), flash ('true'/'false')

    Returns:
    - Findings with bounding boxes, labels, severities and encodings
    - Sample type, blood pixel statistics and white balance gains
    - Summary headline and advisory note
    - Processing time
    """
    request_id = getattr(g, 'request_id', 'unknown')

    try:
        if 'image' in request.files:
            upload = request.files['image']
            image_name = upload.filename or 'upload'
            if upload.filename and not validate_image_format(upload.filename):
                return error_response(
                    f'Unsupported image format: {upload.filename}',
                    'UNSUPPORTED_FORMAT',
                    400
                )
            try:
                flash_is_on = parse_bool(request.form.get('flash', 'false'), 'flash')
            except ValueError as e:
                return error_response(str(e), 'INVALID_PARAMETER', 400)
            debug_enabled = False

            logger.info(f'[Request {request_id}] Analyzing upload: {image_name}, flash: {flash_is_on}')
            try:
                image = decode_image_bytes(upload.read(), image_name)
            except ValueError as e:
                logger.error(f'Failed to decode upload: {e}')
                return error_response(f'Failed to load image: {str(e)}', 'IMAGE_LOAD_ERROR', 400)
        else:
            data = request.get_json(silent=True)
            if not data:
                return error_response('No JSON data or image upload provided', 'MISSING_PARAMETER', 400)

            is_valid, error_msg, error_code = validate_image_path_request(data)
            if not is_valid:
                return error_response(error_msg, error_code, 400)

            image_path = data['image_path']
            image_name = os.path.basename(image_path) or 'unknown'
            flash_is_on = data.get('flash', False)
            debug_enabled = data.get('debug', False)

            logger.info(f'[Request {request_id}] Analyzing image: {image_path}, flash: {flash_is_on}')
            try:
                image = load_image(image_path)
            except ValueError as e:
                logger.error(f'Failed to load image: {e}')
                return error_response(f'Failed to load image: {str(e)}', 'IMAGE_LOAD_ERROR', 400)

        debug = None
        if debug_enabled:
            debug = DebugContext(enabled=True, output_dir=DEBUG_LOG_DIR, image_name=image_name)

        result = analysis_pipeline.process_image(
            image=image,
            flash_is_on=flash_is_on,
            image_name=image_name,
            debug=debug
        )

        if not result.get('success'):
            return error_response(
                result.get('error', 'Processing failed'),
                result.get('error_code', 'PROCESSING_ERROR'),
                422
            )

        return jsonify({
            'success': True,
            'data': result['data']
        })

    except Exception as e:
        logger.error(f'[Request {request_id}] Error in analyze_image: {str(e)}', exc_info=True)
        return error_response(sanitize_error_message(e), 'INTERNAL_ERROR', 500)


@app.route('/check-lighting', methods=['POST'])
@limiter.limit("60 per minute")  # Polled while the camera is live
def check_lighting():
    """
    Check whether a frame is bright enough, but not too bright, to analyze.

    Request (JSON):
    - image_path: Path to frame (local path or URL)

    Returns:
    - status: dim, ok or bright
    - value: average luminance of the central crop (0-255)
    - can_capture and a recommendation for the user
    """
    request_id = getattr(g, 'request_id', 'unknown')

    try:
        data = request.get_json(silent=True)
        if not data:
            return error_response('No JSON data provided', 'MISSING_PARAMETER', 400)

        is_valid, error_msg, error_code = validate_image_path_request(data)
        if not is_valid:
            return error_response(error_msg, error_code, 400)

        logger.info(f'[Request {request_id}] Checking lighting: {data["image_path"]}')
        result = lighting_check_service.check_image(data['image_path'])

        if not result.get('success'):
            return error_response(
                result.get('error', 'Unknown error'),
                result.get('error_code', 'IMAGE_LOAD_ERROR'),
                400
            )

        return jsonify(result)

    except Exception as e:
        logger.error(f'[Request {request_id}] Error in check_lighting: {str(e)}', exc_info=True)
        return error_response(sanitize_error_message(e), 'INTERNAL_ERROR', 500)


@app.route('/severity-legend', methods=['GET'])
def severity_legend():
    """Severity tiers with descriptions and the shape/hatch encoding of each profile."""
    return jsonify({
        'success': True,
        'data': {
            'tiers': build_legend(analysis_config.blood_profiles),
            'advisory': ADVISORY_NOTE
        }
    })


if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'

    logger.info(f'Starting HealthScan CV Service on port {port}')
    app.run(host='0.0.0.0', port=port, debug=debug)
