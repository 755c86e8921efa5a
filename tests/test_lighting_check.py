"""
Unit tests for the lighting check service.
"""

import cv2
import pytest

from services.interfaces import PixelBuffer
from services.utils.lighting_check import LightingCheckService


class TestLightingCheck:
    """Test cases for LightingCheckService."""

    @pytest.fixture(autouse=True)
    def _canvas(self, make_buffer, make_rgba):
        self.make_buffer = make_buffer
        self.make_rgba = make_rgba

    def setup_method(self):
        self.service = LightingCheckService()

    @pytest.mark.parametrize('value,status', [(20, 'dim'), (128, 'ok'), (240, 'bright')])
    def test_status(self, value, status):
        reading = self.service.measure(self.make_buffer(fill=(value, value, value)))
        assert reading.status == status
        assert reading.value == pytest.approx(value)
        assert reading.can_capture is (status == 'ok')

    def test_near_thresholds_are_ok(self):
        assert self.service.measure(self.make_buffer(fill=(40, 40, 40))).status == 'ok'
        assert self.service.measure(self.make_buffer(fill=(218, 218, 218))).status == 'ok'

    def test_only_center_is_measured(self):
        # Bright border, dark central 60%
        buffer = self.make_buffer(fill=(255, 255, 255), patches=[(40, 40, 120, 120, (20, 20, 20))])
        assert self.service.measure(buffer).status == 'dim'

    def test_empty_frame(self):
        assert self.service.measure(PixelBuffer(0, 0, b'')) is None

    def test_reading_dict(self):
        data = self.service.measure(self.make_buffer(fill=(10, 10, 10))).to_dict()
        assert data['status'] == 'dim'
        assert data['can_capture'] is False
        assert data['recommendation'].startswith('Move closer to a light source')
        assert data['level_percent'] == 4

    def test_check_image_from_file(self, tmp_path):
        path = tmp_path / 'frame.png'
        cv2.imwrite(str(path), cv2.cvtColor(self.make_rgba(fill=(128, 128, 128)), cv2.COLOR_RGBA2BGR))
        result = self.service.check_image(str(path))
        assert result['success'] is True
        assert result['data']['status'] == 'ok'

    def test_check_image_missing_file(self, tmp_path):
        result = self.service.check_image(str(tmp_path / 'missing.png'))
        assert result['success'] is False
        assert result['error_code'] == 'IMAGE_LOAD_ERROR'
