"""
Tests for the Flask HTTP layer.
"""

import io

import cv2
import numpy as np
import pytest

from app import app, limiter

BLOOD_RED_BGR = (15, 15, 140)


def bowl_image(with_blood=True):
    image = np.full((200, 200, 3), 230, dtype=np.uint8)
    if with_blood:
        image[102:122, 90:110] = BLOOD_RED_BGR
    return image


class TestApp:
    """Test cases for the HTTP endpoints."""

    def setup_method(self):
        limiter.enabled = False
        app.config['TESTING'] = True
        self.client = app.test_client()

    @pytest.fixture
    def image_path(self, tmp_path):
        path = tmp_path / 'bowl.png'
        cv2.imwrite(str(path), bowl_image())
        return str(path)

    @pytest.fixture
    def gray_path(self, tmp_path):
        path = tmp_path / 'frame.png'
        cv2.imwrite(str(path), np.full((120, 160, 3), 128, dtype=np.uint8))
        return str(path)

    def test_health(self):
        response = self.client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['service'] == 'healthscan-cv-service'

    def test_request_id_is_echoed(self):
        response = self.client.get('/health', headers={'X-Request-ID': 'abc-123'})
        assert response.headers['X-Request-ID'] == 'abc-123'

    def test_analyze_requires_body(self):
        response = self.client.post('/analyze')
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'MISSING_PARAMETER'

    def test_analyze_requires_image_path(self):
        response = self.client.post('/analyze', json={'flash': True})
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'MISSING_PARAMETER'

    @pytest.mark.parametrize('body', [
        {'image_path': ''},
        {'image_path': 42},
        {'image_path': 'bowl.png', 'flash': 'yes'},
    ])
    def test_analyze_invalid_parameters(self, body):
        response = self.client.post('/analyze', json=body)
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'INVALID_PARAMETER'

    def test_analyze_missing_image(self, tmp_path):
        response = self.client.post('/analyze', json={'image_path': str(tmp_path / 'missing.png')})
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'IMAGE_LOAD_ERROR'

    def test_analyze_image_path(self, image_path):
        response = self.client.post('/analyze', json={'image_path': image_path, 'flash': False})
        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['data']['finding_count'] == 1
        assert body['data']['findings'][0]['label'] == 'Bright Red'
        assert body['data']['highest_severity'] == 'urgent'

    def test_analyze_upload(self):
        ok, encoded = cv2.imencode('.png', bowl_image(with_blood=False))
        assert ok
        response = self.client.post(
            '/analyze',
            data={'image': (io.BytesIO(encoded.tobytes()), 'bowl.png'), 'flash': 'true'},
            content_type='multipart/form-data'
        )
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['finding_count'] == 0
        assert data['flash_is_on'] is True

    def test_analyze_upload_bad_flash(self):
        ok, encoded = cv2.imencode('.png', bowl_image())
        response = self.client.post(
            '/analyze',
            data={'image': (io.BytesIO(encoded.tobytes()), 'bowl.png'), 'flash': 'maybe'},
            content_type='multipart/form-data'
        )
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'INVALID_PARAMETER'

    def test_analyze_upload_unsupported_format(self):
        ok, encoded = cv2.imencode('.png', bowl_image())
        response = self.client.post(
            '/analyze',
            data={'image': (io.BytesIO(encoded.tobytes()), 'bowl.gif')},
            content_type='multipart/form-data'
        )
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'UNSUPPORTED_FORMAT'

    def test_analyze_upload_garbage(self):
        response = self.client.post(
            '/analyze',
            data={'image': (io.BytesIO(b'not an image'), 'bowl.png')},
            content_type='multipart/form-data'
        )
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'IMAGE_LOAD_ERROR'

    def test_check_lighting(self, gray_path):
        response = self.client.post('/check-lighting', json={'image_path': gray_path})
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['status'] == 'ok'
        assert data['can_capture'] is True

    def test_check_lighting_validation(self):
        response = self.client.post('/check-lighting', json={})
        assert response.status_code == 400

    def test_severity_legend(self):
        response = self.client.get('/severity-legend')
        assert response.status_code == 200
        data = response.get_json()['data']
        assert [tier['severity'] for tier in data['tiers']] == ['urgent', 'warning', 'caution']
        assert data['advisory']
