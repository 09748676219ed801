"""
Tests for the video acquisition HTTP endpoints.
"""
import pytest

from conftest import FakeCompositor
from app import app
from shared.errors import EngineUnavailable, VendorUnavailable
from services.video_acquisition import FallbackOrchestrator
from services.video_compositor.local_renderer import LocalProceduralRenderer
from services.video_providers import ProviderName
from services.video_providers.mock_provider import MockVideoProvider


@pytest.fixture
def orchestrator(store, local_renderer):
    return FallbackOrchestrator(
        [
            MockVideoProvider(provider_name=ProviderName.LUMA, configured=False),
            MockVideoProvider(provider_name=ProviderName.HAIPER),
        ],
        local_renderer,
        store,
    )


@pytest.fixture
def client(orchestrator):
    app.config['TESTING'] = True
    app.config['VIDEO_ORCHESTRATOR'] = orchestrator
    with app.test_client() as client:
        yield client
    app.config.pop('VIDEO_ORCHESTRATOR', None)


class TestHealthEndpoint:
    def test_health_returns_200(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['service'] == 'video-acquisition'
        assert 'version' in data
        assert 'timestamp' in data


class TestGenerateEndpoint:
    def test_generate_success(self, client):
        response = client.post('/api/video/generate', json={
            'prompt': 'Tech startup launch event',
            'aspectRatio': '9:16',
            'style': 'Futuristic',
            'duration': 6,
        })
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['videoUrl'] == '/ai-generated-videos/haiper_test_001.mp4'
        metadata = data['metadata']
        assert metadata['producedBy'] == 'haiper'
        assert metadata['artifactId'] == 'haiper_test_001'
        assert metadata['aspectRatio'] == '9:16'
        assert metadata['style'] == 'futuristic'
        assert metadata['duration'] == 6
        assert metadata['concept']['name'] == 'tech'

    def test_generate_defaults(self, client):
        response = client.post('/api/video/generate', json={'prompt': 'a quiet forest'})
        assert response.status_code == 200
        metadata = response.get_json()['metadata']
        assert metadata['aspectRatio'] == '16:9'
        assert metadata['style'] == 'cinematic'
        assert metadata['duration'] == 5

    def test_generate_requires_prompt(self, client):
        response = client.post('/api/video/generate', json={'style': 'anime'})
        assert response.status_code == 400
        data = response.get_json()
        assert data['success'] is False
        assert 'prompt' in data['error']

    def test_generate_rejects_blank_prompt(self, client):
        response = client.post('/api/video/generate', json={'prompt': '   '})
        assert response.status_code == 400

    def test_generate_rejects_bad_aspect_ratio(self, client):
        response = client.post('/api/video/generate', json={'prompt': 'x', 'aspectRatio': '4:3'})
        assert response.status_code == 400

    def test_generate_rejects_bad_duration(self, client):
        for duration in (0, -1, 600):
            response = client.post('/api/video/generate', json={'prompt': 'x', 'duration': duration})
            assert response.status_code == 400

    def test_generate_requires_json(self, client):
        response = client.post('/api/video/generate', data='not json', content_type='text/plain')
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_total_failure_returns_500(self, client, store):
        app.config['VIDEO_ORCHESTRATOR'] = FallbackOrchestrator(
            [MockVideoProvider(submit_error=VendorUnavailable("mock", "down"))],
            LocalProceduralRenderer(compositor=FakeCompositor(error=EngineUnavailable("ffmpeg", "not found"))),
            store,
        )
        response = client.post('/api/video/generate', json={'prompt': 'anything'})
        assert response.status_code == 500
        data = response.get_json()
        assert data == {'success': False, 'error': data['error']}
        assert 'ffmpeg unavailable' in data['error']
        # per-provider attempts stay in the logs
        assert 'down' not in data['error']


class TestProvidersEndpoint:
    def test_lists_providers_in_order(self, client):
        response = client.get('/api/video/providers')
        assert response.status_code == 200
        data = response.get_json()
        assert data['order'] == ['luma', 'haiper']
        assert data['activeCount'] == 1
        assert data['providers'][0]['status'] == 'missing_key'
        assert data['localFallback'] == 'local-fallback'


class TestServeVideo:
    def test_serves_published_artifact(self, client):
        video_url = client.post('/api/video/generate', json={'prompt': 'a quiet forest'}).get_json()['videoUrl']
        response = client.get(video_url)
        assert response.status_code == 200
        assert response.mimetype == 'video/mp4'
        assert len(response.data) > 0
        response.close()

    def test_missing_file(self, client):
        assert client.get('/ai-generated-videos/missing.mp4').status_code == 404

    def test_path_traversal(self, client):
        assert client.get('/ai-generated-videos/..%2Fapp.py').status_code == 404
