"""
Tests for health check endpoints
"""
import pytest
import time
import psutil
from unittest.mock import Mock, patch
from health_checks import (
    get_system_metrics,
    get_uptime,
    check_storage,
    check_auth_provider
)


@pytest.mark.unit
class TestSystemMetrics:
    """Tests for system metrics collection"""

    def test_get_system_metrics_returns_dict(self):
        """Test that get_system_metrics returns a dictionary"""
        metrics = get_system_metrics()
        assert isinstance(metrics, dict)

    def test_system_metrics_has_cpu_and_memory(self):
        """Test that system metrics includes CPU and memory"""
        metrics = get_system_metrics()
        if metrics:
            assert isinstance(metrics['cpu_percent'], (int, float))
            assert 'memory_mb' in metrics
            assert 'memory_percent' in metrics

    @patch('health_checks.psutil.Process')
    def test_system_metrics_handles_errors(self, mock_process):
        """Test that get_system_metrics handles psutil errors gracefully"""
        mock_process.side_effect = psutil.AccessDenied()
        assert get_system_metrics() == {}


@pytest.mark.unit
class TestUptime:
    """Tests for uptime calculation"""

    def test_uptime_has_required_fields(self):
        """Test that uptime includes all required fields"""
        uptime = get_uptime()
        assert 'uptime_seconds' in uptime
        assert 'uptime_minutes' in uptime
        assert 'uptime_hours' in uptime
        assert uptime['started_at'].endswith('+00:00')

    def test_uptime_increases_over_time(self):
        """Test that uptime increases over time"""
        uptime1 = get_uptime()
        time.sleep(0.1)
        uptime2 = get_uptime()
        assert uptime2['uptime_seconds'] > uptime1['uptime_seconds']


@pytest.mark.unit
class TestStorageCheck:
    """Tests for storage availability check"""

    def test_local_storage_healthy(self, tmp_path):
        """Test a writable data folder"""
        mock_app = Mock()
        mock_app.config = {'STORAGE_MODE': 'local', 'DATA_FOLDER': str(tmp_path)}

        storage = check_storage(mock_app)

        assert storage['mode'] == 'local'
        assert storage['exists'] is True
        assert storage['healthy'] is True

    def test_local_storage_missing_folder(self, tmp_path):
        """Test a missing data folder"""
        mock_app = Mock()
        mock_app.config = {'STORAGE_MODE': 'local', 'DATA_FOLDER': str(tmp_path / 'missing')}

        storage = check_storage(mock_app)

        assert storage['exists'] is False
        assert storage['healthy'] is False

    @patch('database.connection.check_db_connection')
    def test_database_unreachable(self, mock_check):
        """Test that a failing database ping is reported, not raised"""
        mock_check.side_effect = RuntimeError('Cannot connect to database: refused')
        mock_app = Mock()
        mock_app.config = {'STORAGE_MODE': 'database'}

        storage = check_storage(mock_app)

        assert storage['healthy'] is False
        assert 'refused' in storage['error']

    @patch('database.connection.check_db_connection')
    def test_database_reachable(self, mock_check):
        """Test a healthy database"""
        mock_check.return_value = True
        mock_app = Mock()
        mock_app.config = {'STORAGE_MODE': 'database'}

        assert check_storage(mock_app) == {'mode': 'database', 'healthy': True}


@pytest.mark.unit
class TestAuthProviderCheck:
    """Tests for identity provider check"""

    def test_provider_configured(self):
        """Test that a configured provider is reported by name"""
        mock_app = Mock()
        mock_app.extensions = {'identity_provider': Mock(name='provider')}
        mock_app.extensions['identity_provider'].name = 'local'

        assert check_auth_provider(mock_app) == {'provider': 'local', 'healthy': True}

    def test_provider_missing(self):
        """Test an app without a provider"""
        mock_app = Mock()
        mock_app.extensions = {}

        assert check_auth_provider(mock_app) == {'provider': None, 'healthy': False}


@pytest.mark.integration
class TestHealthCheckEndpoints:
    """Integration tests for health check endpoints"""

    def test_health_endpoint(self, client):
        """Test that /health returns 200 without authentication"""
        response = client.get('/api/health')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['service'] == 'stitchlink'
        assert data['timestamp'].endswith('+00:00')

    def test_ping_endpoint_returns_pong(self, client):
        """Test that /ping endpoint returns 'pong'"""
        response = client.get('/api/ping')
        assert response.status_code == 200
        assert response.data == b'pong'

    def test_ready_endpoint(self, client):
        """Test that /ready checks storage and auth"""
        response = client.get('/api/ready')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'ready'
        assert data['checks']['storage']['mode'] == 'local'
        assert data['checks']['auth']['provider'] == 'local'

    def test_metrics_endpoint(self, client):
        """Test that /metrics reports uptime and storage mode"""
        response = client.get('/api/metrics')
        assert response.status_code == 200
        data = response.get_json()
        assert 'uptime_seconds' in data['uptime']
        assert data['version'] == '1.0.0'
        assert data['storage_mode'] == 'local'
        assert data['auth_provider'] == 'local'

    def test_security_headers(self, client):
        """Test that responses carry security headers"""
        response = client.get('/api/health')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'SAMEORIGIN'

    def test_unknown_route_is_json_404(self, client):
        """Test the JSON error handler"""
        response = client.get('/api/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['error'] == 'Not Found'
