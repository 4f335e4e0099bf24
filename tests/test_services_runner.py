"""
Test cases for the gateway bootstrap
"""

import os

import pytest
import grpc
from unittest.mock import patch

from core import services_runner
from core.config import Config
from grpc_clients import LightningManager
from lightning_errors import LightningConfigurationError
from tests.fakes import rpc_error


@pytest.fixture
def lnd_env(tls_cert_path, proto_path, tmp_path):
    env = {
        'LND_HOST': 'localhost',
        'LND_PORT': '10009',
        'LND_TLS_CERT': tls_cert_path,
        'LND_PROTO_PATH': proto_path,
        'LOG_DIR': str(tmp_path / 'logs'),
    }
    with patch.dict(os.environ, env):
        os.environ.pop('LND_MACAROON', None)
        yield env


class TestCreateLightningManager:
    """Test cases for create_lightning_manager"""

    def test_builds_from_environment(self, lnd_env, fake_transport):
        manager = services_runner.create_lightning_manager(Config())

        assert isinstance(manager, LightningManager)
        assert manager.lnd_host == "localhost:10009"
        assert manager.macaroon_path is None
        assert manager.active_client is None

    def test_missing_certificate_setting(self, lnd_env):
        """Test an unset certificate path is reported as a configuration error"""
        with patch.dict(os.environ):
            os.environ.pop('LND_TLS_CERT')
            with pytest.raises(LightningConfigurationError, match="LND_TLS_CERT"):
                services_runner.create_lightning_manager(Config())

    def test_missing_certificate_file(self, lnd_env, tmp_path):
        with patch.dict(os.environ, {'LND_TLS_CERT': str(tmp_path / 'nope.cert')}):
            with pytest.raises(LightningConfigurationError):
                services_runner.create_lightning_manager(Config())


class TestProbeNode:
    """Test cases for probe_node"""

    @pytest.mark.asyncio
    async def test_probe_success(self, lightning_manager, fake_transport):
        fake_transport.respond("GetInfo", lightning_manager.schema.protos.GetInfoResponse(identity_pubkey="03ab"))
        assert await services_runner.probe_node(lightning_manager) is True

    @pytest.mark.asyncio
    async def test_probe_failure(self, lightning_manager, fake_transport):
        """Test a locked or unreachable node does not abort startup"""
        fake_transport.respond("GetInfo", rpc_error(grpc.StatusCode.UNAVAILABLE))
        assert await services_runner.probe_node(lightning_manager) is False


class TestMain:
    """Test cases for main"""

    def test_exits_on_configuration_error(self, lnd_env, tmp_path):
        """Test a broken deployment stops the process with exit code 1"""
        with patch.dict(os.environ, {'LND_MACAROON': str(tmp_path / 'missing.macaroon')}), \
                patch('core.services_runner.setup_logging'):
            with pytest.raises(SystemExit) as exc_info:
                services_runner.main(Config())

        assert exc_info.value.code == 1

    def test_starts_with_valid_configuration(self, lnd_env, fake_transport):
        with patch('core.services_runner.setup_logging'):
            services_runner.main(Config())

        assert fake_transport.channels == []

    def test_probe_on_start(self, lnd_env, fake_transport):
        """Test the optional startup probe issues one getInfo call"""
        fake_transport.respond("GetInfo", rpc_error(grpc.StatusCode.UNIMPLEMENTED))
        with patch.dict(os.environ, {'LND_PROBE_ON_START': 'true'}), \
                patch('core.services_runner.setup_logging'):
            services_runner.main(Config())

        assert [method for _, method, _, _ in fake_transport.requests] == ["GetInfo"]
        fake_transport.channels[0].close.assert_awaited()
