"""
Pytest configuration and fixtures
"""

import pytest
import sys
import os
from unittest.mock import patch

# Add project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tests.test_config import PROTO_PATH, configure_test_environment
from tests.fakes import FakeTransport


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Configure test environment for all tests"""
    configure_test_environment()


@pytest.fixture
def fake_transport():
    """Patch grpc.aio.secure_channel so managers talk to a FakeTransport"""
    transport = FakeTransport()
    with patch('grpc_clients.lnd_client.grpc.aio.secure_channel', side_effect=transport.open_channel):
        yield transport


@pytest.fixture
def proto_path():
    return PROTO_PATH


@pytest.fixture
def tls_cert_path(tmp_path):
    """A certificate file; grpc only parses it during the TLS handshake"""
    cert_path = tmp_path / "tls.cert"
    cert_path.write_bytes(b"-----BEGIN CERTIFICATE-----\nMIIBtest\n-----END CERTIFICATE-----\n")
    return str(cert_path)


@pytest.fixture
def macaroon_path(tmp_path):
    macaroon = tmp_path / "admin.macaroon"
    macaroon.write_bytes(bytes.fromhex("0201036c6e64"))
    return str(macaroon)


@pytest.fixture
def lightning_schema(proto_path):
    from grpc_clients import LightningSchema
    return LightningSchema.load(proto_path)


@pytest.fixture
def lightning_manager(proto_path, tls_cert_path, fake_transport):
    """Manager without a macaroon, wired to the fake transport"""
    from grpc_clients import LightningManager
    return LightningManager(proto_path, "localhost:10009", tls_cert_path)
