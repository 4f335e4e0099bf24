"""
LND Channel Credentials

TLS credentials come from lnd's self-signed certificate. When a macaroon is
configured, a metadata plugin attaches it to every call as the hex-encoded
`macaroon` header. The plugin reads the file on each call so a rotated
macaroon is picked up without rebuilding the client.
"""

import os
import logging
from typing import Optional

import grpc

from lightning_errors import LightningConfigurationError

logger = logging.getLogger(__name__)

MACAROON_METADATA_KEY = "macaroon"


def read_certificate(cert_path: str) -> bytes:
    """Read the lnd TLS certificate, failing if it is not where config says"""
    if not cert_path or not os.path.exists(cert_path):
        logger.error("Required lnd certificate path missing from application configuration.")
        raise LightningConfigurationError(f"lnd certificate file not found: {cert_path}")

    with open(cert_path, 'rb') as f:
        return f.read()


def check_macaroon_path(macaroon_path: str):
    if not os.path.exists(macaroon_path):
        logger.error(
            f"The specified macaroon file {macaroon_path} was not found. "
            "Please add the missing lnd macaroon file or update/remove the path in the application configuration."
        )
        raise LightningConfigurationError(f"lnd macaroon file not found: {macaroon_path}")


def read_macaroon_hex(macaroon_path: str) -> str:
    with open(macaroon_path, 'rb') as f:
        return f.read().hex()


class MacaroonMetadataPlugin(grpc.AuthMetadataPlugin):
    """Attaches the current macaroon to each outgoing call"""

    def __init__(self, macaroon_path: str):
        self.macaroon_path = macaroon_path

    def __call__(self, context, callback):
        try:
            macaroon = read_macaroon_hex(self.macaroon_path)
        except OSError as e:
            logger.error(f"Failed to read macaroon {self.macaroon_path}: {e}")
            callback((), e)
            return

        callback(((MACAROON_METADATA_KEY, macaroon),), None)


def generate_credentials(lnd_cert: bytes, macaroon_path: Optional[str] = None) -> grpc.ChannelCredentials:
    """Build channel credentials from the certificate and optional macaroon"""
    credentials = grpc.ssl_channel_credentials(lnd_cert)

    if macaroon_path:
        check_macaroon_path(macaroon_path)
        macaroon_credentials = grpc.metadata_call_credentials(
            MacaroonMetadataPlugin(macaroon_path),
            name=MACAROON_METADATA_KEY,
        )
        credentials = grpc.composite_channel_credentials(credentials, macaroon_credentials)

    return credentials
