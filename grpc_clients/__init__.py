"""
gRPC Client Package for the LND Gateway

This package provides the resilient client wrapper around lnd's Lightning
gRPC service: credential assembly, lazy reconnects and error normalization.
"""

from .grpc_client import ConnectionConfig, ClientHandle, build_channel_options
from .credentials import MacaroonMetadataPlugin, generate_credentials, read_certificate
from .schema import LightningSchema
from .lnd_client import LightningManager

__all__ = [
    # Connection primitives
    'ConnectionConfig',
    'ClientHandle',
    'build_channel_options',

    # Credentials
    'MacaroonMetadataPlugin',
    'generate_credentials',
    'read_certificate',

    # Schema
    'LightningSchema',

    # Manager
    'LightningManager',
]
