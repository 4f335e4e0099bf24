"""
LND gRPC Client Implementation

Wraps lnd's Lightning gRPC service with lazy client creation, credential
assembly and a normalized error taxonomy. Every call towards lnd should go
through `LightningManager.call`.
"""

import os
import asyncio
import logging
from typing import Optional, Dict, Any, Set, Union

import grpc
from google.protobuf.message import Message

from lightning_errors import (
    LightningCallError,
    classify_rpc_error,
    get_grpc_details,
    get_grpc_status_code,
)
from .credentials import check_macaroon_path, generate_credentials, read_certificate
from .grpc_client import ClientHandle, ConnectionConfig, DEFAULT_MAX_MESSAGE_LENGTH, build_channel_options
from .schema import LightningSchema

logger = logging.getLogger(__name__)

# lnd's TLS certificates use ECDSA keys, which grpc's default cipher list does not prefer
CIPHER_SUITES_ENV = "GRPC_SSL_CIPHER_SUITES"
LND_CIPHER_SUITES = "HIGH+ECDSA"


class LightningManager:
    """Lazily connected, self-healing client for lnd's Lightning service.

    The manager owns one client handle at a time. The handle is created on the
    first call and dropped as soon as any call through it fails, so the next
    call reconnects with fresh credentials. Failures reach the caller as
    `LightningCallError` carrying a `LightningError` kind; retrying is left to
    the caller.

    Args:
        proto_path: Path to the `.proto` file defining the Lightning service.
        lnd_host: Host and port of the lnd node (ex. "localhost:10009").
        lnd_cert_path: Path to the TLS certificate generated by lnd.
        macaroon_path: Path to the macaroon to attach to calls, or None.
    """

    def __init__(
        self,
        proto_path: str,
        lnd_host: str,
        lnd_cert_path: str,
        macaroon_path: Optional[str] = None,
        service_name: str = "Lightning",
        timeout_seconds: Optional[float] = None,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
    ):
        os.environ[CIPHER_SUITES_ENV] = LND_CIPHER_SUITES

        self.lnd_host = lnd_host
        self.lnd_cert = read_certificate(lnd_cert_path)
        self.macaroon_path = macaroon_path
        if macaroon_path:
            check_macaroon_path(macaroon_path)
        self.schema = LightningSchema.load(proto_path, service_name)

        self.timeout_seconds = timeout_seconds
        self.channel_options = build_channel_options(max_message_length)

        self.credentials: Optional[grpc.ChannelCredentials] = None
        self.active_client: Optional[ClientHandle] = None
        self.clients_created = 0
        self._draining: Set[ClientHandle] = set()
        self._closing: Set[asyncio.Future] = set()

    @classmethod
    def from_connection_config(cls, config: ConnectionConfig) -> "LightningManager":
        return cls(
            config.proto_path,
            config.target,
            config.tls_cert,
            config.macaroon,
            service_name=config.service_name,
            timeout_seconds=config.timeout_seconds,
            max_message_length=config.max_message_length,
        )

    def get_active_client(self) -> ClientHandle:
        """Return the cached client handle, creating it if there is none"""
        if self.active_client is None:
            logger.info("Recreating active client")
            self.credentials = generate_credentials(self.lnd_cert, self.macaroon_path)
            channel = grpc.aio.secure_channel(self.lnd_host, self.credentials, options=self.channel_options)
            self.active_client = ClientHandle(channel=channel, stub=self.schema.stub_class(channel))
            self.clients_created += 1
        return self.active_client

    async def call(self, method: str, parameters: Optional[Union[Dict[str, Any], Message]] = None) -> Message:
        """Call a Lightning gRPC method.

        Args:
            method: The gRPC method to call (ex. "getInfo" or "GetInfo").
            parameters: Request fields as a dict, a request message, or None.

        Returns:
            The response message, untouched.

        Raises:
            LightningCallError: The call failed; `.error` holds the kind.
            ValueError: `method` is not a unary method of the service.
        """
        descriptor = self.schema.resolve(method)
        request = self.schema.build_request(descriptor, parameters)

        client = self.get_active_client()
        rpc = getattr(client.stub, descriptor.name)
        client.in_flight += 1
        try:
            response = await rpc(request, timeout=self.timeout_seconds)
        except Exception as e:
            # drop the client before reporting, so the next call reconnects
            self._invalidate(client)
            raise LightningCallError(
                classify_rpc_error(e),
                method,
                status_code=get_grpc_status_code(e),
                details=get_grpc_details(e),
            ) from e
        finally:
            client.in_flight -= 1
            if client.drained:
                self._close_drained(client)

        logger.debug(f"{method}: {response}")
        return response

    def _invalidate(self, client: ClientHandle):
        # A late failure on an already replaced handle must not drop the new one
        if self.active_client is client:
            self.active_client = None
        if not client.retired:
            client.retired = True
            self._draining.add(client)

    def _close_drained(self, client: ClientHandle):
        # Nothing runs on the handle any more, so closing cancels no call
        self._draining.discard(client)
        task = asyncio.ensure_future(client.close())
        self._closing.add(task)
        task.add_done_callback(self._on_closed)

    def _on_closed(self, task: asyncio.Future):
        self._closing.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Error closing discarded LND channel: {task.exception()}")

    async def close(self):
        """Release the active channel and every discarded one still open.

        Unlike the background release of discarded handles, this shuts the
        channels down at once; calls still running on them are cancelled.
        """
        client = self.active_client
        self.active_client = None
        if client is not None:
            client.retired = True
            await client.close()
            logger.info(f"Closed connection to lnd at {self.lnd_host}")

        draining, self._draining = self._draining, set()
        for discarded in draining:
            await discarded.close()

        if self._closing:
            await asyncio.gather(*list(self._closing), return_exceptions=True)

    async def __aenter__(self) -> "LightningManager":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
