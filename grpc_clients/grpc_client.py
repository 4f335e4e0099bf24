"""
gRPC Connection Primitives

This module holds the construction-time connection settings for the LND gRPC
wrapper and the client handle that binds an open channel to a service stub.
"""

import logging
from typing import Optional, Any, List, Tuple
from dataclasses import dataclass

import grpc

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGE_LENGTH = 4 * 1024 * 1024  # 4MB


@dataclass(frozen=True)
class ConnectionConfig:
    """Configuration for the LND gRPC connection"""
    host: str
    port: int
    tls_cert: str
    proto_path: str
    macaroon: Optional[str] = None
    service_name: str = "Lightning"
    timeout_seconds: Optional[float] = None
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}"


def build_channel_options(max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH) -> List[Tuple[str, Any]]:
    """Channel options shared by every handle the manager opens"""
    return [
        ('grpc.max_send_message_length', max_message_length),
        ('grpc.max_receive_message_length', max_message_length),
        ('grpc.keepalive_time_ms', 30000),
        ('grpc.keepalive_timeout_ms', 5000),
        ('grpc.keepalive_permit_without_calls', 1),
    ]


@dataclass(eq=False)
class ClientHandle:
    """An open channel to the node and the service stub bound to it"""
    channel: grpc.aio.Channel
    stub: Any
    in_flight: int = 0
    retired: bool = False
    closed: bool = False

    @property
    def drained(self) -> bool:
        """Retired, not yet closed, and no call is running on it any more"""
        return self.retired and not self.closed and self.in_flight == 0

    async def close(self, grace: Optional[float] = None):
        """Close the channel; calls still running on it are cancelled after `grace`"""
        if self.closed:
            return
        self.closed = True
        await self.channel.close(grace)
        logger.debug("Closed LND channel")
