"""
Lightning Error Taxonomy

This module defines the small, stable set of error kinds surfaced to callers of
the LND gRPC wrapper, along with the helpers that classify raw gRPC failures
into those kinds.
"""

import logging
from typing import Optional
from enum import Enum

import grpc
from grpc import StatusCode

logger = logging.getLogger(__name__)


class LightningError(Enum):
    """Normalized error kinds for Lightning calls"""
    WALLET_LOCKED = "WALLET_LOCKED"
    NODE_UNREACHABLE = "NODE_UNREACHABLE"
    UNCATEGORIZED = "UNCATEGORIZED"


class LightningConfigurationError(Exception):
    """Broken deployment: missing certificate, missing macaroon or unusable proto.

    Raised at construction time only. These are never retried; the hosting
    process decides whether to abort startup.
    """


class LightningCallError(Exception):
    """A Lightning RPC call failed with a normalized error kind"""

    def __init__(
        self,
        error: LightningError,
        method: str,
        status_code: Optional[StatusCode] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(f"{method}: {error.value}")
        self.error = error
        self.method = method
        self.status_code = status_code
        self.details = details

    @property
    def original_error(self) -> Optional[BaseException]:
        return self.__cause__


_STATUS_TO_ERROR = {
    StatusCode.UNIMPLEMENTED: LightningError.WALLET_LOCKED,
    StatusCode.UNAVAILABLE: LightningError.NODE_UNREACHABLE,
}


def get_grpc_status_code(error: BaseException) -> Optional[StatusCode]:
    """Extract the gRPC status code from an exception, if it carries one.

    Args:
        error: The exception raised by a gRPC call.

    Returns:
        The `grpc.StatusCode` for gRPC errors, otherwise `None`.
    """
    if not isinstance(error, grpc.RpcError):
        return None

    code = getattr(error, "code", None)
    if not callable(code):
        return None
    return code()


def get_grpc_details(error: BaseException) -> Optional[str]:
    """Extract the status details string from a gRPC error"""
    details = getattr(error, "details", None)
    if isinstance(error, grpc.RpcError) and callable(details):
        return details()
    return None


def classify_rpc_error(error: BaseException) -> LightningError:
    """Map a transport failure to a `LightningError` kind.

    UNIMPLEMENTED is what lnd answers while its wallet is still locked, since
    the Lightning service is not registered until unlock. Everything that is
    neither that nor UNAVAILABLE is logged in full, because the caller only
    ever sees UNCATEGORIZED.
    """
    status_code = get_grpc_status_code(error)
    kind = _STATUS_TO_ERROR.get(status_code)
    if kind is not None:
        return kind

    logger.error(f"Unrecognized gRPC error: {error!r}")
    return LightningError.UNCATEGORIZED
