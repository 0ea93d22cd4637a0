"""Connection handling shared by every part of the Dapr client."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Sequence

import grpc

logger = logging.getLogger(__name__)

DAPR_PORT_DEFAULT = "50001"
DAPR_PORT_ENV_VAR = "DAPR_GRPC_PORT"
TRACEPARENT_KEY = "traceparent"
API_TOKEN_KEY = "dapr-api-token"
API_TOKEN_ENV_VAR = "DAPR_API_TOKEN"
CLIENT_DEFAULT_TIMEOUT_SECONDS = 5
CLIENT_TIMEOUT_ENV_VAR = "DAPR_CLIENT_TIMEOUT_SECONDS"

Metadata = tuple[tuple[str, str], ...]

_INTEGER = re.compile(r"[+-]?\d+")


class DaprError(Exception):
    """Raised when a Dapr client operation fails."""


class WaitTimeoutError(DaprError):
    """Raised when the sidecar does not become reachable in time."""

    def __init__(self, message: str = "timed out waiting for client connectivity") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class _Empty:
    """An empty request message."""


def get_client_timeout_seconds() -> int:
    """Return the connection timeout in seconds configured in the environment."""
    raw = os.environ.get(CLIENT_TIMEOUT_ENV_VAR, "")
    if not raw:
        return CLIENT_DEFAULT_TIMEOUT_SECONDS
    if not _INTEGER.fullmatch(raw):
        raise DaprError(f"invalid syntax for {CLIENT_TIMEOUT_ENV_VAR}: {raw!r}")
    value = int(raw)
    if value <= 0:
        raise DaprError("incorrect value")
    return value


def get_grpc_port() -> str:
    """Return the sidecar gRPC port from the environment, or the default."""
    return os.environ.get(DAPR_PORT_ENV_VAR, "") or DAPR_PORT_DEFAULT


def get_api_token() -> str:
    """Return the Dapr API token from the environment, or an empty string."""
    return os.environ.get(API_TOKEN_ENV_VAR, "")


class ClientBase:
    """Holds the gRPC stub, the channel and the API token of a client."""

    def __init__(self, stub: Any, connection: Any = None, auth_token: str | None = None) -> None:
        self._stub = stub
        self._connection = connection
        self._auth_token = get_api_token() if auth_token is None else auth_token

    def __enter__(self) -> "ClientBase":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def with_auth_token(self, token: str) -> None:
        """Set the API token; an empty string removes it."""
        self._auth_token = token

    def with_trace_id(self, trace_id: str, metadata: Sequence[tuple[str, str]] | None = None) -> Metadata:
        """Return call metadata carrying the given trace parent ID."""
        base = tuple(metadata or ())
        if not trace_id:
            return base
        logger.info("using trace parent ID: %s", trace_id)
        kept = tuple(pair for pair in base if pair[0] != TRACEPARENT_KEY)
        return kept + ((TRACEPARENT_KEY, trace_id),)

    def call_metadata(self) -> Metadata:
        """Return the metadata sent with every authenticated call."""
        if not self._auth_token:
            return ()
        return ((API_TOKEN_KEY, self._auth_token),)

    def grpc_client(self) -> Any:
        """Return the underlying gRPC stub."""
        return self._stub

    def grpc_client_conn(self) -> Any:
        """Return the underlying gRPC channel."""
        return self._connection

    def shutdown(self) -> None:
        """Ask the sidecar to shut down."""
        try:
            self._stub.Shutdown(_Empty(), metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error shutting down the sidecar: {exc}") from exc

    def wait(self, timeout: float | timedelta) -> None:
        """Block until the channel is ready, or raise WaitTimeoutError."""
        if self._connection is None:
            raise DaprError("client connection is closed")
        seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
        future = grpc.channel_ready_future(self._connection)
        try:
            future.result(timeout=seconds)
        except grpc.FutureTimeoutError as exc:
            future.cancel()
            raise WaitTimeoutError() from exc