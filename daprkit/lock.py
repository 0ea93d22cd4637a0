"""Distributed locks through the Dapr sidecar."""

from __future__ import annotations

import enum
from dataclasses import dataclass

import grpc

from daprkit.base import ClientBase, DaprError


class UnlockStatus(enum.IntEnum):
    """Outcome of an unlock request."""

    SUCCESS = 0
    LOCK_UNEXIST = 1
    LOCK_BELONG_TO_OTHERS = 2
    INTERNAL_ERROR = 3


@dataclass
class LockRequest:
    """A request to acquire a lock."""

    resource_id: str = ""
    lock_owner: str = ""
    expiry_in_seconds: int = 0


@dataclass
class UnlockRequest:
    """A request to release a lock."""

    resource_id: str = ""
    lock_owner: str = ""


@dataclass
class LockResponse:
    """Whether a lock was acquired."""

    success: bool = False


@dataclass
class UnlockResponse:
    """The status of an unlock request, as a code and a name."""

    status_code: int = 0
    status: str = ""


@dataclass
class TryLockRequestMessage:
    """Wire form of a lock request."""

    store_name: str
    resource_id: str = ""
    lock_owner: str = ""
    expiry_in_seconds: int = 0


@dataclass
class UnlockRequestMessage:
    """Wire form of an unlock request."""

    store_name: str
    resource_id: str = ""
    lock_owner: str = ""


def _status_name(code: int) -> str:
    try:
        return UnlockStatus(code).name
    except ValueError:
        return ""


class LockMixin(ClientBase):
    """Lock store operations."""

    def try_lock_alpha1(self, store_name: str, request: LockRequest | None) -> LockResponse:
        """Try to acquire a lock from a lock store."""
        if not store_name:
            raise DaprError("storeName is empty")
        if request is None:
            raise DaprError("request is nil")
        message = TryLockRequestMessage(
            store_name=store_name,
            resource_id=request.resource_id,
            lock_owner=request.lock_owner,
            expiry_in_seconds=request.expiry_in_seconds,
        )
        try:
            response = self._stub.TryLockAlpha1(message)
        except grpc.RpcError as exc:
            raise DaprError(f"error getting lock: {exc}") from exc
        return LockResponse(success=bool(response.success))

    def unlock_alpha1(self, store_name: str, request: UnlockRequest | None) -> UnlockResponse:
        """Release a lock held in a lock store."""
        if not store_name:
            raise DaprError("storeName is empty")
        if request is None:
            raise DaprError("request is nil")
        message = UnlockRequestMessage(
            store_name=store_name,
            resource_id=request.resource_id,
            lock_owner=request.lock_owner,
        )
        try:
            response = self._stub.UnlockAlpha1(message)
        except grpc.RpcError as exc:
            raise DaprError(f"error getting lock: {exc}") from exc
        code = int(response.status)
        return UnlockResponse(status_code=code, status=_status_name(code))