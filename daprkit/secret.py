"""Reading secrets through the Dapr sidecar."""

from __future__ import annotations

from dataclasses import dataclass

import grpc

from daprkit.base import ClientBase, DaprError


@dataclass
class GetSecretRequest:
    """Wire form of a single secret read."""

    store_name: str
    key: str
    metadata: dict[str, str] | None = None


@dataclass
class GetBulkSecretRequest:
    """Wire form of a read of all secrets in a store."""

    store_name: str
    metadata: dict[str, str] | None = None


class SecretMixin(ClientBase):
    """Secret store operations."""

    def get_secret(
        self, store_name: str, key: str, meta: dict[str, str] | None = None
    ) -> dict[str, str] | None:
        """Read one secret from a store."""
        if not store_name:
            raise DaprError("empty storeName")
        if not key:
            raise DaprError("empty key")
        request = GetSecretRequest(store_name=store_name, key=key, metadata=meta)
        try:
            response = self._stub.GetSecret(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error invoking service: {exc}") from exc
        if response is None:
            return None
        return dict(response.data or {})

    def get_bulk_secret(
        self, store_name: str, meta: dict[str, str] | None = None
    ) -> dict[str, dict[str, str]] | None:
        """Read every secret of a store, keyed by secret name."""
        if not store_name:
            raise DaprError("empty storeName")
        request = GetBulkSecretRequest(store_name=store_name, metadata=meta)
        try:
            response = self._stub.GetBulkSecret(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error invoking service: {exc}") from exc
        if response is None:
            return None
        return {
            name: dict(secret.secrets or {}) for name, secret in (response.data or {}).items()
        }