"""State store operations through the Dapr sidecar."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import grpc

from daprkit.base import ClientBase, DaprError
from daprkit.state import (
    BulkStateItem,
    DeleteStateItem,
    ETag,
    EtagMessage,
    QueryItem,
    QueryResponse,
    SetStateItem,
    StateConsistency,
    StateItem,
    StateItemMessage,
    StateOperation,
    StateOption,
    StateOptions,
    StateOptionsMessage,
    default_state_options,
    to_proto_save_state_item,
    to_proto_state_options,
)


@dataclass
class SaveStateRequest:
    """Wire form of a state save."""

    store_name: str
    states: list[StateItemMessage] = field(default_factory=list)


@dataclass
class GetStateRequest:
    """Wire form of a single state read."""

    store_name: str
    key: str
    consistency: StateConsistency = StateConsistency.UNDEFINED
    metadata: dict[str, str] | None = None


@dataclass
class GetBulkStateRequest:
    """Wire form of a bulk state read."""

    store_name: str
    keys: list[str] = field(default_factory=list)
    metadata: dict[str, str] | None = None
    parallelism: int = 0


@dataclass
class DeleteStateRequest:
    """Wire form of a single state deletion."""

    store_name: str
    key: str
    etag: EtagMessage | None = None
    options: StateOptionsMessage | None = None
    metadata: dict[str, str] | None = None


@dataclass
class DeleteBulkStateRequest:
    """Wire form of a bulk state deletion."""

    store_name: str
    states: list[StateItemMessage] = field(default_factory=list)


@dataclass
class TransactionalStateOperation:
    """Wire form of one operation in a state transaction."""

    operation_type: str
    request: StateItemMessage


@dataclass
class ExecuteStateTransactionRequest:
    """Wire form of a state transaction."""

    store_name: str
    operations: list[TransactionalStateOperation] = field(default_factory=list)
    metadata: dict[str, str] | None = None


@dataclass
class QueryStateRequest:
    """Wire form of a state query."""

    store_name: str
    query: str
    metadata: dict[str, str] | None = None


def _require_state_args(store_name: str, key: str) -> None:
    if not store_name:
        raise DaprError("missing required arguments: store")
    if not key:
        raise DaprError("missing required arguments: key")


class StateMixin(ClientBase):
    """State store operations."""

    def execute_state_transaction(
        self, store_name: str, meta: dict[str, str] | None, ops: Iterable[StateOperation] | None
    ) -> None:
        """Run several state operations on a store as one transaction."""
        if not store_name:
            raise DaprError("nil storeName")
        operations = [
            TransactionalStateOperation(
                operation_type=str(op.type), request=to_proto_save_state_item(op.item)
            )
            for op in ops or ()
        ]
        if not operations:
            return
        request = ExecuteStateTransactionRequest(
            store_name=store_name, operations=operations, metadata=meta
        )
        try:
            self._stub.ExecuteStateTransaction(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error executing state transaction: {exc}") from exc

    def save_state(
        self,
        store_name: str,
        key: str,
        data: bytes | None,
        meta: dict[str, str] | None = None,
        *args: StateOption,
    ) -> None:
        """Save raw data; without options the store uses strong, last-write."""
        self.save_state_with_etag(store_name, key, data, "", meta, *args)

    def save_state_with_etag(
        self,
        store_name: str,
        key: str,
        data: bytes | None,
        etag: str,
        meta: dict[str, str] | None = None,
        *args: StateOption,
    ) -> None:
        """Save raw data with the given ETag and state options."""
        if args:
            options = StateOptions()
            for option in args:
                option(options)
        else:
            options = default_state_options()
        item = SetStateItem(
            key=key,
            value=data,
            metadata=meta,
            options=options,
            etag=ETag(value=etag) if etag else None,
        )
        self.save_bulk_state(store_name, item)

    def save_bulk_state(self, store_name: str, *args: SetStateItem) -> None:
        """Save several state items to a store."""
        if not store_name:
            raise DaprError("nil store")
        if not args:
            raise DaprError("nil item")
        request = SaveStateRequest(
            store_name=store_name, states=[to_proto_save_state_item(item) for item in args]
        )
        try:
            self._stub.SaveState(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error saving state: {exc}") from exc

    def get_bulk_state(
        self,
        store_name: str,
        keys: list[str] | None,
        meta: dict[str, str] | None = None,
        parallelism: int = 0,
    ) -> list[BulkStateItem]:
        """Read the state of several keys from a store."""
        if not store_name:
            raise DaprError("nil store")
        if not keys:
            raise DaprError("keys required")
        request = GetBulkStateRequest(
            store_name=store_name, keys=list(keys), metadata=meta, parallelism=parallelism
        )
        try:
            results = self._stub.GetBulkState(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error getting state: {exc}") from exc
        if results is None or results.items is None:
            return []
        return [
            BulkStateItem(
                key=r.key, value=r.data, etag=r.etag, metadata=r.metadata, error=r.error
            )
            for r in results.items
        ]

    def get_state(self, store_name: str, key: str, meta: dict[str, str] | None = None) -> StateItem:
        """Read one key with strong consistency."""
        return self.get_state_with_consistency(store_name, key, meta, StateConsistency.STRONG)

    def get_state_with_consistency(
        self,
        store_name: str,
        key: str,
        meta: dict[str, str] | None,
        consistency: StateConsistency,
    ) -> StateItem:
        """Read one key with the given consistency."""
        _require_state_args(store_name, key)
        request = GetStateRequest(
            store_name=store_name,
            key=key,
            consistency=StateConsistency(consistency),
            metadata=meta,
        )
        try:
            result = self._stub.GetState(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error getting state: {exc}") from exc
        return StateItem(key=key, value=result.data, etag=result.etag, metadata=result.metadata)

    def query_state_alpha1(
        self, store_name: str, query: str, meta: dict[str, str] | None = None
    ) -> QueryResponse:
        """Run a query against a state store."""
        if not store_name:
            raise DaprError("store name is not set")
        if not query:
            raise DaprError("query is not set")
        request = QueryStateRequest(store_name=store_name, query=query, metadata=meta)
        try:
            response = self._stub.QueryStateAlpha1(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error querying state: {exc}") from exc
        return QueryResponse(
            results=[
                QueryItem(key=item.key, value=item.data, etag=item.etag, error=item.error)
                for item in response.results
            ],
            token=response.token,
            metadata=response.metadata,
        )

    def delete_state(self, store_name: str, key: str, meta: dict[str, str] | None = None) -> None:
        """Delete one key using the default options."""
        self.delete_state_with_etag(store_name, key, None, meta, None)

    def delete_state_with_etag(
        self,
        store_name: str,
        key: str,
        etag: ETag | None,
        meta: dict[str, str] | None,
        options: StateOptions | None,
    ) -> None:
        """Delete one key using the given ETag and options."""
        _require_state_args(store_name, key)
        request = DeleteStateRequest(
            store_name=store_name,
            key=key,
            options=to_proto_state_options(options),
            metadata=meta,
            etag=EtagMessage(value=etag.value) if etag is not None else None,
        )
        try:
            self._stub.DeleteState(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error deleting state: {exc}") from exc

    def delete_bulk_state(
        self, store_name: str, keys: list[str] | None, meta: dict[str, str] | None = None
    ) -> None:
        """Delete several keys from a store."""
        if not keys:
            return
        items = [DeleteStateItem(key=key, metadata=meta) for key in keys]
        self.delete_bulk_state_items(store_name, items)

    def delete_bulk_state_items(
        self, store_name: str, items: list[DeleteStateItem] | None
    ) -> None:
        """Delete several items, each with its own ETag and options."""
        if not items:
            return
        states = []
        for item in items:
            _require_state_args(store_name, item.key)
            states.append(
                StateItemMessage(
                    key=item.key,
                    metadata=item.metadata,
                    options=to_proto_state_options(item.options),
                    etag=EtagMessage(value=item.etag.value) if item.etag is not None else None,
                )
            )
        request = DeleteBulkStateRequest(store_name=store_name, states=states)
        try:
            self._stub.DeleteBulkState(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error deleting bulk state: {exc}") from exc