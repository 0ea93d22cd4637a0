"""Binding invocation through the Dapr sidecar."""

from __future__ import annotations

from dataclasses import dataclass

import grpc

from daprkit.base import ClientBase, DaprError


@dataclass
class InvokeBindingRequest:
    """A request to invoke an operation on a binding."""

    name: str = ""
    operation: str = ""
    data: bytes | None = None
    metadata: dict[str, str] | None = None


@dataclass
class BindingEvent:
    """What a binding returned."""

    data: bytes | None = None
    metadata: dict[str, str] | None = None


@dataclass
class InvokeBindingRequestMessage:
    """Wire form of a binding invocation."""

    name: str
    operation: str
    data: bytes | None = None
    metadata: dict[str, str] | None = None


class BindingMixin(ClientBase):
    """Binding operations."""

    def invoke_binding(self, request: InvokeBindingRequest | None) -> BindingEvent | None:
        """Invoke an operation on a binding and return what it sent back."""
        if request is None:
            raise DaprError("binding invocation required")
        if not request.name:
            raise DaprError("binding invocation name required")
        if not request.operation:
            raise DaprError("binding invocation operation required")

        message = InvokeBindingRequestMessage(
            name=request.name,
            operation=request.operation,
            data=request.data,
            metadata=request.metadata,
        )
        try:
            response = self._stub.InvokeBinding(message, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(
                f"error invoking binding {request.name}/{request.operation}: {exc}"
            ) from exc

        if response is None:
            return None
        return BindingEvent(data=response.data, metadata=response.metadata)

    def invoke_output_binding(self, request: InvokeBindingRequest | None) -> None:
        """Invoke a binding without expecting any content back."""
        try:
            self.invoke_binding(request)
        except DaprError as exc:
            raise DaprError(f"error invoking output binding: {exc}") from exc