"""Service invocation through the Dapr sidecar."""

from __future__ import annotations

import dataclasses
import enum
import json
from dataclasses import dataclass, field
from typing import Any

import grpc

from daprkit.base import ClientBase, DaprError


class HTTPVerb(enum.IntEnum):
    """HTTP verbs understood by the sidecar."""

    NONE = 0
    GET = 1
    HEAD = 2
    POST = 3
    PUT = 4
    DELETE = 5
    CONNECT = 6
    OPTIONS = 7
    TRACE = 8
    PATCH = 9


@dataclass
class DataContent:
    """Payload and content type of a service invocation."""

    data: bytes | None = None
    content_type: str = ""


@dataclass
class HTTPExtension:
    """HTTP verb and query string attached to an invocation."""

    verb: HTTPVerb = HTTPVerb.NONE
    querystring: str = ""


@dataclass
class InvokeRequest:
    """The message carried by a service invocation."""

    method: str
    data: bytes | None = None
    content_type: str = ""
    http_extension: HTTPExtension = field(default_factory=HTTPExtension)


@dataclass
class InvokeServiceRequest:
    """A request to invoke a method on another application."""

    id: str
    message: InvokeRequest | None = None


@dataclass
class InvokeResponse:
    """The reply to a service invocation."""

    data: bytes | None = None
    content_type: str = ""


def query_and_verb_to_http_extension(query: str, verb: str) -> HTTPExtension:
    """Build the HTTP extension for a verb name, ignoring its case."""
    member = HTTPVerb.__members__.get(verb.upper())
    if member is None:
        return HTTPExtension(verb=HTTPVerb.NONE)
    return HTTPExtension(verb=member, querystring=query)


def extract_method_and_query(name: str) -> tuple[str, str]:
    """Split a method name at its first '?' into method and query string."""
    method, _, query = name.partition("?")
    return method, query


def require_invoke_args(app_id: str, method_name: str, verb: str) -> None:
    """Raise DaprError when any of the required invocation arguments is empty."""
    for label, value in (("appID", app_id), ("methodName", method_name), ("verb", verb)):
        if not value:
            raise DaprError(f"missing required parameter: {label}")


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _build_request(app_id: str, method_name: str, verb: str, data: bytes | None, content_type: str) -> InvokeServiceRequest:
    method, query = extract_method_and_query(method_name)
    return InvokeServiceRequest(
        id=app_id,
        message=InvokeRequest(
            method=method,
            data=data,
            content_type=content_type,
            http_extension=query_and_verb_to_http_extension(query, verb),
        ),
    )


class InvokeMixin(ClientBase):
    """Service invocation operations."""

    def _invoke_service(self, request: InvokeServiceRequest) -> bytes | None:
        try:
            response = self._stub.InvokeService(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error invoking service: {exc}") from exc
        if response is not None and response.data is not None:
            return response.data
        return None

    def invoke_method(self, app_id: str, method_name: str, verb: str) -> bytes | None:
        """Invoke a method on another application without a payload."""
        require_invoke_args(app_id, method_name, verb)
        method, query = extract_method_and_query(method_name)
        request = InvokeServiceRequest(
            id=app_id,
            message=InvokeRequest(
                method=method,
                http_extension=query_and_verb_to_http_extension(query, verb),
            ),
        )
        return self._invoke_service(request)

    def invoke_method_with_content(
        self, app_id: str, method_name: str, verb: str, content: DataContent | None
    ) -> bytes | None:
        """Invoke a method on another application with raw content."""
        require_invoke_args(app_id, method_name, verb)
        if content is None:
            raise DaprError("content required")
        request = _build_request(app_id, method_name, verb, content.data, content.content_type)
        return self._invoke_service(request)

    def invoke_method_with_custom_content(
        self, app_id: str, method_name: str, verb: str, content_type: str, content: Any
    ) -> bytes | None:
        """Invoke a method on another application with a JSON-encoded object."""
        require_invoke_args(app_id, method_name, verb)
        if not content_type:
            raise DaprError("content type required")
        if content is None:
            raise DaprError("content required")
        try:
            encoded = json.dumps(content, default=_json_default, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise DaprError(f"error serializing input struct: {exc}") from exc
        request = _build_request(app_id, method_name, verb, encoded, content_type)
        return self._invoke_service(request)