"""Publishing events through the Dapr sidecar."""

from __future__ import annotations

import base64
import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

import grpc

from daprkit.base import ClientBase, DaprError

logger = logging.getLogger(__name__)

RAW_PAYLOAD = "rawPayload"
TRUE_VALUE = "true"
JSON_CONTENT_TYPE = "application/json"


@dataclass
class PublishEventRequest:
    """Wire form of an event publication."""

    pubsub_name: str
    topic: str
    data: bytes | None = None
    data_content_type: str = ""
    metadata: dict[str, str] | None = None


PublishEventOption = Callable[[PublishEventRequest], None]


def publish_event_with_content_type(content_type: str) -> PublishEventOption:
    """Return an option that sets an explicit content type."""

    def apply(request: PublishEventRequest) -> None:
        request.data_content_type = content_type

    return apply


def publish_event_with_metadata(metadata: dict[str, str]) -> PublishEventOption:
    """Return an option that sets the event metadata."""

    def apply(request: PublishEventRequest) -> None:
        request.metadata = dict(metadata)

    return apply


def publish_event_with_raw_payload() -> PublishEventOption:
    """Return an option that marks the payload as raw."""

    def apply(request: PublishEventRequest) -> None:
        if request.metadata is None:
            request.metadata = {}
        request.metadata[RAW_PAYLOAD] = TRUE_VALUE

    return apply


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _encode_json(value: Any) -> bytes:
    try:
        if isinstance(value, (bytes, bytearray)):
            value = _json_default(value)
        return json.dumps(value, default=_json_default, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise DaprError(f"error serializing input struct: {exc}") from exc


class PubSubMixin(ClientBase):
    """Publish and subscribe operations."""

    def publish_event(
        self, pubsub_name: str, topic_name: str, data: Any, *args: PublishEventOption
    ) -> None:
        """Publish data onto a topic; objects other than bytes and str go as JSON."""
        if not pubsub_name:
            raise DaprError("pubsubName name required")
        if not topic_name:
            raise DaprError("topic name required")

        request = PublishEventRequest(pubsub_name=pubsub_name, topic=topic_name)
        for option in args:
            option(request)

        if isinstance(data, (bytes, bytearray)):
            request.data = bytes(data)
        elif isinstance(data, str):
            request.data = data.encode("utf-8")
        elif data is not None:
            request.data_content_type = JSON_CONTENT_TYPE
            request.data = _encode_json(data)

        try:
            self._stub.PublishEvent(request, metadata=self.call_metadata())
        except grpc.RpcError as exc:
            raise DaprError(f"error publishing event unto {topic_name} topic: {exc}") from exc

    def publish_event_from_custom_content(self, pubsub_name: str, topic_name: str, data: Any) -> None:
        """Publish an object as JSON. Deprecated in favour of publish_event."""
        logger.warning(
            "DEPRECATED: publish_event_from_custom_content is deprecated and will be removed "
            "in a future version. Please use publish_event instead."
        )
        encoded = _encode_json(data)
        self.publish_event(
            pubsub_name, topic_name, encoded, publish_event_with_content_type(JSON_CONTENT_TYPE)
        )