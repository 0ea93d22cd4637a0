"""Configuration stores through the Dapr sidecar."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

import grpc

from daprkit.base import ClientBase, DaprError

logger = logging.getLogger(__name__)


@dataclass
class ConfigurationItem:
    """One configuration value with its version and metadata."""

    value: str = ""
    version: str = ""
    metadata: dict[str, str] | None = None


ConfigurationOpt = Callable[[dict[str, str]], None]
ConfigurationHandler = Callable[[str, dict[str, ConfigurationItem]], None]


@dataclass
class GetConfigurationRequest:
    """Wire form of a configuration read."""

    store_name: str
    keys: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class SubscribeConfigurationRequest:
    """Wire form of a configuration subscription."""

    store_name: str
    keys: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class UnsubscribeConfigurationRequest:
    """Wire form of the end of a configuration subscription."""

    store_name: str
    id: str


def with_configuration_metadata(key: str, value: str) -> ConfigurationOpt:
    """Return an option that adds one metadata entry to the request."""

    def apply(metadata: dict[str, str]) -> None:
        metadata[key] = value

    return apply


def _collect_metadata(options: tuple[ConfigurationOpt, ...]) -> dict[str, str]:
    metadata: dict[str, str] = {}
    for option in options:
        option(metadata)
    return metadata


def _to_items(raw: dict | None) -> dict[str, ConfigurationItem]:
    return {
        key: ConfigurationItem(value=item.value, version=item.version, metadata=item.metadata)
        for key, item in (raw or {}).items()
    }


class ConfigurationMixin(ClientBase):
    """Configuration store operations."""

    def get_configuration_item(
        self, store_name: str, key: str, *args: ConfigurationOpt
    ) -> ConfigurationItem | None:
        """Read one configuration item, or None if the store has none."""
        items = self.get_configuration_items(store_name, [key], *args)
        if not items:
            return None
        return items.get(key)

    def get_configuration_items(
        self, store_name: str, keys: list[str], *args: ConfigurationOpt
    ) -> dict[str, ConfigurationItem]:
        """Read several configuration items, keyed by name."""
        request = GetConfigurationRequest(
            store_name=store_name, keys=list(keys), metadata=_collect_metadata(args)
        )
        try:
            response = self._stub.GetConfigurationAlpha1(request)
        except grpc.RpcError as exc:
            raise DaprError(f"get configuration failed with error = {exc}") from exc
        return _to_items(response.items)

    def subscribe_configuration_items(
        self,
        store_name: str,
        keys: list[str],
        handler: ConfigurationHandler,
        *args: ConfigurationOpt,
        stop: threading.Event | None = None,
    ) -> None:
        """Call handler on every change until the stream ends or stop is set.

        When stop is set first, the subscription is ended on the sidecar.
        """
        request = SubscribeConfigurationRequest(
            store_name=store_name, keys=list(keys), metadata=_collect_metadata(args)
        )
        try:
            stream = self._stub.SubscribeConfigurationAlpha1(request)
        except grpc.RpcError as exc:
            raise DaprError(f"subscribe configuration failed with error = {exc}") from exc

        finished = threading.Event()
        subscription = {"id": ""}

        def receive() -> None:
            try:
                for response in stream:
                    if response is None:
                        break
                    subscription["id"] = response.id
                    handler(response.id, _to_items(response.items))
            except grpc.RpcError:
                pass
            finally:
                logger.info("dapr configuration subscribe finished.")
                finished.set()

        threading.Thread(target=receive, name="configuration-subscription", daemon=True).start()

        if stop is None:
            finished.wait()
            return
        while not finished.wait(0.05):
            if stop.is_set():
                self.unsubscribe_configuration_items(store_name, subscription["id"])
                cancel = getattr(stream, "cancel", None)
                if callable(cancel):
                    cancel()
                return

    def unsubscribe_configuration_items(
        self, store_name: str, subscription_id: str, *args: ConfigurationOpt
    ) -> None:
        """End a configuration subscription by its ID."""
        request = UnsubscribeConfigurationRequest(store_name=store_name, id=subscription_id)
        try:
            response = self._stub.UnsubscribeConfigurationAlpha1(request)
        except grpc.RpcError as exc:
            raise DaprError(f"unsubscribe failed with error = {exc}") from exc
        if not response.ok:
            raise DaprError(f"unsubscribe error message = {response.message}")