import queue
import threading
import uuid
from types import SimpleNamespace

import grpc
import pytest

from daprkit.base import DaprError
from daprkit.configuration import ConfigurationMixin, with_configuration_metadata

VALUE_SUFFIX = "_value"
KEYS = ["mykey1", "mykey2", "mykey3"]


class _RpcFailure(grpc.RpcError):
    pass


class _FakeConfigServer:
    def __init__(self, interval=0.01):
        self.interval = interval
        self.lock = threading.Lock()
        self.subscriptions = {}
        self.unsubscribed = []
        self.requests = []

    def _items(self, keys):
        return {k: SimpleNamespace(value=k + VALUE_SUFFIX, version="1", metadata={}) for k in keys}

    def GetConfigurationAlpha1(self, request):
        self.requests.append(request)
        if not request.store_name:
            raise _RpcFailure("store name notfound")
        return SimpleNamespace(items=self._items(request.keys))

    def SubscribeConfigurationAlpha1(self, request):
        self.requests.append(request)
        sub_id = str(uuid.uuid4())
        stop = threading.Event()
        with self.lock:
            self.subscriptions[sub_id] = stop

        def stream():
            for _ in range(5):
                if stop.is_set():
                    return
                yield SimpleNamespace(id=sub_id, items=self._items(request.keys))
                stop.wait(self.interval)

        return stream()

    def UnsubscribeConfigurationAlpha1(self, request):
        with self.lock:
            self.unsubscribed.append(request.id)
            stop = self.subscriptions.pop(request.id, None)
        if stop is not None:
            stop.set()
        return SimpleNamespace(ok=True, message="")


class _RefusingServer:
    def SubscribeConfigurationAlpha1(self, request):
        raise _RpcFailure("refused")

    def UnsubscribeConfigurationAlpha1(self, request):
        return SimpleNamespace(ok=False, message="nope")


def test_get_configuration_item():
    client = ConfigurationMixin(_FakeConfigServer(), auth_token="")
    item = client.get_configuration_item("example-config", "mykey")
    assert item.value == "mykey" + VALUE_SUFFIX


def test_get_configuration_item_invalid_store():
    client = ConfigurationMixin(_FakeConfigServer(), auth_token="")
    with pytest.raises(DaprError, match="store name notfound"):
        client.get_configuration_item("", "mykey")


def test_get_configuration_items():
    client = ConfigurationMixin(_FakeConfigServer(), auth_token="")
    items = client.get_configuration_items("example-config", KEYS)
    assert {k: v.value for k, v in items.items()} == {k: k + VALUE_SUFFIX for k in KEYS}


def test_configuration_metadata_option():
    server = _FakeConfigServer()
    client = ConfigurationMixin(server, auth_token="")
    items = client.get_configuration_items(
        "example-config", KEYS, with_configuration_metadata("a", "b")
    )
    assert sorted(items) == sorted(KEYS)
    assert server.requests[-1].metadata == {"a": "b"}


def test_subscribe_configuration_items():
    client = ConfigurationMixin(_FakeConfigServer(), auth_token="")
    calls = []

    def handler(sub_id, items):
        calls.append([items[k].value for k in KEYS])

    result = client.subscribe_configuration_items("example-config", KEYS, handler)
    assert result is None
    assert len(calls) == 5
    assert sum(len(c) for c in calls) == 15
    assert all(c == [k + VALUE_SUFFIX for k in KEYS] for c in calls)


def test_unsubscribe_configuration_items():
    server = _FakeConfigServer(interval=5.0)
    client = ConfigurationMixin(server, auth_token="")
    ids = queue.Queue()
    counter = []
    errors = []

    def handler(sub_id, items):
        counter.append(len(items))
        ids.put(sub_id)

    def run():
        try:
            client.subscribe_configuration_items("example-config", KEYS, handler)
        except DaprError as exc:
            errors.append(exc)

    worker = threading.Thread(target=run)
    worker.start()
    sub_id = ids.get(timeout=5)
    assert client.unsubscribe_configuration_items("example-config", sub_id) is None
    worker.join(timeout=5)
    assert not worker.is_alive()
    assert errors == []
    assert counter == [3]
    assert server.unsubscribed == [sub_id]


def test_subscribe_stops_on_event():
    server = _FakeConfigServer(interval=5.0)
    client = ConfigurationMixin(server, auth_token="")
    stop = threading.Event()
    seen = []

    def handler(sub_id, items):
        seen.append(sub_id)
        stop.set()

    result = client.subscribe_configuration_items("example-config", KEYS, handler, stop=stop)
    assert result is None
    assert len(seen) == 1
    assert server.unsubscribed == seen


def test_subscribe_failure():
    client = ConfigurationMixin(_RefusingServer(), auth_token="")
    with pytest.raises(DaprError, match="subscribe configuration failed"):
        client.subscribe_configuration_items("example-config", KEYS, lambda i, items: None)


def test_unsubscribe_not_ok():
    client = ConfigurationMixin(_RefusingServer(), auth_token="")
    with pytest.raises(DaprError, match="unsubscribe error message = nope"):
        client.unsubscribe_configuration_items("example-config", "some-id")