# daprkit

Building blocks for a client that talks to a Dapr sidecar over gRPC. Each
area of the sidecar API lives in its own mixin class:

| Module                  | Mixin                | Covers                                         |
|-------------------------|----------------------|------------------------------------------------|
| `daprkit.invoke`        | `InvokeMixin`        | service invocation                             |
| `daprkit.stateops`      | `StateMixin`         | state: single, bulk, transactional and query   |
| `daprkit.pubsub`        | `PubSubMixin`        | publishing events                              |
| `daprkit.binding`       | `BindingMixin`       | input and output bindings                      |
| `daprkit.secret`        | `SecretMixin`        | secret stores                                  |
| `daprkit.lock`          | `LockMixin`          | distributed locks                              |
| `daprkit.configuration` | `ConfigurationMixin` | configuration stores, including subscriptions  |

All of them derive from `daprkit.base.ClientBase`, which holds the stub, the
channel and the API token. The state types (options, items, operations and
the enums) are in `daprkit.state`.

## Installation

```
pip install daprkit
```

To install the test dependencies as well:

```
pip install "daprkit[test]"
```

## Putting a client together

Combine the mixins you need into one class and construct it with a stub, a
channel and, optionally, an API token:

```python
import grpc

from daprkit.base import get_grpc_port
from daprkit.binding import BindingMixin
from daprkit.configuration import ConfigurationMixin
from daprkit.invoke import InvokeMixin
from daprkit.lock import LockMixin
from daprkit.pubsub import PubSubMixin
from daprkit.secret import SecretMixin
from daprkit.stateops import StateMixin


class Client(
    InvokeMixin, StateMixin, PubSubMixin, BindingMixin,
    SecretMixin, LockMixin, ConfigurationMixin,
):
    pass


channel = grpc.insecure_channel(f"127.0.0.1:{get_grpc_port()}")
client = Client(stub, channel)
```

The stub is any object with the sidecar's method names (`GetState`,
`SaveState`, `PublishEvent`, `InvokeService`, `TryLockAlpha1`, ...). Each
method is called with one of the request dataclasses defined in this package
(for example `daprkit.stateops.SaveStateRequest` or
`daprkit.pubsub.PublishEventRequest`) and, for most calls, a `metadata`
keyword argument. It must return an object with the attributes the client
reads, such as `data`, `etag` and `metadata` for a state read. Errors it
raises as `grpc.RpcError` are turned into `DaprError`.

When `auth_token` is not given, it is read from `DAPR_API_TOKEN`. Clients
are context managers, and leaving the `with` block closes the channel:

```python
with Client(stub, channel) as client:
    client.wait(5)  # seconds or a timedelta; raises WaitTimeoutError if the channel is not ready
    ...
```

Other `ClientBase` methods:

- `with_auth_token(token)` replaces the API token; an empty string removes it.
- `call_metadata()` returns the metadata pairs sent with authenticated calls.
- `with_trace_id(trace_id, metadata)` returns metadata pairs that carry a
  `traceparent` entry.
- `grpc_client()` and `grpc_client_conn()` return the stub and the channel.
- `shutdown()` asks the sidecar to shut down.
- `close()` closes the channel.

### Environment

| Variable                      | Read by                        | Default |
|-------------------------------|--------------------------------|---------|
| `DAPR_GRPC_PORT`              | `get_grpc_port()`              | `50001` |
| `DAPR_API_TOKEN`              | `get_api_token()`, `ClientBase`| empty   |
| `DAPR_CLIENT_TIMEOUT_SECONDS` | `get_client_timeout_seconds()` | `5`     |

`get_client_timeout_seconds()` raises `DaprError` if the value is not an
integer or is not positive.

## State

```python
from daprkit.state import (
    OperationType, SetStateItem, StateConcurrency, StateConsistency,
    StateOperation, with_concurrency, with_consistency,
)

client.save_state("statestore", "order", b"1", None)
item = client.get_state("statestore", "order", None)
print(item.key, item.etag, item.value)

client.save_state_with_etag(
    "statestore", "order", b"2", "1", {"meta1": "value1"},
    with_consistency(StateConsistency.EVENTUAL),
    with_concurrency(StateConcurrency.FIRST_WRITE),
)

items = client.get_bulk_state("statestore", ["k1", "k2"], None, 10)

client.execute_state_transaction("statestore", {}, [
    StateOperation(OperationType.UPSERT, SetStateItem(key="k1", value=b"v1")),
    StateOperation(OperationType.DELETE, SetStateItem(key="k2")),
])

result = client.query_state_alpha1("statestore", "{}", None)
client.delete_state("statestore", "order", None)
client.delete_bulk_state("statestore", ["k1", "k2"], None)
```

Unless options are given, state is saved and deleted with strong consistency
and last-write concurrency (`default_state_options()`).

## Service invocation

```python
from daprkit.invoke import DataContent

reply = client.invoke_method_with_content(
    "serving", "echo", "post", DataContent(data=b"hello", content_type="text/plain")
)
reply = client.invoke_method_with_custom_content(
    "serving", "echo", "post", "application/json", {"message": "hello"}
)
```

A query string in the method name, such as `"fn?foo=bar"`, is split off and
sent as the HTTP query. The verb is case-insensitive; an unknown verb is sent
as `HTTPVerb.NONE`.

## Publishing events

```python
from daprkit.pubsub import publish_event_with_metadata, publish_event_with_raw_payload

client.publish_event("messages", "neworder", b"ping")
client.publish_event("messages", "neworder", {"id": 1})  # sent as application/json
client.publish_event("messages", "neworder", b"ping", publish_event_with_raw_payload())
client.publish_event("messages", "neworder", "ping", publish_event_with_metadata({"k": "v"}))
```

## Bindings, secrets and locks

```python
from daprkit.binding import InvokeBindingRequest
from daprkit.lock import LockRequest, UnlockRequest

event = client.invoke_binding(InvokeBindingRequest(name="http", operation="create", data=b"x"))
client.invoke_output_binding(InvokeBindingRequest(name="http", operation="create"))

db_entry = client.get_secret("vault", "db", None)
vault_contents = client.get_bulk_secret("vault", None)

lock = client.try_lock_alpha1("lockstore", LockRequest(
    resource_id="resource1", lock_owner="owner1", expiry_in_seconds=5))
status = client.unlock_alpha1("lockstore", UnlockRequest(
    resource_id="resource1", lock_owner="owner1"))
print(lock.success, status.status_code, status.status)
```

## Configuration

```python
import threading

from daprkit.configuration import with_configuration_metadata

item = client.get_configuration_item("config", "mykey")
items = client.get_configuration_items("config", ["a", "b"], with_configuration_metadata("k", "v"))

stop = threading.Event()

def on_change(subscription_id, changed):
    for key, value in changed.items():
        print(key, value.value)

# Blocks until the stream ends, or until `stop` is set, in which case the
# subscription is ended on the sidecar.
client.subscribe_configuration_items("config", ["a", "b"], on_change, stop=stop)
```

The handler runs on a background thread. `unsubscribe_configuration_items`
ends a subscription by its ID.

## Errors

Every failure, whether a missing argument or an error reported by the
sidecar, is raised as `daprkit.base.DaprError`; sidecar errors keep the gRPC
error as their cause. `wait` raises `WaitTimeoutError`, a subclass of
`DaprError`.

## What this package does not do

- It has no ready-made client class and no functions that open a connection
  for you: you compose the mixins and supply the stub and channel yourself.
- It does not ship the generated gRPC stubs for the sidecar API.
- It has no actor operations (actor invocation, timers, reminders or actor
  state).
- It is a client only; it does not serve an application to the sidecar.