"""Mixins and request types for a gRPC client of the Dapr sidecar."""

__version__ = "1.0.0"

__all__ = [
    "base",
    "binding",
    "configuration",
    "invoke",
    "lock",
    "pubsub",
    "secret",
    "state",
    "stateops",
]