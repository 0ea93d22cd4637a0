"""State store types and their conversion to wire messages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable

UNDEFINED_TYPE = "undefined"


class _NamedIntEnum(enum.IntEnum):
    """An integer enum whose unknown values fall back to UNDEFINED."""

    @classmethod
    def _missing_(cls, value: object) -> "_NamedIntEnum | None":
        if isinstance(value, int):
            return cls(0)
        return None


class StateConsistency(_NamedIntEnum):
    """Consistency requested from a state store."""

    UNDEFINED = 0
    EVENTUAL = 1
    STRONG = 2

    def __str__(self) -> str:
        return _CONSISTENCY_NAMES.get(self, UNDEFINED_TYPE)


class StateConcurrency(_NamedIntEnum):
    """Concurrency policy of a state write."""

    UNDEFINED = 0
    FIRST_WRITE = 1
    LAST_WRITE = 2

    def __str__(self) -> str:
        return _CONCURRENCY_NAMES.get(self, UNDEFINED_TYPE)


class OperationType(_NamedIntEnum):
    """Kind of operation inside a state transaction."""

    UNDEFINED = 0
    UPSERT = 1
    DELETE = 2

    def __str__(self) -> str:
        return _OPERATION_NAMES.get(self, UNDEFINED_TYPE)


_CONSISTENCY_NAMES = {
    StateConsistency.EVENTUAL: "eventual",
    StateConsistency.STRONG: "strong",
}
_CONCURRENCY_NAMES = {
    StateConcurrency.FIRST_WRITE: "first-write",
    StateConcurrency.LAST_WRITE: "last-write",
}
_OPERATION_NAMES = {
    OperationType.UPSERT: "upsert",
    OperationType.DELETE: "delete",
}


@dataclass
class ETag:
    """Version information of a stored record."""

    value: str = ""


@dataclass
class StateOptions:
    """Persistence policy of a state store operation."""

    concurrency: StateConcurrency = StateConcurrency.UNDEFINED
    consistency: StateConsistency = StateConsistency.UNDEFINED


StateOption = Callable[[StateOptions], None]


@dataclass
class StateItem:
    """A single state item read from a store."""

    key: str
    value: bytes | None = None
    etag: str = ""
    metadata: dict[str, str] | None = None


@dataclass
class BulkStateItem:
    """A single item of a bulk state read."""

    key: str
    value: bytes | None = None
    etag: str = ""
    metadata: dict[str, str] | None = None
    error: str = ""


@dataclass
class SetStateItem:
    """A single state item to be persisted."""

    key: str
    value: bytes | None = None
    etag: ETag | None = None
    metadata: dict[str, str] | None = None
    options: StateOptions | None = None


@dataclass
class DeleteStateItem(SetStateItem):
    """A single state item to be deleted."""


@dataclass
class StateOperation:
    """One operation of a state transaction."""

    type: OperationType
    item: SetStateItem


@dataclass
class QueryItem:
    """A single result of a state query."""

    key: str
    value: bytes | None = None
    etag: str = ""
    error: str = ""


@dataclass
class QueryResponse:
    """The results of a state query."""

    results: list[QueryItem] = field(default_factory=list)
    token: str = ""
    metadata: dict[str, str] | None = None


@dataclass
class EtagMessage:
    """Wire form of an ETag."""

    value: str = ""


@dataclass
class StateOptionsMessage:
    """Wire form of state options."""

    concurrency: StateConcurrency = StateConcurrency.UNDEFINED
    consistency: StateConsistency = StateConsistency.UNDEFINED


@dataclass
class StateItemMessage:
    """Wire form of a state item."""

    key: str
    value: bytes | None = None
    etag: EtagMessage | None = None
    metadata: dict[str, str] | None = None
    options: StateOptionsMessage | None = None


_DEFAULT_CONCURRENCY = StateConcurrency.LAST_WRITE
_DEFAULT_CONSISTENCY = StateConsistency.STRONG


def with_concurrency(concurrency: StateConcurrency) -> StateOption:
    """Return an option that sets the concurrency policy."""

    def apply(options: StateOptions) -> None:
        options.concurrency = StateConcurrency(concurrency)

    return apply


def with_consistency(consistency: StateConsistency) -> StateOption:
    """Return an option that sets the consistency level."""

    def apply(options: StateOptions) -> None:
        options.consistency = StateConsistency(consistency)

    return apply


def default_state_options() -> StateOptions:
    """Return a fresh copy of the default options: strong, last-write."""
    return StateOptions(concurrency=_DEFAULT_CONCURRENCY, consistency=_DEFAULT_CONSISTENCY)


def to_proto_state_options(options: StateOptions | None) -> StateOptionsMessage:
    """Convert state options to their wire form, using the defaults for None."""
    if options is None:
        return StateOptionsMessage(concurrency=_DEFAULT_CONCURRENCY, consistency=_DEFAULT_CONSISTENCY)
    return StateOptionsMessage(
        concurrency=StateConcurrency(options.concurrency),
        consistency=StateConsistency(options.consistency),
    )


def to_proto_save_state_item(item: SetStateItem) -> StateItemMessage:
    """Convert a state item to its wire form."""
    return StateItemMessage(
        key=item.key,
        value=item.value,
        metadata=item.metadata,
        options=to_proto_state_options(item.options),
        etag=EtagMessage(value=item.etag.value) if item.etag is not None else None,
    )


def to_proto_duration(delta: timedelta) -> tuple[int, int]:
    """Split a duration into whole seconds and remaining nanoseconds."""
    total = ((delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds) * 1000
    sign = -1 if total < 0 else 1
    seconds = sign * (abs(total) // 1_000_000_000)
    return seconds, total - seconds * 1_000_000_000