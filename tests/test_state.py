from datetime import timedelta

import pytest

from daprkit.state import (
    DeleteStateItem,
    ETag,
    OperationType,
    SetStateItem,
    StateConcurrency,
    StateConsistency,
    StateOptions,
    default_state_options,
    to_proto_duration,
    to_proto_save_state_item,
    to_proto_state_options,
    with_concurrency,
    with_consistency,
)


def test_out_of_range_values_are_undefined():
    assert str(OperationType(-1)) == "undefined"
    assert str(StateConcurrency(-1)) == "undefined"
    assert str(StateConsistency(-1)) == "undefined"


@pytest.mark.parametrize(
    "member, expected",
    [
        (OperationType.UPSERT, "upsert"),
        (OperationType.DELETE, "delete"),
        (OperationType.UNDEFINED, "undefined"),
        (StateConcurrency.FIRST_WRITE, "first-write"),
        (StateConcurrency.LAST_WRITE, "last-write"),
        (StateConsistency.EVENTUAL, "eventual"),
        (StateConsistency.STRONG, "strong"),
    ],
)
def test_enum_names(member, expected):
    assert str(member) == expected


def test_duration_converter():
    assert to_proto_duration(timedelta(seconds=10)) == (10, 0)


def test_duration_with_fraction():
    assert to_proto_duration(timedelta(seconds=1, milliseconds=500)) == (1, 500_000_000)


def test_negative_duration_truncates_toward_zero():
    assert to_proto_duration(timedelta(seconds=-1, milliseconds=-500)) == (-1, -500_000_000)


def test_state_options_converter():
    options = StateOptions(concurrency=StateConcurrency.LAST_WRITE, consistency=StateConsistency.STRONG)
    message = to_proto_state_options(options)
    assert message.concurrency == StateConcurrency.LAST_WRITE
    assert message.consistency == StateConsistency.STRONG


def test_missing_options_use_defaults():
    message = to_proto_state_options(None)
    assert message.concurrency == StateConcurrency.LAST_WRITE
    assert message.consistency == StateConsistency.STRONG


def test_default_options_are_independent_copies():
    first = default_state_options()
    first.concurrency = StateConcurrency.FIRST_WRITE
    assert default_state_options().concurrency == StateConcurrency.LAST_WRITE


def test_option_functions_apply():
    options = StateOptions()
    for option in (with_consistency(StateConsistency.EVENTUAL), with_concurrency(StateConcurrency.FIRST_WRITE)):
        option(options)
    assert options == StateOptions(StateConcurrency.FIRST_WRITE, StateConsistency.EVENTUAL)


def test_save_item_with_etag():
    item = SetStateItem(
        key="key1",
        value=b"test",
        etag=ETag(value="1"),
        metadata={"meta1": "value1"},
        options=StateOptions(StateConcurrency.FIRST_WRITE, StateConsistency.EVENTUAL),
    )
    message = to_proto_save_state_item(item)
    assert message.key == "key1"
    assert message.value == b"test"
    assert message.etag.value == "1"
    assert message.metadata == {"meta1": "value1"}
    assert message.options.concurrency == StateConcurrency.FIRST_WRITE
    assert message.options.consistency == StateConsistency.EVENTUAL


def test_save_item_without_etag_uses_defaults():
    message = to_proto_save_state_item(DeleteStateItem(key="key2"))
    assert message.key == "key2"
    assert message.etag is None
    assert message.value is None
    assert message.options.concurrency == StateConcurrency.LAST_WRITE
    assert message.options.consistency == StateConsistency.STRONG