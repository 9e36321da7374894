"""
Allocator tests.

Covers the accounting allocator's bookkeeping and logging, and exhaustive
fault injection through decode() to prove no failure path leaks a block.
"""

import logging

import pytest

import jsontree
from jsontree import AccountingAllocator
from jsontree import ErrorKind
from jsontree import SystemAllocator

from .conftest import FaultInjectingAllocator


def test_system_allocator_blocks() -> None:
    allocator = SystemAllocator()
    assert allocator.allocate(3) == [None, None, None]
    assert allocator.allocate(3, raw=True) == bytearray(3)

    grown = allocator.reallocate(bytearray(b"ab"), 4)
    assert grown == bytearray(b"ab\x00\x00")
    assert allocator.reallocate([1, 2, 3], 2) == [1, 2]

    with pytest.raises(ValueError):
        allocator.allocate(-1)


def test_default_allocator_is_shared() -> None:
    assert jsontree.default_allocator() is jsontree.default_allocator()
    assert isinstance(jsontree.default_allocator(), jsontree.Allocator)


def test_accounting_totals() -> None:
    accounting = AccountingAllocator()
    block = accounting.allocate(4)
    block = accounting.reallocate(block, 8)
    raw = accounting.allocate(16, raw=True)

    assert accounting.live_blocks == 2
    assert accounting.live_size == 24
    assert accounting.peak_size == 24

    accounting.release(block)
    accounting.release(raw)
    assert accounting.live_blocks == 0
    assert accounting.live_size == 0
    assert accounting.peak_size == 24
    assert accounting.allocations == 2
    assert accounting.reallocations == 1
    assert accounting.releases == 2
    assert "live blocks=0" in accounting.summary()


def test_double_free_detected() -> None:
    accounting = AccountingAllocator()
    block = accounting.allocate(1)
    accounting.release(block)
    with pytest.raises(ValueError, match="not live"):
        accounting.release(block)
    with pytest.raises(ValueError, match="not live"):
        accounting.reallocate(block, 2)


def test_accounting_logs_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    accounting = AccountingAllocator()
    with caplog.at_level(logging.DEBUG, logger="jsontree"):
        block = accounting.allocate(2)
        accounting.release(block)

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("alloc(2)") for message in messages)
    assert any(message.startswith("release(") for message in messages)


def test_config_rejects_non_allocator() -> None:
    with pytest.raises(TypeError, match="allocator"):
        jsontree.DecodeConfig(allocator=object())  # type: ignore[arg-type]


def test_successful_decode_balances(sample_document: str) -> None:
    accounting = AccountingAllocator()
    tree = jsontree.decode(
        sample_document, jsontree.DecodeConfig(allocator=accounting)
    )
    tree.free()
    assert accounting.live_blocks == 0
    assert accounting.allocations == accounting.releases


def test_truncated_document_leaks_nothing() -> None:
    accounting = AccountingAllocator()
    with pytest.raises(jsontree.JSONDecodeError) as exc_info:
        jsontree.decode("[1,2,", jsontree.DecodeConfig(allocator=accounting))

    assert exc_info.value.kind is ErrorKind.EOF
    assert accounting.allocations > 0
    assert accounting.live_blocks == 0


@pytest.mark.parametrize(
    "document",
    [
        '[1, "two", {"three": [3, 3.5]}, "x", null]',
        '{"a": {"b": {"c": ["deep", "er"]}}, "d": "tail"}',
        '{"k": 1, "k": "dup"}',
    ],
)
def test_every_allocation_failure_is_clean(document: str) -> None:
    """
    Refuses each allocation in turn and checks nothing is left behind.
    """
    counting = FaultInjectingAllocator()
    jsontree.decode(document, jsontree.DecodeConfig(allocator=counting)).free()
    total = counting.requests
    assert total > 0

    for fail_at in range(1, total + 1):
        allocator = FaultInjectingAllocator(fail_at=fail_at)
        with pytest.raises(jsontree.JSONDecodeError) as exc_info:
            jsontree.decode(document, jsontree.DecodeConfig(allocator=allocator))
        assert exc_info.value.kind is ErrorKind.MEMORY
        assert allocator.live_blocks == 0


@pytest.mark.parametrize("seed", range(20))
def test_random_allocation_failures_are_clean(
    seed: int, sample_document: str
) -> None:
    allocator = FaultInjectingAllocator(probability=0.2, seed=seed)
    config = jsontree.DecodeConfig(allocator=allocator)
    try:
        tree = jsontree.decode(sample_document, config)
    except jsontree.JSONDecodeError as e:
        assert e.kind is ErrorKind.MEMORY
    else:
        tree.free()
    assert allocator.live_blocks == 0


def test_memory_errors_reach_error_handler() -> None:
    seen: list[jsontree.JSONDecodeError] = []
    config = jsontree.DecodeConfig(
        allocator=FaultInjectingAllocator(fail_at=1), error_handler=seen.append
    )
    with pytest.raises(jsontree.JSONDecodeError):
        jsontree.decode("[1]", config)
    assert [error.kind for error in seen] == [ErrorKind.MEMORY]
