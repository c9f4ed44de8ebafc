"""
Tests for bounded store retries.

Only network-classified SQLAlchemy errors are retried. The sleep is
injected so nothing here actually waits.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from lifecycle.errors import StoreError, TransientStoreError
from store.retry import backoff_delay, run_with_retry, run_with_retry_async


def _operational():
    return OperationalError("SELECT 1", {}, Exception("server closed the connection unexpectedly"))


def _integrity():
    return IntegrityError("INSERT", {}, Exception("duplicate key"))


class Flaky:
    def __init__(self, failures, error_factory=_operational, result="ok"):
        self.failures = failures
        self.error_factory = error_factory
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_factory()
        return self.result


def test_transient_error_is_retried_until_success():
    sleeps = []
    operation = Flaky(failures=2)

    assert run_with_retry(operation, "test op", max_retries=2, sleep=sleeps.append) == "ok"
    assert operation.calls == 3
    assert sleeps == [backoff_delay(1), backoff_delay(2)]


def test_exhausted_retries_raise_transient_store_error():
    operation = Flaky(failures=10)

    with pytest.raises(TransientStoreError):
        run_with_retry(operation, "test op", max_retries=2, sleep=lambda _: None)
    assert operation.calls == 3


def test_non_transient_error_is_not_retried():
    operation = Flaky(failures=1, error_factory=_integrity)

    with pytest.raises(StoreError) as exc_info:
        run_with_retry(operation, "test op", max_retries=2, sleep=lambda _: None)
    assert operation.calls == 1
    assert not isinstance(exc_info.value, TransientStoreError)


def test_zero_retries_fails_on_first_transient_error():
    operation = Flaky(failures=1)
    with pytest.raises(TransientStoreError):
        run_with_retry(operation, "test op", max_retries=0, sleep=lambda _: None)
    assert operation.calls == 1


def test_backoff_is_linear():
    assert backoff_delay(1, base_delay=0.4) == pytest.approx(0.4)
    assert backoff_delay(2, base_delay=0.4) == pytest.approx(0.8)


@pytest.mark.asyncio
async def test_async_retry_rolls_back_after_each_failure():
    rollbacks = []
    flaky = Flaky(failures=1)

    async def operation():
        return flaky()

    async def on_error():
        rollbacks.append(True)

    result = await run_with_retry_async(operation, "test op", on_error=on_error, max_retries=1)

    assert result == "ok"
    assert flaky.calls == 2
    assert rollbacks == [True]


@pytest.mark.asyncio
async def test_async_non_transient_error_raises_store_error():
    async def operation():
        raise _integrity()

    with pytest.raises(StoreError):
        await run_with_retry_async(operation, "test op", max_retries=2)
