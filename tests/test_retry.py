import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from hostel_engine.core.exceptions import (
    PersistenceConflictError,
    TransientConnectionError,
    translate_db_error,
)
from hostel_engine.core.retry import call_with_retry, retry_transient


class Flaky:
    def __init__(self, failures, error):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


def test_transient_failures_are_retried_with_linear_backoff():
    sleeps = []
    retries = []
    func = Flaky(2, TransientConnectionError())

    result = call_with_retry(
        func,
        max_attempts=3,
        backoff_seconds=0.2,
        on_retry=lambda: retries.append(True),
        sleep=sleeps.append,
    )

    assert result == "ok"
    assert func.calls == 3
    assert sleeps == pytest.approx([0.2, 0.4])
    assert len(retries) == 2


def test_gives_up_after_max_attempts():
    func = Flaky(5, TransientConnectionError())

    with pytest.raises(TransientConnectionError):
        call_with_retry(func, max_attempts=3, sleep=lambda _: None)

    assert func.calls == 3


def test_sqlalchemy_disconnect_is_translated_and_retried():
    error = OperationalError("SELECT 1", {}, Exception("server closed the connection unexpectedly"))
    func = Flaky(1, error)

    assert call_with_retry(func, sleep=lambda _: None) == "ok"
    assert func.calls == 2


def test_other_failures_propagate_immediately():
    error = IntegrityError("INSERT", {}, Exception("duplicate key value"))
    func = Flaky(1, error)

    with pytest.raises(PersistenceConflictError):
        call_with_retry(func, sleep=lambda _: None)

    assert func.calls == 1


def test_decorator_form():
    calls = []

    @retry_transient(max_attempts=2, backoff_seconds=0)
    def lookup(value):
        calls.append(value)
        if len(calls) == 1:
            raise TransientConnectionError()
        return value * 2

    assert lookup(21) == 42
    assert calls == [21, 21]


@pytest.mark.parametrize(
    "error,expected",
    [
        (IntegrityError("INSERT", {}, Exception("unique violation")), PersistenceConflictError),
        (OperationalError("SELECT", {}, Exception("could not connect to server")), TransientConnectionError),
        (OperationalError("SELECT", {}, Exception("syntax error")), PersistenceConflictError),
    ],
)
def test_translate_db_error(error, expected):
    assert type(translate_db_error(error)) is expected
