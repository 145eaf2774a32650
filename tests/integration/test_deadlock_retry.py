"""
Integration tests del reintento ante deadlocks en las transiciones de admin.

- Detecta errores MySQL 1213 (Deadlock), 1205 (Lock wait timeout) y SQLite busy
- Reintenta la unidad de trabajo completa con exponential backoff
- Los errores de dominio no se reintentan
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.errors import InvalidTransitionError
from app.infrastructure.db.retry import is_deadlock_error, retry_on_deadlock
from tests.factories import make_submit


def _lock_error(message: str) -> OperationalError:
    return OperationalError("statement", "params", message, connection_invalidated=False)


class TestDeadlockDetection:
    @pytest.mark.parametrize(
        "message",
        [
            "(asyncmy.errors.OperationalError) (1213, 'Deadlock found when trying to get lock')",
            "(asyncmy.errors.OperationalError) (1205, 'Lock wait timeout exceeded')",
            "(sqlite3.OperationalError) database is locked",
        ],
    )
    def test_transient_lock_errors_are_detected(self, message):
        assert is_deadlock_error(_lock_error(message))

    def test_other_errors_are_not_deadlocks(self):
        assert not is_deadlock_error(Exception("Generic error"))
        assert not is_deadlock_error(_lock_error("(2013, 'Lost connection to MySQL server')"))


class TestRetryLogic:
    async def test_retry_until_success(self):
        func = AsyncMock(side_effect=[_lock_error("(1213, 'Deadlock found')"), "accepted"])

        result = await retry_on_deadlock(func, max_attempts=3, base_delay=0.01)

        assert result == "accepted"
        assert func.await_count == 2

    async def test_gives_up_after_max_attempts(self):
        func = AsyncMock(side_effect=_lock_error("(1213, 'Deadlock found')"))

        with pytest.raises(OperationalError):
            await retry_on_deadlock(func, max_attempts=3, base_delay=0.01)

        assert func.await_count == 3

    async def test_non_lock_database_error_is_not_retried(self):
        func = AsyncMock(side_effect=_lock_error("(2013, 'Lost connection')"))

        with pytest.raises(OperationalError):
            await retry_on_deadlock(func, max_attempts=3, base_delay=0.01)

        assert func.await_count == 1

    async def test_domain_errors_propagate_on_first_attempt(self, lifecycle):
        booking = await lifecycle.submit(make_submit())
        await lifecycle.accept(booking.id)
        calls = 0

        async def accept_again():
            nonlocal calls
            calls += 1
            return await lifecycle.accept(booking.id)

        with pytest.raises(InvalidTransitionError):
            await retry_on_deadlock(accept_again, base_delay=0.01)

        assert calls == 1
