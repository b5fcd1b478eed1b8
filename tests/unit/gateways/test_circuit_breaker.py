import logging

import pytest
from pybreaker import STATE_CLOSED, STATE_OPEN

from app.infrastructure.circuit_breaker import gateway_breaker, guarded_call, reset_breakers

LOGGER = "app.infrastructure.circuit_breaker"


def state_changes(caplog) -> list[tuple[str, str]]:
    return [
        (record.old_state, record.new_state)
        for record in caplog.records
        if record.getMessage() == "Circuit breaker state changed"
    ]


def test_reset_of_closed_breaker_logs_nothing(caplog):
    assert gateway_breaker.current_state == STATE_CLOSED

    with caplog.at_level(logging.WARNING, logger=LOGGER):
        reset_breakers()

    assert state_changes(caplog) == []
    assert gateway_breaker.current_state == STATE_CLOSED


def test_reset_of_open_breaker_logs_the_close(caplog):
    gateway_breaker.open()
    caplog.clear()

    with caplog.at_level(logging.WARNING, logger=LOGGER):
        reset_breakers()

    assert state_changes(caplog) == [(STATE_OPEN, STATE_CLOSED)]
    assert gateway_breaker.current_state == STATE_CLOSED


async def test_reset_clears_failures_of_closed_breaker():
    async def failing():
        raise ConnectionError("gateway down")

    with pytest.raises(ConnectionError):
        await guarded_call(gateway_breaker, failing)
    assert gateway_breaker.fail_counter == 1

    reset_breakers()

    assert gateway_breaker.fail_counter == 0
