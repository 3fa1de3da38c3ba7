import asyncio
import time

import pytest

from census_mcp import config
from census_mcp.core.rate_gate import RateGate, rate_gate

INTERVAL = 0.05
# asyncio may wake a sleeper up to one clock tick early
TOLERANCE = 0.005


@pytest.mark.asyncio
async def test_first_acquire_does_not_wait():
    gate = RateGate(1.0)
    start = time.monotonic()
    await gate.acquire()
    assert time.monotonic() - start < 0.5


@pytest.mark.asyncio
async def test_back_to_back_acquires_are_spaced():
    gate = RateGate(INTERVAL)
    await gate.acquire()
    first = time.monotonic()
    await gate.acquire()
    second = time.monotonic()
    assert second - first >= INTERVAL - TOLERANCE


@pytest.mark.asyncio
async def test_acquire_stamps_even_without_delay():
    gate = RateGate(INTERVAL)
    assert gate.last_request_time == 0.0
    await gate.acquire()
    assert gate.last_request_time > 0.0


@pytest.mark.asyncio
async def test_concurrent_acquires_are_serialized():
    gate = RateGate(INTERVAL)
    stamps = []

    async def worker():
        await gate.acquire()
        stamps.append(time.monotonic())

    await asyncio.gather(*(worker() for _ in range(4)))
    stamps.sort()
    gaps = [b - a for a, b in zip(stamps, stamps[1:])]
    assert all(gap >= INTERVAL - TOLERANCE for gap in gaps)


@pytest.mark.asyncio
async def test_no_wait_once_interval_elapsed():
    gate = RateGate(INTERVAL)
    await gate.acquire()
    await asyncio.sleep(INTERVAL)
    start = time.monotonic()
    await gate.acquire()
    assert time.monotonic() - start < INTERVAL


def test_reset():
    gate = RateGate(INTERVAL)
    gate.last_request_time = 42.0
    gate.reset(0.5)
    assert gate.last_request_time == 0.0
    assert gate.interval == 0.5
    gate.reset()
    assert gate.interval == pytest.approx(config.RATE_LIMIT_MS / 1000)


def test_global_gate_uses_configured_interval():
    # 200ms, i.e. 5 requests per second
    assert rate_gate.interval == pytest.approx(0.2)


def test_global_gate_follows_config_override():
    config.override(RATE_LIMIT_MS=50)
    try:
        assert rate_gate.interval == pytest.approx(0.05)
    finally:
        config.override(RATE_LIMIT_MS=200)


@pytest.mark.asyncio
async def test_global_gate_spacing_follows_config():
    config.override(RATE_LIMIT_MS=INTERVAL * 1000)
    try:
        await rate_gate.acquire()
        first = time.monotonic()
        await rate_gate.acquire()
        elapsed = time.monotonic() - first
    finally:
        config.override(RATE_LIMIT_MS=200)
    assert INTERVAL - TOLERANCE <= elapsed < 0.2
