"""
Unit Tests for the Silence Timer
"""

import asyncio

import pytest

from services.conversation import SilenceTimer


@pytest.mark.asyncio
async def test_fires_once_after_interval():
    fired = []
    timer = SilenceTimer(0.02, lambda: fired.append(True))

    timer.reset()
    assert timer.is_pending
    await asyncio.sleep(0.06)

    assert fired == [True]
    assert not timer.is_pending


@pytest.mark.asyncio
async def test_reset_restarts_countdown():
    fired = []
    timer = SilenceTimer(0.1, lambda: fired.append(True))

    timer.reset()
    for _ in range(3):
        await asyncio.sleep(0.03)
        timer.reset()
    assert fired == []

    await asyncio.sleep(0.2)
    assert fired == [True]


@pytest.mark.asyncio
async def test_cancel_prevents_callback():
    fired = []
    timer = SilenceTimer(0.02, lambda: fired.append(True))

    timer.reset()
    timer.cancel()
    timer.cancel()
    await asyncio.sleep(0.05)

    assert fired == []


@pytest.mark.asyncio
async def test_callback_error_is_contained():
    def explode():
        raise RuntimeError("boom")

    timer = SilenceTimer(0.01, explode)
    timer.reset()
    await asyncio.sleep(0.04)

    assert not timer.is_pending
