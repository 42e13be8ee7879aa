import asyncio

import pytest
from core.pacing import FixedDelayPacer, NoDelayPacer, TokenBucketPacer


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []

    async def fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


@pytest.mark.asyncio
async def test_fixed_delay_pacer_sleeps(sleeps):
    await FixedDelayPacer(0.5).wait()
    assert sleeps == [0.5]


@pytest.mark.asyncio
async def test_zero_delay_and_no_delay_pacers_do_not_sleep(sleeps):
    await FixedDelayPacer(0).wait()
    await NoDelayPacer().wait()
    assert sleeps == []


def test_negative_delay_rejected():
    with pytest.raises(ValueError):
        FixedDelayPacer(-1)


@pytest.mark.asyncio
async def test_token_bucket_allows_burst_then_waits(sleeps):
    pacer = TokenBucketPacer(rate=0.001, capacity=2)
    await pacer.wait()
    await pacer.wait()
    assert sleeps == []
    await pacer.wait()
    assert len(sleeps) == 1
    assert sleeps[0] > 0


def test_token_bucket_validation():
    with pytest.raises(ValueError):
        TokenBucketPacer(rate=0)
    with pytest.raises(ValueError):
        TokenBucketPacer(rate=1, capacity=0)
