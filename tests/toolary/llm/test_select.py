"""Tests for credential selection."""

import pytest

from toolary.llm.pool import CredentialPool, RequestOutcome
from toolary.llm.select import next_available_at, select_next


async def _pool(store, cipher, clock, count):
    pool = CredentialPool(store=store, cipher=cipher, clock=clock)
    await pool.replace_all([f"key-{i}" for i in range(count)])
    return pool


@pytest.mark.asyncio
async def test_select_empty_pool_returns_none(credential_store, cipher, clock):
    pool = CredentialPool(store=credential_store, cipher=cipher, clock=clock)
    assert select_next(pool) is None


@pytest.mark.asyncio
async def test_select_fresh_pool_picks_lowest_index(credential_store, cipher, clock):
    """Test ties on last_used_at are broken by index."""
    pool = await _pool(credential_store, cipher, clock, 3)

    selection = select_next(pool)

    assert selection.index == 0
    assert selection.entry.secret_value == "key-0"


@pytest.mark.asyncio
async def test_select_stamps_last_used(credential_store, cipher, clock):
    """Test the chosen key is stamped at selection time."""
    pool = await _pool(credential_store, cipher, clock, 2)

    selection = select_next(pool)

    assert pool.status(selection.index).last_used_at == clock.now()
    assert pool.status(1).last_used_at == 0.0


@pytest.mark.asyncio
async def test_select_least_recently_used(credential_store, cipher, clock):
    pool = await _pool(credential_store, cipher, clock, 3)
    pool.status(0).last_used_at = clock.now() - 10
    pool.status(1).last_used_at = clock.now() - 30
    pool.status(2).last_used_at = clock.now() - 20

    assert select_next(pool).index == 1
    assert select_next(pool).index == 2
    assert select_next(pool).index == 0


@pytest.mark.parametrize("count", [2, 3, 5])
@pytest.mark.asyncio
async def test_no_repeat_within_same_tick(credential_store, cipher, clock, count):
    """Test consecutive selections never repeat while another key is eligible."""
    pool = await _pool(credential_store, cipher, clock, count)

    picked = [select_next(pool).index for _ in range(count * 3)]

    for previous, current in zip(picked, picked[1:]):
        assert previous != current
    assert picked[:count] == list(range(count))


@pytest.mark.asyncio
async def test_unhealthy_key_excluded(credential_store, cipher, clock):
    pool = await _pool(credential_store, cipher, clock, 2)
    for _ in range(3):
        pool.record_outcome(RequestOutcome(credential_index=0, succeeded=False))

    assert [select_next(pool).index for _ in range(3)] == [1, 1, 1]


@pytest.mark.asyncio
async def test_rate_limited_key_excluded_then_returns(credential_store, cipher, clock):
    """Test cooldown exclusion ends exactly at rate_limited_until."""
    pool = await _pool(credential_store, cipher, clock, 1)
    pool.record_outcome(RequestOutcome(credential_index=0, succeeded=False, http_status=429))
    assert pool.status(0).is_healthy is True

    assert select_next(pool) is None

    clock.advance(59.9)
    assert select_next(pool) is None

    clock.current = pool.status(0).rate_limited_until
    selection = select_next(pool)
    assert selection is not None
    assert selection.index == 0


@pytest.mark.asyncio
async def test_next_available_at(credential_store, cipher, clock):
    pool = await _pool(credential_store, cipher, clock, 3)
    pool.status(0).rate_limited_until = clock.now() + 30
    pool.status(1).rate_limited_until = clock.now() + 10
    pool.status(2).is_healthy = False
    pool.status(2).rate_limited_until = clock.now() + 5

    assert next_available_at(pool) == clock.now() + 10


@pytest.mark.asyncio
async def test_next_available_at_all_unhealthy(credential_store, cipher, clock):
    pool = await _pool(credential_store, cipher, clock, 2)
    for status in pool.statuses:
        status.is_healthy = False

    assert next_available_at(pool) is None
