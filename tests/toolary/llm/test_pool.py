"""Tests for the credential pool."""

import pytest

from toolary.llm.pool import (
    CredentialEntry,
    CredentialPool,
    RequestOutcome,
    STATE_ACTIVE,
    STATE_ERROR,
    STATE_RATE_LIMITED,
)


def _pool(store, cipher, clock, **kwargs):
    return CredentialPool(store=store, cipher=cipher, clock=clock, **kwargs)


async def _seeded_pool(store, cipher, clock, secrets=("key-a", "key-b")):
    pool = _pool(store, cipher, clock)
    await pool.replace_all(list(secrets))
    return pool


@pytest.mark.asyncio
async def test_replace_all_persists_only_ciphertext(credential_store, cipher, clock):
    """Test that the store never receives plaintext secrets."""
    await _seeded_pool(credential_store, cipher, clock, ["AIzaSecretOne", "AIzaSecretTwo"])

    assert len(credential_store.entries) == 2
    for raw in credential_store.entries:
        assert raw["version"] == 1
        assert set(raw["ciphertext"]) == {"iv", "data"}
        assert "AIzaSecret" not in str(raw)


@pytest.mark.asyncio
async def test_load_decrypts_and_initializes_status(credential_store, cipher, clock):
    """Test load populates entries with fresh statuses."""
    await _seeded_pool(credential_store, cipher, clock)

    pool = _pool(credential_store, cipher, clock)
    await pool.load()

    assert pool.is_loaded
    assert [e.secret_value for e in pool.entries] == ["key-a", "key-b"]
    for status in pool.statuses:
        assert status.is_healthy is True
        assert status.consecutive_error_count == 0
        assert status.rate_limited_until == 0.0
        assert status.last_used_at == 0.0


@pytest.mark.asyncio
async def test_load_keeps_existing_status(credential_store, cipher, clock):
    """Test reloading does not reset keys already tracked."""
    pool = await _seeded_pool(credential_store, cipher, clock)
    pool.record_outcome(RequestOutcome(credential_index=0, succeeded=False))

    await pool.load()

    assert pool.status(0).consecutive_error_count == 1


@pytest.mark.asyncio
async def test_load_accepts_legacy_plaintext_records(cipher, clock):
    """Test legacy {value} dicts and bare strings still load."""
    from toolary.storage import MemoryCredentialStore

    store = MemoryCredentialStore([{"value": "old-key", "createdAt": 123.0}])
    store.entries.append("bare-key")
    pool = _pool(store, cipher, clock)
    await pool.load()

    assert [e.secret_value for e in pool.entries] == ["old-key", "bare-key"]
    assert pool.entry(0).created_at == 123.0


@pytest.mark.asyncio
async def test_load_failure_yields_empty_pool(cipher, clock):
    """Test storage errors are swallowed into an empty pool."""

    class BrokenStore:
        async def load_encrypted(self):
            raise OSError("disk gone")

        async def save_encrypted(self, entries):
            pass

    pool = _pool(BrokenStore(), cipher, clock)
    await pool.load()

    assert pool.is_loaded
    assert len(pool) == 0


@pytest.mark.asyncio
async def test_load_with_wrong_key_yields_empty_pool(credential_store, clock):
    """Test entries encrypted under another installation do not load."""
    from toolary.storage import SecretCipher

    await _seeded_pool(credential_store, SecretCipher("install-1"), clock)

    pool = _pool(credential_store, SecretCipher("install-2"), clock)
    await pool.load()

    assert len(pool) == 0


@pytest.mark.asyncio
async def test_replace_all_drops_blank_and_resets_status(credential_store, cipher, clock):
    """Test replace_all realigns statuses with the new list."""
    pool = await _seeded_pool(credential_store, cipher, clock, ["a", "b", "c"])
    for _ in range(3):
        pool.record_outcome(RequestOutcome(credential_index=2, succeeded=False))

    await pool.replace_all(["x", "  ", CredentialEntry("y", created_at=42.0)])

    assert [e.secret_value for e in pool.entries] == ["x", "y"]
    assert pool.entry(1).created_at == 42.0
    assert len(pool.statuses) == 2
    assert all(s.is_healthy and s.consecutive_error_count == 0 for s in pool.statuses)


@pytest.mark.asyncio
async def test_failures_increment_by_one_and_success_resets(credential_store, cipher, clock):
    """Test error counter arithmetic."""
    pool = await _seeded_pool(credential_store, cipher, clock)

    pool.record_outcome(RequestOutcome(credential_index=0, succeeded=False, http_status=500))
    assert pool.status(0).consecutive_error_count == 1
    pool.record_outcome(RequestOutcome(credential_index=0, succeeded=False, http_status=500))
    assert pool.status(0).consecutive_error_count == 2

    pool.record_outcome(RequestOutcome(credential_index=0, succeeded=True))
    assert pool.status(0).consecutive_error_count == 0

    pool.record_outcome(RequestOutcome(credential_index=0, succeeded=True))
    assert pool.status(0).consecutive_error_count == 0


@pytest.mark.asyncio
async def test_unhealthy_after_three_failures_until_success(credential_store, cipher, clock):
    """Test health flips at the threshold and only success restores it."""
    pool = await _seeded_pool(credential_store, cipher, clock)

    for expected_healthy in (True, True, False, False):
        pool.record_outcome(RequestOutcome(credential_index=1, succeeded=False, http_status=403))
        assert pool.status(1).is_healthy is expected_healthy

    clock.advance(3600)
    assert pool.status(1).is_healthy is False

    pool.record_outcome(RequestOutcome(credential_index=1, succeeded=True))
    assert pool.status(1).is_healthy is True
    assert pool.status(1).consecutive_error_count == 0


@pytest.mark.asyncio
async def test_rate_limit_sets_cooldown_without_touching_health(credential_store, cipher, clock):
    """Test a 429 outcome opens the cooldown window."""
    pool = await _seeded_pool(credential_store, cipher, clock)

    pool.record_outcome(RequestOutcome(credential_index=0, succeeded=False, http_status=429))

    status = pool.status(0)
    assert status.rate_limited_until == clock.now() + 60.0
    assert status.is_healthy is True
    assert status.consecutive_error_count == 1


@pytest.mark.asyncio
async def test_custom_cooldown(credential_store, cipher, clock):
    pool = _pool(credential_store, cipher, clock, cooldown_seconds=5.0)
    await pool.replace_all(["a"])

    pool.record_outcome(RequestOutcome(credential_index=0, succeeded=False, http_status=429))

    assert pool.status(0).rate_limited_until == clock.now() + 5.0


@pytest.mark.asyncio
async def test_unknown_index_is_ignored(credential_store, cipher, clock):
    pool = await _seeded_pool(credential_store, cipher, clock)

    pool.record_outcome(RequestOutcome(credential_index=7, succeeded=False))

    assert all(s.consecutive_error_count == 0 for s in pool.statuses)


@pytest.mark.asyncio
async def test_snapshot_states_and_no_secrets(credential_store, cipher, clock):
    """Test snapshot labels and that secrets never appear."""
    pool = await _seeded_pool(credential_store, cipher, clock, ["s-active", "s-limited", "s-broken"])
    pool.record_outcome(RequestOutcome(credential_index=1, succeeded=False, http_status=429))
    for _ in range(3):
        pool.record_outcome(RequestOutcome(credential_index=2, succeeded=False, http_status=500))

    snapshot = pool.snapshot()

    assert [v.state for v in snapshot] == [STATE_ACTIVE, STATE_RATE_LIMITED, STATE_ERROR]
    assert [v.index for v in snapshot] == [0, 1, 2]
    assert "s-" not in str([v.to_dict() for v in snapshot])

    clock.advance(61)
    assert pool.snapshot()[1].state == STATE_ACTIVE


def test_credential_entry_repr_hides_secret():
    entry = CredentialEntry(secret_value="AIzaTopSecret", created_at=1.0)
    assert "AIzaTopSecret" not in repr(entry)
