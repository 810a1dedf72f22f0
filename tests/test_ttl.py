"""
Tests for TTL Support

These tests verify Time-To-Live (TTL) functionality:
- Keys expire after their TTL, or after the store default
- Expired keys read as absent without being removed (lazy expiration)
- delete_expired() reclaims them

Run with: python -m pytest tests/test_ttl.py -v

Note: Some tests use time.sleep() with sub-second TTLs.
Run with -m "not slow" to skip them.
"""

import time
from datetime import timedelta

import pytest

from memkv.cache.entry import NEVER
from memkv.cache.errors import KeyNotFoundError
from memkv.cache.store import KVStore


class TestTTLBasic:
    """Test basic TTL functionality."""

    def test_zero_ttl_zero_default_never_expires(self, store: KVStore):
        """Test TTL=0 with no default means no expiration."""
        store.set("key", "value", ttl=0)

        assert store._entries["key"].expiration == NEVER
        assert store.ttl("key") is None

    def test_negative_ttl_never_expires(self, default_ttl_store: KVStore):
        """Test a negative explicit TTL disables expiration."""
        default_ttl_store.set("key", "value", ttl=-1)
        assert default_ttl_store._entries["key"].expiration == NEVER

    def test_positive_ttl_sets_expiration(self, store: KVStore):
        """Test expiration equals write time plus TTL."""
        before = time.time_ns()
        store.set("key", "value", ttl=10)
        after = time.time_ns()

        entry = store._entries["key"]
        assert before + 10_000_000_000 <= entry.expiration <= after + 10_000_000_000

    def test_timedelta_ttl(self, store: KVStore):
        """Test a timedelta is accepted as TTL."""
        store.set("key", "value", ttl=timedelta(minutes=1))

        remaining = store.ttl("key")
        assert 59 < remaining <= 60

    def test_invalid_ttl_type(self, store: KVStore):
        """Test a non-numeric TTL is rejected."""
        with pytest.raises(TypeError):
            store.set("key", "value", ttl="10")
        assert store.count() == 0

    def test_infinite_ttl_rejected(self, store: KVStore):
        """Test a non-finite TTL raises ValueError."""
        with pytest.raises(ValueError):
            store.set("key", "value", ttl=float("inf"))
        assert store.count() == 0

    def test_sub_nanosecond_ttl_is_explicit(self, default_ttl_store: KVStore):
        """Test a tiny TTL is not replaced by the default TTL."""
        default_ttl_store.set("key", "value", ttl=1e-10)

        entry = default_ttl_store._entries["key"]
        assert entry.expiration == entry.created + 1

    def test_key_accessible_before_expiry(self, store: KVStore):
        """Test key is accessible before TTL expires."""
        store.set("key", "value", ttl=10)

        assert store.get("key") == ("value", True)
        assert store.expire("key") is False

    @pytest.mark.slow
    def test_key_expires_after_ttl(self, store: KVStore):
        """Test key reads as absent after its TTL, without any sweep."""
        store.set("key", "value", ttl=0.05)
        assert store.get("key") == ("value", True)

        time.sleep(0.1)

        assert store.get("key") == (None, False)
        assert store.expire("key") is True


class TestTTLDefault:
    """Test the store-wide default TTL."""

    def test_default_applies_when_ttl_zero(self, default_ttl_store: KVStore):
        """Test ttl=0 behaves like ttl=default_ttl."""
        default_ttl_store.set("implicit", "value")
        default_ttl_store.set("explicit", "value", ttl=60)

        implicit = default_ttl_store._entries["implicit"].expiration
        explicit = default_ttl_store._entries["explicit"].expiration

        assert implicit != NEVER
        assert abs(explicit - implicit) < 1_000_000_000

    def test_explicit_ttl_overrides_default(self, default_ttl_store: KVStore):
        """Test a nonzero TTL wins over the default."""
        default_ttl_store.set("key", "value", ttl=5)
        assert default_ttl_store.ttl("key") <= 5

    @pytest.mark.slow
    def test_short_default_expires(self):
        """Test writes expire after a short default TTL."""
        with KVStore(default_ttl=0.05, sweep_interval=0) as store:
            store.set("key", "value")
            time.sleep(0.1)
            assert store.get("key") == (None, False)

    def test_default_from_settings(self, monkeypatch):
        """Test constructor falls back to settings."""
        from memkv.config.settings import settings

        monkeypatch.setattr(settings, "DEFAULT_TTL", 30)
        monkeypatch.setattr(settings, "SWEEP_INTERVAL", 0)

        with KVStore() as store:
            assert store.default_ttl == 30
            assert store.sweep_interval == 0
            store.set("key", "value")
            assert 29 < store.ttl("key") <= 30


class TestTTLLazyExpiration:
    """Test that reads never remove expired entries."""

    @pytest.mark.slow
    def test_get_does_not_remove_expired_key(self, store: KVStore):
        """Test get() leaves the expired entry for the sweeper."""
        store.set("key", "value", ttl=0.05)
        time.sleep(0.1)

        assert store.get("key") == (None, False)
        assert "key" in store._entries
        assert store.count() == 1

    @pytest.mark.slow
    def test_ttl_of_expired_key(self, store: KVStore):
        """Test ttl() treats an expired key as missing."""
        store.set("key", "value", ttl=0.05)
        time.sleep(0.1)

        with pytest.raises(KeyNotFoundError):
            store.ttl("key")

    @pytest.mark.slow
    def test_delete_expired_but_unswept_key(self, store: KVStore):
        """Test delete() still removes an expired entry that is stored."""
        store.set("key", "value", ttl=0.05)
        time.sleep(0.1)

        store.delete("key")
        assert store.count() == 0

    @pytest.mark.slow
    def test_increment_preserves_expiration(self, store: KVStore):
        """Test increment does not extend a key's lifetime."""
        store.set("n", 1, ttl=0.1)
        store.increment("n", 1)
        time.sleep(0.15)

        assert store.get("n") == (None, False)


class TestTTLUpdate:
    """Test TTL behavior on updates."""

    @pytest.mark.slow
    def test_update_resets_ttl(self, store: KVStore):
        """Test rewriting a key restarts its TTL."""
        store.set("key", "value1", ttl=0.1)
        time.sleep(0.06)
        store.set("key", "value2", ttl=0.2)
        time.sleep(0.06)  # Original would have expired

        assert store.get("key") == ("value2", True)

    @pytest.mark.slow
    def test_update_removes_ttl(self, store: KVStore):
        """Test rewriting with TTL=0 (and no default) removes expiration."""
        store.set("key", "value1", ttl=0.05)
        store.set("key", "value2", ttl=0)
        time.sleep(0.1)

        assert store.get("key") == ("value2", True)


class TestTTLActiveCleanup:
    """Test delete_expired()."""

    @pytest.mark.slow
    def test_delete_expired_removes_keys(self, store: KVStore):
        """Test delete_expired() removes only expired keys."""
        store.set("key1", "value1", ttl=0.05)
        store.set("key2", "value2", ttl=0.05)
        store.set("key3", "value3", ttl=0)  # No TTL
        store.set("key4", "value4", ttl=60)

        time.sleep(0.1)

        assert store.delete_expired() == 2
        assert store.count() == 2
        assert store.get("key3") == ("value3", True)
        assert store.get("key4") == ("value4", True)

    def test_delete_expired_empty_store(self, store: KVStore):
        """Test cleanup on empty store."""
        assert store.delete_expired() == 0

    def test_delete_expired_no_expired_keys(self, store: KVStore):
        """Test cleanup when no keys are expired."""
        store.set("key1", "value1", ttl=60)
        store.set("key2", "value2", ttl=0)

        assert store.delete_expired() == 0
        assert store.count() == 2

    @pytest.mark.slow
    def test_stats_show_expired(self, store: KVStore):
        """Test get_stats counts expired but unswept keys."""
        store.set("key1", "value1", ttl=0.05)
        store.set("key2", "value2", ttl=0)

        time.sleep(0.1)
        stats = store.get_stats()

        assert stats["total_keys"] == 2
        assert stats["expired_keys"] == 1
        assert stats["active_keys"] == 1
