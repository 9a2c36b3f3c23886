# tests/unit/infra/test_redis_revocation_store.py
"""
Unit tests for RedisRevocationStore using fakeredis.

These tests exercise:
- add (new vs duplicate) and contains
- clear returning the number of removed ids
- per-entry expiry trimming and prune
- key expiry following the longest-lived member
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from insightapi.infra.redis.redis_revocation_store import RedisRevocationStore


def _now() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def store(fake_redis):
    return RedisRevocationStore(r=fake_redis)


def test_add_is_idempotent_and_contains(store):
    exp = _now() + timedelta(days=1)
    assert store.add(1, "tid-a", expires_at=exp) is True
    assert store.add(1, "tid-a", expires_at=exp) is False
    assert store.contains(1, "tid-a")
    assert not store.contains(1, "tid-b")
    # Sets are per principal
    assert not store.contains(2, "tid-a")


def test_members_and_clear(store):
    exp = _now() + timedelta(days=1)
    store.add(1, "a", expires_at=exp)
    store.add(1, "b", expires_at=exp)
    store.add(2, "c", expires_at=exp)

    assert store.members(1) == frozenset({"a", "b"})
    assert store.clear(1) == 2
    assert store.members(1) == frozenset()
    assert store.members(2) == frozenset({"c"})
    assert store.clear(1) == 0


def test_writes_trim_entries_whose_token_expired(store):
    store.add(1, "old", expires_at=_now() - timedelta(seconds=5))
    store.add(1, "fresh", expires_at=_now() + timedelta(hours=1))
    assert store.members(1) == frozenset({"fresh"})


def test_key_expires_with_longest_lived_member(store, fake_redis):
    far = _now() + timedelta(days=7)
    store.add(1, "near", expires_at=_now() + timedelta(hours=1))
    store.add(1, "far", expires_at=far)
    ttl = fake_redis.ttl("rt:revoked:1")
    assert 0 < ttl <= int((far - _now()).total_seconds()) + 2


def test_prune_removes_only_expired_entries(store):
    now = _now()
    store.add(1, "a", expires_at=now + timedelta(hours=1))
    store.add(2, "b", expires_at=now + timedelta(hours=3))
    removed = store.prune(now + timedelta(hours=2))
    assert removed == 1
    assert store.members(1) == frozenset()
    assert store.members(2) == frozenset({"b"})
