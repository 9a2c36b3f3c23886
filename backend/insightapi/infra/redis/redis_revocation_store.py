# insightapi/infra/redis/redis_revocation_store.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast

import redis  # type: ignore[import-untyped]

from insightapi.services._shared.ports.revocation_store import RevocationStore


@dataclass(slots=True)
class RedisRevocationStore(RevocationStore):
    """
    Redis-backed revocation set: one sorted set per principal.

    Members are retired token ids, scores are the retired token's own expiry
    (epoch seconds). Expired members are trimmed on every write and the key
    itself expires with its longest-lived member, so the set stays bounded
    without a background job.

    :param r: A Redis client (already connected).
    :param prefix: Key prefix; keys look like ``rt:revoked:{principal_id}``.
    """

    r: redis.Redis
    prefix: str = "rt:revoked"

    # -------------------- helpers --------------------

    def _k(self, principal_id: int) -> str:
        return f"{self.prefix}:{principal_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> float:
        # Naive datetimes are taken as UTC
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.timestamp()

    @staticmethod
    def _decode(value: bytes | str) -> str:
        return value.decode() if isinstance(value, bytes) else value

    # -------------------- API ------------------------

    def contains(self, principal_id: int, token_id: str) -> bool:
        return self.r.zscore(self._k(principal_id), token_id) is not None

    def add(self, principal_id: int, token_id: str, *, expires_at: datetime) -> bool:
        key = self._k(principal_id)
        now_ts = datetime.now(UTC).timestamp()

        pipe = self.r.pipeline(transaction=True)
        pipe.zadd(key, {token_id: self._to_ts(expires_at)}, nx=True)
        pipe.zremrangebyscore(key, "-inf", f"({now_ts}")
        pipe.zrevrange(key, 0, 0, withscores=True)
        added, _, newest = pipe.execute()

        if newest:
            _, max_score = newest[0]
            self.r.expireat(key, int(max_score) + 1)
        return cast(int, added) == 1

    def clear(self, principal_id: int) -> int:
        key = self._k(principal_id)
        pipe = self.r.pipeline(transaction=True)
        pipe.zcard(key)
        pipe.delete(key)
        size, _ = pipe.execute()
        return int(size)

    def members(self, principal_id: int) -> frozenset[str]:
        raw = cast(list[bytes | str], self.r.zrange(self._k(principal_id), 0, -1))
        return frozenset(self._decode(v) for v in raw)

    def prune(self, now: datetime | None = None) -> int:
        cutoff = self._to_ts(now or datetime.now(UTC))
        removed = 0
        for key in self.r.scan_iter(match=f"{self.prefix}:*"):
            removed += int(self.r.zremrangebyscore(key, "-inf", f"({cutoff}"))
        return removed
