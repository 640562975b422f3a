from __future__ import annotations

import logging
from datetime import datetime, timedelta

import pydantic
import redis

from ..core.errors import StorageError
from ..core.models import OtpRecord
from ..core.policy import OtpPolicy
from ..core.repository import OtpRepository

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "otp:"


def _to_millis(value: timedelta) -> int:
    return int(value.total_seconds() * 1000)


def _same_version(current: OtpRecord, previous: OtpRecord) -> bool:
    return (
        current.created_at == previous.created_at
        and current.attempts == previous.attempts
        and current.verified == previous.verified
    )


class RedisOtpRepository(OtpRepository):
    """
    Keeps each record as a JSON value whose key expires with the record.

    The key TTL always counts down from the record's created_at; updates
    carry over the remaining time instead of restarting it.
    """

    def __init__(
        self,
        client: redis.Redis,
        policy: OtpPolicy | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        self.client = client
        self.policy = policy or OtpPolicy()
        self.key_prefix = key_prefix

    # ---------- helpers ----------

    def _key(self, email: str) -> str:
        return f"{self.key_prefix}{email}"

    def _decode(self, raw) -> OtpRecord:
        try:
            return OtpRecord.model_validate_json(raw)
        except pydantic.ValidationError as exc:
            raise StorageError(f"Corrupt OTP record in Redis: {exc}") from exc

    # ---------- interface ----------

    def store(self, record: OtpRecord) -> None:
        try:
            self.client.set(
                self._key(record.email),
                record.model_dump_json(),
                px=_to_millis(self.policy.expiry),
            )
        except redis.RedisError as exc:
            raise StorageError(f"Redis error: {exc}") from exc

    def get(self, email: str, now: datetime) -> OtpRecord | None:
        try:
            raw = self.client.get(self._key(email))
        except redis.RedisError as exc:
            raise StorageError(f"Redis error: {exc}") from exc
        if raw is None:
            return None
        record = self._decode(raw)
        # TTL already enforces this; guards against clock skew between hosts
        if self.policy.is_expired(record, now):
            return None
        return record

    def update(self, record: OtpRecord, previous: OtpRecord, now: datetime) -> bool:
        key = self._key(record.email)
        try:
            with self.client.pipeline() as pipe:
                pipe.watch(key)
                raw = pipe.get(key)
                if raw is None:
                    return False
                current = self._decode(raw)
                if not _same_version(current, previous):
                    return False

                remaining = _to_millis(self.policy.remaining_ttl(current, now))
                pipe.multi()
                if remaining <= 0:
                    pipe.delete(key)
                else:
                    updated = current.model_copy(
                        update={"attempts": record.attempts, "verified": record.verified}
                    )
                    pipe.set(key, updated.model_dump_json(), px=remaining, xx=True)
                pipe.execute()
                return remaining > 0
        except redis.WatchError:
            logger.debug("OTP key %s changed during update", key)
            return False
        except redis.RedisError as exc:
            raise StorageError(f"Redis error: {exc}") from exc

    def delete(self, email: str) -> None:
        try:
            self.client.delete(self._key(email))
        except redis.RedisError as exc:
            raise StorageError(f"Redis error: {exc}") from exc

    def sweep_expired(self, now: datetime) -> int:
        return 0

    def close(self) -> None:
        self.client.close()
