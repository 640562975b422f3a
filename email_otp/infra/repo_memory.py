from __future__ import annotations

from datetime import datetime
from threading import Lock

from ..core.models import OtpRecord
from ..core.policy import OtpPolicy
from ..core.repository import OtpRepository


class InMemoryOtpRepository(OtpRepository):
    """Process-local store with lazy expiry; for development and tests."""

    def __init__(self, policy: OtpPolicy | None = None) -> None:
        self.policy = policy or OtpPolicy()
        self._lock = Lock()
        self._records: dict[str, OtpRecord] = {}

    def store(self, record: OtpRecord) -> None:
        with self._lock:
            self._records[record.email] = record

    def get(self, email: str, now: datetime) -> OtpRecord | None:
        with self._lock:
            record = self._records.get(email)
            if not record:
                return None
            if self.policy.is_expired(record, now):
                self._records.pop(email, None)
                return None
            return record

    def update(self, record: OtpRecord, previous: OtpRecord, now: datetime) -> bool:
        with self._lock:
            current = self._records.get(record.email)
            if current is None or current != previous:
                return False
            if self.policy.is_expired(current, now):
                self._records.pop(record.email, None)
                return False
            self._records[record.email] = current.model_copy(
                update={"attempts": record.attempts, "verified": record.verified}
            )
            return True

    def delete(self, email: str) -> None:
        with self._lock:
            self._records.pop(email, None)

    def sweep_expired(self, now: datetime) -> int:
        return 0
