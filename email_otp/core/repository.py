from abc import ABC, abstractmethod
from datetime import datetime

from .models import OtpRecord


class OtpRepository(ABC):
    """
    Stores at most one OTP record per email.

    Implementations:
    - durable (SQL): expired rows linger until swept
    - ephemeral (key-value): the store drops expired keys itself

    Every backend raises StorageError for transport failures.
    """

    @abstractmethod
    def store(self, record: OtpRecord) -> None:
        """
        Insert or replace the record for record.email.

        Must be a single atomic upsert; a previously verified
        record is replaced like any other.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, email: str, now: datetime) -> OtpRecord | None:
        """
        Returns the live record for email, or None.

        A record older than the expiry window is never returned,
        whether or not the storage has purged it yet.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, record: OtpRecord, previous: OtpRecord, now: datetime) -> bool:
        """
        Persist record.attempts and record.verified.

        Applied only if the stored record still matches `previous`
        (same created_at, attempts and verified). Returns False when
        the record changed underneath or no longer exists. Never
        inserts.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, email: str) -> None:
        """
        Remove the record for email. No-op if absent.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep_expired(self, now: datetime) -> int:
        """
        Remove unverified records past the expiry window.

        Returns the number removed. Backends with native expiry
        return 0 without touching storage.
        """
        raise NotImplementedError

    def close(self) -> None:
        return None
