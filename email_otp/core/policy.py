from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .models import OTP_CODE_MAX_LENGTH, OtpRecord, OtpState


@dataclass(frozen=True)
class OtpPolicy:
    """Lifecycle limits shared by the service and every backend.

    A record is live while ``now - created_at`` is within ``expiry``. A new
    code for the same email can only be issued once ``resend_delay`` has
    passed since the current record was created.
    """

    otp_length: int = 6
    expiry: timedelta = timedelta(minutes=10)
    max_attempts: int = 3
    resend_delay: timedelta = timedelta(minutes=1)

    def __post_init__(self) -> None:
        if not 1 <= self.otp_length <= OTP_CODE_MAX_LENGTH:
            raise ValueError(f"otp_length must be between 1 and {OTP_CODE_MAX_LENGTH}")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        if self.expiry <= timedelta(0):
            raise ValueError("expiry must be positive")
        if self.resend_delay < timedelta(0):
            raise ValueError("resend_delay must not be negative")

    @property
    def expiry_minutes(self) -> int:
        return int(self.expiry.total_seconds() // 60)

    def expires_at(self, record: OtpRecord) -> datetime:
        return record.created_at + self.expiry

    def is_expired(self, record: OtpRecord, now: datetime) -> bool:
        return now > self.expires_at(record)

    def remaining_ttl(self, record: OtpRecord, now: datetime) -> timedelta:
        remaining = self.expires_at(record) - now
        return max(remaining, timedelta(0))

    def resend_wait(self, record: OtpRecord, now: datetime) -> timedelta:
        """Time left before a new code may be issued; zero when allowed."""
        elapsed = max(now - record.created_at, timedelta(0))
        return max(self.resend_delay - elapsed, timedelta(0))

    def state_of(self, record: OtpRecord | None, now: datetime) -> OtpState:
        if record is None:
            return OtpState.NO_ACTIVE_CODE
        if self.is_expired(record, now):
            return OtpState.EXPIRED
        if record.verified:
            return OtpState.VERIFIED
        if record.attempts >= self.max_attempts:
            return OtpState.ATTEMPTS_EXHAUSTED
        return OtpState.PENDING
