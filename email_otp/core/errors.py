from __future__ import annotations

import math
from datetime import timedelta


class OtpError(Exception):
    """Base class for every failure surfaced by the verification service."""

    reason = "otp_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OtpError):
    reason = "invalid_input"


class ThrottleError(OtpError):
    reason = "resend_throttled"

    def __init__(self, retry_after: timedelta) -> None:
        self.retry_after = max(retry_after, timedelta(0))
        super().__init__(
            f"Please wait {self.retry_after_seconds} seconds before requesting a new code"
        )

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds, rounded up, as sent in ``Retry-After``."""
        return math.ceil(self.retry_after.total_seconds())


class NotFoundError(OtpError):
    reason = "code_not_found"

    def __init__(self, message: str = "No verification code found or code has expired") -> None:
        super().__init__(message)


class AlreadyVerifiedError(OtpError):
    reason = "already_verified"

    def __init__(self, message: str = "Email is already verified") -> None:
        super().__init__(message)


class AttemptsExhaustedError(OtpError):
    reason = "attempts_exhausted"

    def __init__(
        self,
        message: str = "Maximum verification attempts exceeded, request a new code",
    ) -> None:
        super().__init__(message)


class MismatchError(OtpError):
    reason = "invalid_code"

    def __init__(self, attempts_remaining: int) -> None:
        self.attempts_remaining = attempts_remaining
        super().__init__(
            f"Invalid verification code ({attempts_remaining} attempt(s) left)"
        )


class DeliveryError(OtpError):
    reason = "delivery_failed"


class StorageError(OtpError):
    reason = "storage_unavailable"
