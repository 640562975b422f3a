from __future__ import annotations

import hmac
import logging
import re
from datetime import datetime, timedelta, timezone

from shared.logging_utils import mask_email

from .codes import NumericOtpCodeGenerator, OtpCodeGenerator
from .email_formatting import VERIFICATION_SUBJECT, format_verification_email
from .errors import (
    AlreadyVerifiedError,
    AttemptsExhaustedError,
    DeliveryError,
    MismatchError,
    NotFoundError,
    StorageError,
    ThrottleError,
    ValidationError,
)
from .locks import KeyedLock
from .models import OtpRecord, OtpState
from .notifier import Notifier
from .policy import OtpPolicy
from .repository import OtpRepository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
MAX_EMAIL_LENGTH = 254
MAX_UPDATE_RETRIES = 3


class EmailVerificationService:
    def __init__(
        self,
        repo: OtpRepository,
        notifier: Notifier,
        *,
        generator: OtpCodeGenerator | None = None,
        policy: OtpPolicy | None = None,
        clock=None,
        locks: KeyedLock | None = None,
    ):
        self.repo = repo
        self.notifier = notifier
        self.policy = policy or OtpPolicy()
        self.generator = generator or NumericOtpCodeGenerator(self.policy.otp_length)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.locks = locks or KeyedLock()
        self._code_pattern = re.compile(rf"[0-9]{{{self.policy.otp_length}}}")

    # ---------- Public API ----------

    def send_verification_code(self, email: str) -> None:
        email = self.normalize_email(email)
        self._sweep_expired()

        with self.locks.hold(email):
            now = self.clock()
            existing = self.repo.get(email, now)
            if existing:
                wait = self.policy.resend_wait(existing, now)
                if wait > timedelta(0):
                    raise ThrottleError(wait)

            code = self.generator.generate()
            record = OtpRecord(
                email=email,
                code=code,
                created_at=now,
                attempts=0,
                verified=False,
            )
            self.repo.store(record)

            try:
                self.notifier.send(
                    email,
                    VERIFICATION_SUBJECT,
                    format_verification_email(code, self.policy.expiry_minutes),
                )
            except Exception as exc:
                self._discard_undelivered(email)
                if isinstance(exc, DeliveryError):
                    raise
                raise DeliveryError(f"Failed to send verification email: {exc}") from exc

        logger.info("Verification code sent to %s", mask_email(email))

    def verify_code(self, email: str, code: str) -> OtpRecord:
        email = self.normalize_email(email)
        code = self.normalize_code(code)

        with self.locks.hold(email):
            for _ in range(MAX_UPDATE_RETRIES):
                now = self.clock()
                record = self.repo.get(email, now)
                if record is None:
                    raise NotFoundError()

                if record.verified:
                    raise AlreadyVerifiedError()

                if record.attempts >= self.policy.max_attempts:
                    self.repo.delete(email)
                    raise AttemptsExhaustedError()

                # Count the attempt before comparing
                attempts = record.attempts + 1
                matched = hmac.compare_digest(record.code, code)
                updated = record.model_copy(
                    update={"attempts": attempts, "verified": matched}
                )
                if not self.repo.update(updated, record, now):
                    logger.info("Concurrent update for %s, retrying", mask_email(email))
                    continue

                if matched:
                    logger.info("Email %s verified", mask_email(email))
                    return updated

                remaining = self.policy.max_attempts - attempts
                if remaining <= 0:
                    self.repo.delete(email)
                    logger.info("Attempts exhausted for %s", mask_email(email))
                    raise AttemptsExhaustedError()
                raise MismatchError(remaining)

        raise StorageError("Verification code changed concurrently, please retry")

    def get_state(self, email: str) -> OtpState:
        email = self.normalize_email(email)
        now = self.clock()
        return self.policy.state_of(self.repo.get(email, now), now)

    # ---------- Input validation ----------

    def normalize_email(self, email: str) -> str:
        value = (email or "").strip().lower()
        if not value:
            raise ValidationError("Email is required")
        if len(value) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.match(value):
            raise ValidationError("Invalid email format")
        return value

    def normalize_code(self, code: str) -> str:
        value = (code or "").strip()
        if not self._code_pattern.fullmatch(value):
            raise ValidationError(
                f"Verification code must be {self.policy.otp_length} digits"
            )
        return value

    # ---------- helpers ----------

    def _sweep_expired(self) -> None:
        try:
            removed = self.repo.sweep_expired(self.clock())
        except StorageError:
            logger.warning("Expired OTP sweep failed, continuing", exc_info=True)
            return
        if removed:
            logger.debug("Swept %d expired OTP record(s)", removed)

    def _discard_undelivered(self, email: str) -> None:
        try:
            self.repo.delete(email)
        except StorageError:
            logger.exception(
                "Failed to remove undelivered code for %s", mask_email(email)
            )
