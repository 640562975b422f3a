from dataclasses import dataclass
from datetime import timedelta

from shared.runtime_config import env_bool, env_int, env_str

from .core.models import OTP_CODE_MAX_LENGTH
from .core.policy import OtpPolicy


BACKENDS = ("postgres", "redis", "memory")
NOTIFIERS = ("smtp", "gateway", "console")


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    username: str
    password: str
    sender: str
    use_ssl: bool
    timeout_seconds: int


def load_policy() -> OtpPolicy:
    return OtpPolicy(
        otp_length=env_int("OTP_LENGTH", 6, minimum=1, maximum=OTP_CODE_MAX_LENGTH),
        expiry=timedelta(minutes=env_int("OTP_EXPIRY_MINUTES", 10, minimum=1)),
        max_attempts=env_int("OTP_MAX_ATTEMPTS", 3, minimum=1),
        resend_delay=timedelta(minutes=env_int("OTP_RESEND_DELAY_MINUTES", 1, minimum=0)),
    )


def otp_backend() -> str:
    backend = env_str("OTP_BACKEND", "postgres").lower()
    if backend not in BACKENDS:
        raise RuntimeError(f"OTP_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")
    return backend


def otp_notifier() -> str:
    notifier = env_str("OTP_NOTIFIER", "smtp").lower()
    if notifier not in NOTIFIERS:
        raise RuntimeError(f"OTP_NOTIFIER must be one of {', '.join(NOTIFIERS)}, got {notifier!r}")
    return notifier


def database_url() -> str:
    return env_str("DATABASE_URL")


def redis_url() -> str:
    return env_str("REDIS_URL", "redis://localhost:6379/0")


def redis_key_prefix() -> str:
    return env_str("OTP_REDIS_KEY_PREFIX", "otp:")


def smtp_settings() -> SmtpSettings:
    use_ssl = env_bool("SMTP_USE_SSL")
    return SmtpSettings(
        host=env_str("SMTP_HOST"),
        port=env_int("SMTP_PORT", 465 if use_ssl else 587),
        username=env_str("SMTP_USER"),
        password=env_str("SMTP_PASS"),
        sender=env_str("SMTP_FROM"),
        use_ssl=use_ssl,
        timeout_seconds=env_int("SMTP_TIMEOUT", 15, minimum=1),
    )


def email_gateway_url() -> str:
    return env_str("EMAIL_GATEWAY_URL", "http://email_gateway:3000")


def sweep_interval_seconds() -> int:
    return env_int("OTP_SWEEP_INTERVAL_SECONDS", 60, minimum=1)
