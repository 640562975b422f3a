"""Builds the configured backend and notifier once per process."""
import logging

from ..core.notifier import Notifier
from ..core.policy import OtpPolicy
from ..core.repository import OtpRepository
from ..runtime_config import otp_backend, otp_notifier, redis_key_prefix, smtp_settings
from ..transport.email import ConsoleNotifier, GatewayNotifier, SmtpNotifier
from .db import get_connection_pool
from .redis_client import get_redis_client
from .repo_memory import InMemoryOtpRepository
from .repo_redis import RedisOtpRepository
from .repo_sql import PostgresOtpRepository

logger = logging.getLogger(__name__)


def build_repository(policy: OtpPolicy, backend: str | None = None) -> OtpRepository:
    backend = backend or otp_backend()
    logger.info("Using %s OTP backend", backend)

    if backend == "postgres":
        return PostgresOtpRepository(get_connection_pool(), policy)
    if backend == "redis":
        return RedisOtpRepository(get_redis_client(), policy, key_prefix=redis_key_prefix())
    if backend == "memory":
        logger.warning("In-memory OTP backend: codes are lost on restart")
        return InMemoryOtpRepository(policy)
    raise RuntimeError(f"Unknown OTP backend {backend!r}")


def build_notifier(kind: str | None = None) -> Notifier:
    kind = kind or otp_notifier()
    if kind == "smtp":
        return SmtpNotifier(smtp_settings())
    if kind == "gateway":
        return GatewayNotifier()
    if kind == "console":
        logger.warning("Console notifier: verification emails are only logged")
        return ConsoleNotifier()
    raise RuntimeError(f"Unknown OTP notifier {kind!r}")
