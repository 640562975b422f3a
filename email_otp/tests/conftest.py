from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest
import redis

from email_otp.core.errors import DeliveryError
from email_otp.core.policy import OtpPolicy
from email_otp.core.service import EmailVerificationService
from email_otp.infra import repo_sql_queries as queries
from email_otp.infra.repo_memory import InMemoryOtpRepository


@dataclass
class FakeClock:
    now: datetime

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class FakeNotifier:
    sent: list[dict[str, str]] = field(default_factory=list)
    fail_with: Exception | None = None

    def send(self, address: str, subject: str, body_html: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"address": address, "subject": subject, "body": body_html})


@dataclass
class FixedCodeGenerator:
    codes: list[str]

    def generate(self) -> str:
        return self.codes.pop(0)


class FakeRedis:
    """Just enough of redis.Redis for the OTP backend, with clock-driven expiry."""

    def __init__(self, clock: Callable[[], datetime]):
        self.clock = clock
        self.values: dict[str, tuple[bytes, datetime | None]] = {}
        self.versions: dict[str, int] = {}
        self.fail_with: Exception | None = None
        self.before_execute: Callable[[], None] | None = None
        self.closed = False

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _bump(self, name: str) -> None:
        self.versions[name] = self.versions.get(name, 0) + 1

    def _live(self, name: str) -> bytes | None:
        entry = self.values.get(name)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self.values[name]
            self._bump(name)
            return None
        return value

    def get(self, name: str) -> bytes | None:
        self._check()
        return self._live(name)

    def set(self, name: str, value: Any, px: int | None = None, xx: bool = False) -> bool | None:
        self._check()
        if xx and self._live(name) is None:
            return None
        if isinstance(value, str):
            value = value.encode()
        expires_at = self.clock() + timedelta(milliseconds=px) if px else None
        self.values[name] = (value, expires_at)
        self._bump(name)
        return True

    def delete(self, *names: str) -> int:
        self._check()
        removed = 0
        for name in names:
            if self.values.pop(name, None) is not None:
                removed += 1
                self._bump(name)
        return removed

    def pttl(self, name: str) -> int:
        if self._live(name) is None:
            return -2
        _, expires_at = self.values[name]
        if expires_at is None:
            return -1
        return int((expires_at - self.clock()).total_seconds() * 1000)

    def pipeline(self) -> "FakePipeline":
        self._check()
        return FakePipeline(self)

    def close(self) -> None:
        self.closed = True


class FakePipeline:
    def __init__(self, client: FakeRedis):
        self.client = client
        self.watched: dict[str, int] = {}
        self.queued: list[tuple[str, tuple, dict]] = []
        self.buffering = False

    def __enter__(self) -> "FakePipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.reset()

    def reset(self) -> None:
        self.watched.clear()
        self.queued.clear()
        self.buffering = False

    def watch(self, *names: str) -> None:
        for name in names:
            self.watched[name] = self.client.versions.get(name, 0)

    def multi(self) -> None:
        self.buffering = True

    def get(self, name: str):
        if self.buffering:
            self.queued.append(("get", (name,), {}))
            return self
        return self.client.get(name)

    def set(self, name: str, value: Any, **kwargs):
        self.queued.append(("set", (name, value), kwargs))
        return self

    def delete(self, *names: str):
        self.queued.append(("delete", names, {}))
        return self

    def execute(self) -> list:
        if self.client.before_execute is not None:
            hook, self.client.before_execute = self.client.before_execute, None
            hook()
        for name, version in self.watched.items():
            if self.client.versions.get(name, 0) != version:
                raise redis.WatchError("Watched variable changed.")
        results = [getattr(self.client, op)(*args, **kwargs) for op, args, kwargs in self.queued]
        self.reset()
        return results


class FakeOtpTable:
    """In-memory ``otp_verifications`` that answers the statements in repo_sql_queries."""

    def __init__(self):
        self.rows: dict[str, dict[str, Any]] = {}
        self.lock = threading.Lock()

    def execute(self, sql: str, params) -> tuple[int, list[dict[str, Any]]]:
        with self.lock:
            if sql == queries.UPSERT_OTP_SQL:
                self.rows[params["email"]] = {
                    "email": params["email"],
                    "otp": params["code"],
                    "created_at": params["created_at"],
                    "attempts": params["attempts"],
                    "verified": params["verified"],
                }
                return 1, []

            if sql == queries.GET_LIVE_OTP_SQL:
                email, cutoff = params
                row = self.rows.get(email)
                if row is None or not row["created_at"] >= cutoff:
                    return 0, []
                return 1, [dict(row)]

            if sql == queries.UPDATE_OTP_SQL:
                row = self.rows.get(params["email"])
                if (
                    row is None
                    or row["created_at"] != params["prev_created_at"]
                    or row["attempts"] != params["prev_attempts"]
                    or row["verified"] != params["prev_verified"]
                    or not row["created_at"] >= params["cutoff"]
                ):
                    return 0, []
                row["attempts"] = params["attempts"]
                row["verified"] = params["verified"]
                return 1, []

            if sql == queries.DELETE_OTP_SQL:
                (email,) = params
                return (1 if self.rows.pop(email, None) else 0), []

            if sql == queries.SWEEP_EXPIRED_SQL:
                (cutoff,) = params
                expired = [
                    email
                    for email, row in self.rows.items()
                    if row["created_at"] < cutoff and not row["verified"]
                ]
                for email in expired:
                    del self.rows[email]
                return len(expired), []

        raise AssertionError(f"unexpected SQL: {sql}")


class FakeTableCursor:
    def __init__(self, table: FakeOtpTable):
        self.table = table
        self.rowcount = -1
        self.results: list[dict[str, Any]] = []

    def __enter__(self) -> "FakeTableCursor":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def execute(self, sql, params=None) -> None:
        self.rowcount, self.results = self.table.execute(sql, params)

    def fetchone(self):
        return self.results.pop(0) if self.results else None


class FakeTableConnection:
    closed = 0

    def __init__(self, table: FakeOtpTable):
        self.table = table

    def __enter__(self) -> "FakeTableConnection":
        return self

    def __exit__(self, *exc_info) -> bool:
        return False

    def cursor(self, cursor_factory=None) -> FakeTableCursor:
        return FakeTableCursor(self.table)


class FakeTablePool:
    """Stands in for ThreadedConnectionPool; every connection shares one table."""

    def __init__(self, table: FakeOtpTable):
        self.table = table
        self.closed = False

    def getconn(self) -> FakeTableConnection:
        return FakeTableConnection(self.table)

    def putconn(self, conn, close=False) -> None:
        return None

    def closeall(self) -> None:
        self.closed = True


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def policy() -> OtpPolicy:
    return OtpPolicy()


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def memory_repo(policy) -> InMemoryOtpRepository:
    return InMemoryOtpRepository(policy)


@pytest.fixture
def fake_redis(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def make_service(fake_notifier, policy, clock):
    def _make(repo, *, codes: list[str] | None = None, notifier=None):
        generator = FixedCodeGenerator(list(codes)) if codes else None
        return EmailVerificationService(
            repo,
            notifier or fake_notifier,
            generator=generator,
            policy=policy,
            clock=clock,
        )

    return _make


@pytest.fixture
def failing_notifier() -> FakeNotifier:
    return FakeNotifier(fail_with=DeliveryError("SMTP down"))


@pytest.fixture
def otp_table() -> FakeOtpTable:
    return FakeOtpTable()


@pytest.fixture
def table_pool(otp_table) -> FakeTablePool:
    return FakeTablePool(otp_table)
