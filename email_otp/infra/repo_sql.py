from contextlib import contextmanager
from datetime import datetime

import psycopg2
import psycopg2.extras

from ..core.errors import StorageError
from ..core.models import OtpRecord
from ..core.policy import OtpPolicy
from ..core.repository import OtpRepository
from .repo_sql_mapper import row_to_otp_record
from .repo_sql_queries import (
    DELETE_OTP_SQL,
    GET_LIVE_OTP_SQL,
    SWEEP_EXPIRED_SQL,
    UPDATE_OTP_SQL,
    UPSERT_OTP_SQL,
)


class PostgresOtpRepository(OtpRepository):
    def __init__(self, pool, policy: OtpPolicy | None = None):
        self.pool = pool
        self.policy = policy or OtpPolicy()

    # ---------- helpers ----------

    @contextmanager
    def _cursor(self, *, dict_rows: bool = False):
        """One transaction on a pooled connection; commits on clean exit."""
        cursor_factory = psycopg2.extras.RealDictCursor if dict_rows else None
        try:
            conn = self.pool.getconn()
        except psycopg2.Error as exc:
            raise StorageError(f"Database unavailable: {exc}") from exc
        try:
            with conn, conn.cursor(cursor_factory=cursor_factory) as cur:
                yield cur
        except psycopg2.Error as exc:
            raise StorageError(f"Database error: {exc}") from exc
        finally:
            self.pool.putconn(conn, close=bool(conn.closed))

    # ---------- interface ----------

    def store(self, record: OtpRecord) -> None:
        with self._cursor() as cur:
            cur.execute(UPSERT_OTP_SQL, record.model_dump())

    def get(self, email: str, now: datetime) -> OtpRecord | None:
        with self._cursor(dict_rows=True) as cur:
            cur.execute(GET_LIVE_OTP_SQL, (email, now - self.policy.expiry))
            row = cur.fetchone()
            return row_to_otp_record(row) if row else None

    def update(self, record: OtpRecord, previous: OtpRecord, now: datetime) -> bool:
        with self._cursor() as cur:
            cur.execute(
                UPDATE_OTP_SQL,
                {
                    "email": record.email,
                    "attempts": record.attempts,
                    "verified": record.verified,
                    "prev_created_at": previous.created_at,
                    "prev_attempts": previous.attempts,
                    "prev_verified": previous.verified,
                    "cutoff": now - self.policy.expiry,
                },
            )
            return cur.rowcount == 1

    def delete(self, email: str) -> None:
        with self._cursor() as cur:
            cur.execute(DELETE_OTP_SQL, (email,))

    def sweep_expired(self, now: datetime) -> int:
        with self._cursor() as cur:
            cur.execute(SWEEP_EXPIRED_SQL, (now - self.policy.expiry,))
            return cur.rowcount

    def close(self) -> None:
        if not self.pool.closed:
            self.pool.closeall()
