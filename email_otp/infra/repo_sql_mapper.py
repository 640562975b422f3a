from __future__ import annotations

from ..core.models import OtpRecord


def row_to_otp_record(row) -> OtpRecord:
    return OtpRecord(
        email=row["email"],
        code=row["otp"],
        created_at=row["created_at"],
        attempts=row["attempts"],
        verified=bool(row["verified"]),
    )
