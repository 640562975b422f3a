from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from email_otp.db import Base

OTP_CODE_MAX_LENGTH = 10


class OtpState(str, Enum):
    NO_ACTIVE_CODE = "NO_ACTIVE_CODE"
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    ATTEMPTS_EXHAUSTED = "ATTEMPTS_EXHAUSTED"
    EXPIRED = "EXPIRED"


class OtpRecord(BaseModel):
    email: str
    code: str
    created_at: datetime
    attempts: int = Field(default=0, ge=0)
    verified: bool = False


class OtpVerificationRow(Base):
    __tablename__ = "otp_verifications"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    otp: Mapped[str] = mapped_column(String(OTP_CODE_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")

    __table_args__ = (
        Index("ix_otp_verifications_created_at", "created_at"),
    )
