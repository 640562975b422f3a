from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..core.errors import (
    AlreadyVerifiedError,
    AttemptsExhaustedError,
    DeliveryError,
    MismatchError,
    NotFoundError,
    OtpError,
    StorageError,
    ThrottleError,
    ValidationError,
)
from ..core.service import EmailVerificationService

router = APIRouter(tags=["otp"])

ERROR_STATUS = {
    ValidationError: 400,
    MismatchError: 400,
    NotFoundError: 404,
    AlreadyVerifiedError: 409,
    ThrottleError: 429,
    AttemptsExhaustedError: 429,
    DeliveryError: 502,
    StorageError: 503,
}


class SendOtpRequest(BaseModel):
    email: str


class VerifyOtpRequest(BaseModel):
    email: str
    otp: str


class OtpResponse(BaseModel):
    success: bool
    message: str
    reason: Optional[str] = None


def get_service(request: Request) -> EmailVerificationService:
    return request.app.state.verification_service


def error_response(exc: OtpError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), 400)
    headers = None
    if isinstance(exc, ThrottleError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    body = OtpResponse(success=False, message=exc.message, reason=exc.reason)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@router.post("/send-otp", response_model=OtpResponse)
def send_otp(
    payload: SendOtpRequest,
    service: EmailVerificationService = Depends(get_service),
):
    try:
        service.send_verification_code(payload.email)
    except OtpError as exc:
        return error_response(exc)
    return OtpResponse(success=True, message="Verification code sent")


@router.post("/verify-otp", response_model=OtpResponse)
def verify_otp(
    payload: VerifyOtpRequest,
    service: EmailVerificationService = Depends(get_service),
):
    try:
        service.verify_code(payload.email, payload.otp)
    except OtpError as exc:
        return error_response(exc)
    return OtpResponse(success=True, message="Email verified successfully")
