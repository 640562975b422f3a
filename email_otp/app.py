import logging

from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from shared.logging_utils import configure_logging

from .core.service import EmailVerificationService
from .infra.factory import build_notifier, build_repository
from .runtime_config import load_policy
from .transport.http import router as otp_router

log_level = configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI()
app.include_router(otp_router)


@app.on_event("startup")
def open_resources() -> None:
    policy = load_policy()
    repo = build_repository(policy)
    app.state.otp_repo = repo
    app.state.verification_service = EmailVerificationService(
        repo,
        build_notifier(),
        policy=policy,
    )
    logger.info(
        "OTP policy: length=%d expiry=%s max_attempts=%d resend_delay=%s",
        policy.otp_length,
        policy.expiry,
        policy.max_attempts,
        policy.resend_delay,
    )


@app.on_event("shutdown")
def close_resources() -> None:
    repo = getattr(app.state, "otp_repo", None)
    if repo is not None:
        repo.close()
        logger.info("OTP backend closed")


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
