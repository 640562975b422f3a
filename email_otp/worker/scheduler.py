import logging
import time
from datetime import datetime, timezone

from ..core.errors import StorageError
from ..core.repository import OtpRepository

logger = logging.getLogger(__name__)


class ExpiredOtpSweeper:
    def __init__(
        self,
        repo: OtpRepository,
        poll_interval_seconds: int = 60,
        clock=None,
        sleep=time.sleep,
    ):
        self.repo = repo
        self.poll_interval_seconds = poll_interval_seconds
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.sleep = sleep
        self._running = False

    def run_forever(self):
        logger.info("ExpiredOtpSweeper started")
        self._running = True

        while self._running:
            try:
                self.run_once()
            except Exception:
                logger.exception("Sweeper loop error")
            self.sleep(self.poll_interval_seconds)

    def stop(self):
        self._running = False

    def run_once(self) -> int:
        try:
            removed = self.repo.sweep_expired(self.clock())
        except StorageError:
            # next tick retries
            logger.exception("Expired OTP sweep failed")
            return 0

        if removed:
            logger.info("Removed %d expired OTP record(s)", removed)
        else:
            logger.debug("No expired OTP records")
        return removed
