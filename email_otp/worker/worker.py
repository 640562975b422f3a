from dotenv import load_dotenv

load_dotenv()

from shared.logging_utils import configure_logging

from ..infra.factory import build_repository
from ..runtime_config import load_policy, sweep_interval_seconds
from .scheduler import ExpiredOtpSweeper


configure_logging()

repo = build_repository(load_policy())
sweeper = ExpiredOtpSweeper(
    repo=repo,
    poll_interval_seconds=sweep_interval_seconds(),
)

try:
    sweeper.run_forever()
finally:
    repo.close()
