from __future__ import annotations

from email_otp.core.errors import StorageError
from email_otp.worker.scheduler import ExpiredOtpSweeper


class _SweepRepo:
    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def sweep_expired(self, now):
        self.calls.append(now)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_run_once_returns_removed_count(clock):
    repo = _SweepRepo([3])
    sweeper = ExpiredOtpSweeper(repo, clock=clock)

    assert sweeper.run_once() == 3
    assert repo.calls == [clock()]


def test_run_once_survives_storage_error(clock):
    sweeper = ExpiredOtpSweeper(_SweepRepo([StorageError("db down")]), clock=clock)
    assert sweeper.run_once() == 0


def test_run_forever_sleeps_between_sweeps_until_stopped(clock):
    repo = _SweepRepo([0, StorageError("db down"), 2])
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 3:
            sweeper.stop()

    sweeper = ExpiredOtpSweeper(repo, poll_interval_seconds=30, clock=clock, sleep=fake_sleep)
    sweeper.run_forever()

    assert len(repo.calls) == 3
    assert sleeps == [30, 30, 30]


def test_run_forever_survives_unexpected_errors(clock, caplog):
    repo = _SweepRepo([RuntimeError("pool exhausted"), 1])
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 2:
            sweeper.stop()

    sweeper = ExpiredOtpSweeper(repo, poll_interval_seconds=5, clock=clock, sleep=fake_sleep)
    sweeper.run_forever()

    assert len(repo.calls) == 2
    assert sleeps == [5, 5]
    assert "Sweeper loop error" in caplog.text
