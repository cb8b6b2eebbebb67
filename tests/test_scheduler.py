from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from certwatch.services import collector as collector_module
from certwatch.tasks import scheduler

INTERVAL = timedelta(minutes=5)


class StubCollector:
    def __init__(self, error=None):
        self.error = error
        self.cycles = 0

    def run_cycle(self):
        self.cycles += 1
        if self.error:
            raise self.error


@pytest.fixture
def paused_scheduler(monkeypatch):
    # Jobs get a next_run_time but never fire while paused
    background = BackgroundScheduler(timezone=timezone.utc)
    background.start(paused=True)
    monkeypatch.setattr(scheduler, "_scheduler", background)
    monkeypatch.setattr(scheduler, "get_settings", lambda: SimpleNamespace(check_interval=INTERVAL))
    yield background
    background.shutdown(wait=False)


def _run_with(monkeypatch, stub):
    monkeypatch.setattr(collector_module, "get_collector", lambda: stub)
    before = datetime.now(timezone.utc)
    scheduler._run_scheduled_check()
    after = datetime.now(timezone.utc)
    return before, after


def test_next_check_is_scheduled_after_the_cycle(paused_scheduler, monkeypatch):
    stub = StubCollector()

    before, after = _run_with(monkeypatch, stub)

    assert stub.cycles == 1
    job = paused_scheduler.get_job(scheduler.JOB_ID)
    assert before + INTERVAL <= job.next_run_time <= after + INTERVAL


def test_failed_cycle_still_schedules_the_next_one(paused_scheduler, monkeypatch):
    stub = StubCollector(error=RuntimeError("boom"))

    before, after = _run_with(monkeypatch, stub)

    assert stub.cycles == 1
    job = paused_scheduler.get_job(scheduler.JOB_ID)
    assert before + INTERVAL <= job.next_run_time <= after + INTERVAL


def test_only_one_pending_check(paused_scheduler, monkeypatch):
    _run_with(monkeypatch, StubCollector())
    _run_with(monkeypatch, StubCollector())

    assert [job.id for job in paused_scheduler.get_jobs()] == [scheduler.JOB_ID]
