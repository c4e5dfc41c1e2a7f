"""Tests for the minute tick that evaluates ad schedules."""

from unittest.mock import MagicMock

from radio_playout.scheduler import AdScheduler

def test_setup_registers_single_minute_job():
    scheduler = AdScheduler(MagicMock())
    scheduler.setup_schedule()
    scheduler.setup_schedule()

    assert len(scheduler.scheduler.jobs) == 1
    job = scheduler.scheduler.jobs[0]
    assert job.unit == "minutes"
    assert job.interval == 1

def test_tick_checks_engine():
    engine = MagicMock()
    engine.check_scheduled_ads.return_value = None
    AdScheduler(engine).tick()
    engine.check_scheduled_ads.assert_called_once_with()

def test_tick_survives_engine_errors():
    engine = MagicMock()
    engine.check_scheduled_ads.side_effect = RuntimeError("boom")
    AdScheduler(engine).tick()  # does not raise

def test_run_exits_after_stop(monkeypatch):
    scheduler = AdScheduler(MagicMock(), poll_interval=0)
    scheduler.setup_schedule()

    calls = []

    def fake_run_pending():
        calls.append(1)
        if len(calls) == 3:
            scheduler.stop()

    monkeypatch.setattr(scheduler.scheduler, "run_pending", fake_run_pending)
    scheduler.run()

    assert len(calls) == 3
    assert not scheduler.running
