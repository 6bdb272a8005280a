import asyncio

import scheduler


async def noop():
    pass


def test_disabled_schedule(monkeypatch):
    monkeypatch.setattr(scheduler, "SCHEDULE_ENABLED", False)
    assert scheduler.init_scheduler(noop) is None


def test_weekly_job_registered(monkeypatch):
    monkeypatch.setattr(scheduler, "SCHEDULE_ENABLED", True)
    monkeypatch.setattr(scheduler, "SCHEDULE_DAY", "mon")

    async def run():
        weekly = scheduler.init_scheduler(noop)
        try:
            job = weekly.get_job("refresh_coaching_summary")
            assert job is not None
            assert "day_of_week='mon'" in str(job.trigger)
        finally:
            weekly.shutdown(wait=False)

    asyncio.run(run())
