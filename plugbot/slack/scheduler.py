"""
In-process job scheduler used when the platform has no scheduler of its own.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Optional

from ..platform import JOB_FIRED, JobFired, JobSchedule, Listener, ListenerSurface

logger = logging.getLogger(__name__)


def now_like(reference: datetime) -> datetime:
    """Current time, naive or aware to match reference."""
    return datetime.now(reference.tzinfo) if reference.tzinfo else datetime.now()


def next_run_after(schedule: JobSchedule, previous: datetime, now: datetime) -> Optional[datetime]:
    """
    Next firing time strictly after previous, skipping runs already missed.

    Returns:
        None when the schedule is finished
    """
    step = schedule.interval.step
    if step is None:
        return None

    upcoming = previous + step
    while upcoming <= now:
        upcoming += step

    if schedule.end is not None and upcoming > schedule.end:
        return None
    return upcoming


class IntervalScheduler:
    """
    Fires JobFired notifications for each created schedule.

    One asyncio task per schedule sleeps until the next firing time. The
    first firing happens at `start` (immediately if start is in the past).
    """

    def __init__(self):
        self.surface = ListenerSurface("scheduler")
        self.tasks: dict[str, asyncio.Task] = {}

    def create(self, schedule: JobSchedule) -> str:
        schedule_id = uuid.uuid4().hex
        loop = asyncio.get_running_loop()
        self.tasks[schedule_id] = loop.create_task(
            self._run(schedule_id, schedule), name=f"schedule:{schedule.tag}"
        )
        logger.info(
            f"Created schedule {schedule_id} for {schedule.tag}/{schedule.resource_id} "
            f"({schedule.interval.value}, starting {schedule.start.isoformat()})"
        )
        return schedule_id

    def on(self, event_id: str, handler: Listener) -> None:
        self.surface.on(event_id, handler)

    def fire(self, schedule_id: str, schedule: JobSchedule, when: datetime) -> None:
        notification = JobFired(
            tag=schedule.tag,
            resource_id=schedule.resource_id,
            job_time=int(when.timestamp() * 1000),
            job_schedule_id=schedule_id,
        )
        self.surface.emit(JOB_FIRED, notification)

    async def _run(self, schedule_id: str, schedule: JobSchedule) -> None:
        run_at: Optional[datetime] = schedule.start
        if schedule.end is not None and run_at > schedule.end:
            run_at = None

        try:
            while run_at is not None:
                delay = (run_at - now_like(run_at)).total_seconds()
                if delay > 0:
                    await asyncio.sleep(delay)

                self.fire(schedule_id, schedule, run_at)
                run_at = next_run_after(schedule, run_at, now_like(run_at))
        finally:
            self.tasks.pop(schedule_id, None)
        logger.debug(f"Schedule {schedule_id} finished")

    async def close(self) -> None:
        tasks = list(self.tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.tasks.clear()
