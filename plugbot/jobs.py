"""
Submits Job plugins to the scheduler and redispatches its firings.
"""

import logging
from typing import Any, Optional

from .models import Job, JobContext
from .platform import JOB_FIRED, JobFired, JobSchedule, Platform
from .tasks import maybe_await, spawn

logger = logging.getLogger(__name__)


class JobRouter:
    """
    Keeps the registered jobs and matches scheduler firings to them.

    Firings are matched on (tag, resource_id). A single listener is attached
    to the scheduler no matter how often attach_listener() is called.
    """

    def __init__(self, platform: Platform):
        self.platform = platform
        self.jobs: dict[str, Job] = {}
        self.schedules: dict[str, Any] = {}
        self._listener_registered = False

    def load(self, jobs: dict[str, Job]) -> dict[str, Job]:
        """Register every enabled job from the loader's output."""
        for name, job in jobs.items():
            if not job.enabled:
                logger.info(f"Skipping disabled job: {name}")
                continue

            existing = self.find(job.tag, job.resource_id)
            if existing is not None:
                logger.warning(
                    f"Jobs {existing!r} and {job!r} share tag '{job.tag}' and "
                    f"resource '{job.resource_id}'; firings will run {existing!r} only"
                )

            self.jobs[name] = job
            self.register(job, name)

        self.attach_listener()

        count = len(self.jobs)
        logger.info(f"Registered {count} job{'' if count == 1 else 's'}")
        return self.jobs

    def register(self, job: Job, key: Optional[str] = None) -> Any:
        """Submit a job to the scheduler."""
        schedule = JobSchedule(
            tag=job.tag,
            resource_id=job.resource_id,
            start=job.start,
            interval=job.interval,
            end=job.end,
        )
        handle = self.platform.scheduler.create(schedule)
        self.schedules[key or f"{job.tag}:{job.resource_id}"] = handle
        logger.debug(f"Scheduled job {job.tag} ({job.interval.value}) for {job.resource_id}")
        return handle

    def attach_listener(self) -> bool:
        """
        Subscribe to scheduler firings once.

        Returns:
            True if the listener was attached by this call
        """
        if self._listener_registered:
            return False

        self._listener_registered = True
        self.platform.scheduler.on(JOB_FIRED, self.on_job_fired)
        return True

    def find(self, tag: Optional[str], resource_id: str) -> Optional[Job]:
        for job in self.jobs.values():
            if job.tag == tag and job.resource_id == resource_id:
                return job
        return None

    def on_job_fired(self, notification: JobFired) -> None:
        job = self.find(notification.tag, notification.resource_id)
        if job is None:
            return
        spawn(self.dispatch(job, notification), name=f"job:{job.tag}")

    async def dispatch(self, job: Job, notification: JobFired) -> bool:
        """
        Run one job for a scheduler firing.

        Returns:
            True if the executor ran to completion
        """
        context = JobContext(
            resource_id=notification.resource_id,
            job_time=notification.job_time,
            job_schedule_id=notification.job_schedule_id,
            tag=notification.tag or job.tag,
            platform=self.platform,
        )

        try:
            if job.validate is not None and not await maybe_await(job.validate(context)):
                logger.debug(f"Job {job.tag} rejected by validator")
                return False

            await maybe_await(job.execute(context))
            return True

        except Exception:
            logger.exception(f"Error executing job {job.name} ({type(job).__name__})")
            return False

    async def handle_job_fired(self, notification: JobFired) -> bool:
        """
        Match and run a firing inline.

        Returns:
            False when no registered job matches or the job failed
        """
        job = self.find(notification.tag, notification.resource_id)
        if job is None:
            return False
        return await self.dispatch(job, notification)
