import logging
from datetime import datetime

from plugbot.jobs import JobRouter
from plugbot.models import Job, JobContext
from plugbot.platform import JobFired, JobInterval
from plugbot.tasks import drain


class RecordingJob(Job):
    def __init__(self, tag="cleanup", resource_id="r1", enabled=True):
        super().__init__(
            tag=tag,
            resource_id=resource_id,
            start=datetime(2024, 1, 1, 9, 0),
            interval=JobInterval.HOURLY,
            enabled=enabled,
        )
        self.contexts: list[JobContext] = []

    async def execute(self, context: JobContext) -> None:
        self.contexts.append(context)


class SkippedJob(RecordingJob):
    def validate(self, context: JobContext) -> bool:
        return False


class BrokenJob(RecordingJob):
    async def execute(self, context: JobContext) -> None:
        raise ValueError("disk full")


async def test_load_submits_enabled_jobs_to_scheduler(platform) -> None:
    router = JobRouter(platform)
    router.load({
        "a": RecordingJob("cleanup", "r1"),
        "b": RecordingJob("report", "r2", enabled=False),
    })

    assert [(s.tag, s.resource_id, s.interval) for s in platform.scheduler.created] == [
        ("cleanup", "r1", JobInterval.HOURLY)
    ]
    assert platform.scheduler.created[0].start == datetime(2024, 1, 1, 9, 0)
    assert list(router.jobs) == ["a"]
    assert router.schedules == {"a": "schedule-1"}


async def test_listener_is_attached_once(platform) -> None:
    router = JobRouter(platform)
    router.load({"a": RecordingJob()})

    assert router.attach_listener() is False
    router.load({})

    assert platform.scheduler.on_calls == 1


async def test_firing_runs_only_the_matching_job(platform) -> None:
    first = RecordingJob("cleanup", "r1")
    second = RecordingJob("report", "r2")
    router = JobRouter(platform)
    router.load({"a": first, "b": second})

    platform.scheduler.fire("report", "r2", job_time=123, schedule_id="schedule-2")
    await drain()

    assert first.contexts == []
    assert len(second.contexts) == 1
    context = second.contexts[0]
    assert (context.tag, context.resource_id, context.job_time, context.job_schedule_id) == (
        "report", "r2", 123, "schedule-2"
    )
    assert context.platform is platform


async def test_unmatched_firing_is_dropped(platform) -> None:
    job = RecordingJob("cleanup", "r1")
    router = JobRouter(platform)
    router.load({"a": job})

    platform.scheduler.fire("cleanup", "other-resource")
    platform.scheduler.fire("someone-elses-job", "r1")
    await drain()

    assert job.contexts == []
    assert await router.handle_job_fired(JobFired("nope", "r1", 0, "s")) is False


async def test_validator_rejection_skips_execute(platform) -> None:
    job = SkippedJob()
    router = JobRouter(platform)
    router.load({"a": job})

    assert await router.handle_job_fired(JobFired("cleanup", "r1", 0, "s")) is False
    assert job.contexts == []


async def test_job_exceptions_are_logged(platform, caplog) -> None:
    router = JobRouter(platform)
    router.load({"a": BrokenJob()})

    with caplog.at_level(logging.ERROR):
        platform.scheduler.fire("cleanup", "r1")
        await drain()

    assert "Error executing job cleanup" in caplog.text
    assert "disk full" in caplog.text


async def test_duplicate_correlation_key_is_reported(platform, caplog) -> None:
    first = RecordingJob("cleanup", "r1")

    class Twin(RecordingJob):
        pass

    second = Twin("cleanup", "r1")
    router = JobRouter(platform)

    with caplog.at_level(logging.WARNING):
        router.load({"a": first, "b": second})
    assert "share tag 'cleanup'" in caplog.text
    assert "firings will run" in caplog.text

    await router.handle_job_fired(JobFired("cleanup", "r1", 0, "s"))
    assert len(first.contexts) == 1
    assert second.contexts == []


def test_job_defaults() -> None:
    job = RecordingJob()
    assert job.name == "cleanup"
    assert job.end is None
    assert job.enabled is True
    assert job.key == ("cleanup", "r1")


async def test_same_class_jobs_on_different_resources_both_run(platform) -> None:
    alpha = RecordingJob("report", "alpha")
    beta = RecordingJob("report", "beta")
    router = JobRouter(platform)
    router.load({"report:/jobs/alpha.py": alpha, "report:/jobs/beta.py": beta})

    assert len(router.jobs) == 2
    assert len(router.schedules) == 2

    platform.scheduler.fire("report", "alpha")
    platform.scheduler.fire("report", "beta")
    await drain()

    assert [context.resource_id for context in alpha.contexts] == ["alpha"]
    assert [context.resource_id for context in beta.contexts] == ["beta"]
