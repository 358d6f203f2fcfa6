"""
Daily report job - logs a heartbeat once a day.
"""

import logging
from datetime import datetime

from plugbot import Job, JobContext, JobInterval

logger = logging.getLogger(__name__)


class DailyReportJob(Job):
    def __init__(self):
        super().__init__(
            tag="daily-report",
            resource_id="app-reports",
            start=datetime.now(),
            interval=JobInterval.DAILY,
        )

    async def execute(self, context: JobContext) -> None:
        fired = datetime.fromtimestamp(context.job_time / 1000)
        logger.info(
            f"Daily report for {fired:%A, %Y-%m-%d}: app is running "
            f"(schedule {context.job_schedule_id}, tag {context.tag})"
        )
