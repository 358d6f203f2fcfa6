"""
Capability contracts for the chat platform the dispatcher runs on.

The dispatcher never talks to a concrete SDK. Adapters (see plugbot.slack)
implement these protocols; tests use in-memory fakes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from .event_types import EventCategory

logger = logging.getLogger(__name__)

JOB_FIRED = "job"

Listener = Callable[[Any], None]
Hook = Callable[[], Union[None, Awaitable[None]]]


@dataclass
class IncomingMessage:
    """A chat message as delivered by the platform."""
    channel_id: str
    user_id: str
    content: str
    message_id: str = ""


class JobInterval(Enum):
    """Recurrence of a scheduled job."""
    ONCE = "once"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def step(self) -> Optional[timedelta]:
        """Time between firings, None for one-shot jobs."""
        return _INTERVAL_STEPS[self]


_INTERVAL_STEPS = {
    JobInterval.ONCE: None,
    JobInterval.HOURLY: timedelta(hours=1),
    JobInterval.DAILY: timedelta(days=1),
    JobInterval.WEEKLY: timedelta(weeks=1),
    JobInterval.MONTHLY: timedelta(days=30),
}


@dataclass
class JobSchedule:
    """Request submitted to the scheduler for a recurring job."""
    tag: str
    resource_id: str
    start: datetime
    interval: JobInterval
    end: Optional[datetime] = None


@dataclass
class JobFired:
    """Notification emitted by the scheduler when a job is due."""
    tag: str
    resource_id: str
    job_time: int
    job_schedule_id: str


class EventSurface(Protocol):
    """A notification source listeners can subscribe to."""

    def on(self, event_id: str, handler: Listener) -> None: ...

    def once(self, event_id: str, handler: Listener) -> None: ...


class Scheduler(Protocol):
    """External facility that fires JobFired notifications."""

    def create(self, schedule: JobSchedule) -> Any: ...

    def on(self, event_id: str, handler: Listener) -> None: ...


class Platform(Protocol):
    """Everything the dispatcher needs from the chat platform."""

    scheduler: Scheduler

    async def start(self, on_starting: Optional[Hook] = None) -> None: ...

    def on_message(self, handler: Callable[[IncomingMessage], None]) -> None: ...

    def event_surface(self, category: EventCategory) -> EventSurface: ...

    async def get_member_nickname(self, user_id: str) -> str: ...

    async def send_message(self, channel_id: str, content: str) -> None: ...

    def mention_markup(self, user_id: str, nickname: str) -> str: ...


class ListenerSurface:
    """
    In-memory EventSurface.

    Listeners fire in registration order. Listeners added with once() are
    removed before they are invoked.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}

    def on(self, event_id: str, handler: Listener) -> None:
        self._listeners.setdefault(event_id, []).append((handler, False))

    def once(self, event_id: str, handler: Listener) -> None:
        self._listeners.setdefault(event_id, []).append((handler, True))

    def listener_count(self, event_id: str) -> int:
        return len(self._listeners.get(event_id, []))

    def emit(self, event_id: str, payload: Any) -> int:
        """
        Invoke every listener registered for event_id.

        Returns:
            Number of listeners invoked
        """
        listeners = self._listeners.get(event_id, [])
        if not listeners:
            return 0

        self._listeners[event_id] = [entry for entry in listeners if not entry[1]]

        for handler, _ in listeners:
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Listener for '{event_id}' on {self.name or 'surface'} failed")
        return len(listeners)
