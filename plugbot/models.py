"""
Data models and abstract base classes for commands, events, and jobs.

A plugin file defines one subclass of Command, Event, or Job whose
constructor takes no arguments and passes its metadata to super().__init__().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union

from .commands import ParsedArgs, build_usage, parse_args
from .errors import PluginDefinitionError
from .event_types import EventType, external_event_for
from .helpers import CommandHelpers, EventHelpers
from .platform import IncomingMessage, JobInterval, Platform

DEFAULT_CATEGORY = "General"

Validator = Callable[[Any], Union[bool, Awaitable[bool]]]


@dataclass
class CommandArg:
    """Declaration of a single positional command argument."""
    name: str
    description: str = ""
    required: bool = False
    options: Optional[list[str]] = None

    def __post_init__(self):
        if self.options is not None and len(self.options) == 0:
            raise PluginDefinitionError(
                f"Argument '{self.name}' declares an empty set of options"
            )


@dataclass
class CommandContext:
    """Everything a command handler receives."""
    args: list[str]
    message: IncomingMessage
    helpers: CommandHelpers
    platform: Platform

    async def reply(self, content: str, include_mention: bool = False) -> None:
        await self.helpers.reply(content, include_mention=include_mention)


@dataclass
class EventContext:
    """
    Everything an event handler receives.

    data is the platform payload exactly as delivered; helpers carry the
    reply/mention operations bound to the payload's channel.
    """
    event_name: EventType
    data: Any
    helpers: EventHelpers
    platform: Platform

    async def reply(self, content: str) -> None:
        await self.helpers.reply(content)

    async def mention(self, user_id: str) -> str:
        return await self.helpers.mention(user_id)

    async def get_member_nickname(self, user_id: str) -> str:
        return await self.helpers.get_member_nickname(user_id)


@dataclass
class JobContext:
    """Everything a job handler receives when the scheduler fires."""
    resource_id: str
    job_time: int
    job_schedule_id: str
    tag: str
    platform: Platform


class Command(ABC):
    """
    Abstract base class for chat commands.

    Subclasses implement execute() and may define validate(context) -> bool
    and cleanup().
    """

    validate: Optional[Validator] = None
    cleanup: Optional[Callable[[], Any]] = None

    def __init__(
        self,
        name: str,
        description: str = "",
        args: Optional[list[CommandArg]] = None,
        aliases: Optional[list[str]] = None,
        usage: Optional[str] = None,
        examples: Optional[list[str]] = None,
        category: str = DEFAULT_CATEGORY,
        cooldown: int = 0,
    ):
        if not name:
            raise PluginDefinitionError("Command name must not be empty")
        if isinstance(cooldown, bool) or not isinstance(cooldown, (int, float)) or not float(cooldown).is_integer():
            raise PluginDefinitionError(
                f"Command '{name}' cooldown must be a whole number of seconds, got {cooldown!r}"
            )
        if cooldown < 0:
            raise PluginDefinitionError(
                f"Command '{name}' has a negative cooldown ({cooldown})"
            )

        self.name = name
        self.description = description
        self.args = list(args or [])
        self.aliases = list(aliases or [])
        self.usage = usage
        self.examples = list(examples or [])
        self.category = category or DEFAULT_CATEGORY
        self.cooldown = int(cooldown)

    def parse_args(self, provided: list[str]) -> ParsedArgs:
        """Validate provided tokens against this command's argument schema."""
        return parse_args(self.args, provided)

    def get_usage(self) -> str:
        """Explicit usage template, or one derived from the arguments."""
        if self.usage:
            return self.usage
        return build_usage(self.name, self.args)

    @abstractmethod
    async def execute(self, context: CommandContext) -> None:
        """Run the command."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


class Event(ABC):
    """Abstract base class for platform event handlers."""

    validate: Optional[Validator] = None
    cleanup: Optional[Callable[[], Any]] = None

    def __init__(self, event: EventType, once: bool = False, enabled: bool = True):
        self.event = EventType(event)
        self.name = self.event.value
        self.external_event = external_event_for(self.event)
        self.once = once
        self.enabled = enabled

    @abstractmethod
    async def execute(self, context: EventContext) -> None:
        """Handle the event."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} event={self.name!r}>"


class Job(ABC):
    """
    Abstract base class for scheduled jobs.

    (tag, resource_id) is the key the scheduler reports back when the job
    fires, so it should be unique among enabled jobs.
    """

    validate: Optional[Validator] = None
    cleanup: Optional[Callable[[], Any]] = None

    def __init__(
        self,
        tag: str,
        resource_id: str,
        start: datetime,
        interval: JobInterval,
        end: Optional[datetime] = None,
        enabled: bool = True,
    ):
        if not tag:
            raise PluginDefinitionError("Job tag must not be empty")

        self.tag = tag
        self.resource_id = resource_id
        self.start = start
        self.interval = JobInterval(interval)
        self.end = end
        self.enabled = enabled
        self.name = tag

    @property
    def key(self) -> tuple[str, str]:
        return (self.tag, self.resource_id)

    @abstractmethod
    async def execute(self, context: JobContext) -> None:
        """Run the job."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} tag={self.tag!r} resource={self.resource_id!r}>"
