"""
Plugin discovery and dispatch for chat bots.

Contains the plugin base classes, the loader, the command/event/job routers,
and the dispatcher that ties them to a chat platform.
"""

from .errors import PlugbotError, PluginDefinitionError, EventConfigurationError, PlatformStartError
from .event_types import EventType, EventCategory, EVENT_MAP, resolve_category
from .platform import IncomingMessage, JobInterval, JobFired, JobSchedule, ListenerSurface
from .models import (
    Command,
    CommandArg,
    CommandContext,
    Event,
    EventContext,
    Job,
    JobContext,
)
from .commands import CommandRegistry, CooldownTracker, ParsedArgs, parse_args, build_usage
from .helpers import CommandHelpers, EventHelpers
from .config import DispatcherConfig
from .plugin_loader import PluginLoader
from .events import EventRouter
from .jobs import JobRouter
from .dispatcher import Dispatcher

__all__ = [
    'PlugbotError',
    'PluginDefinitionError',
    'EventConfigurationError',
    'PlatformStartError',
    'EventType',
    'EventCategory',
    'EVENT_MAP',
    'resolve_category',
    'IncomingMessage',
    'JobInterval',
    'JobFired',
    'JobSchedule',
    'ListenerSurface',
    'Command',
    'CommandArg',
    'CommandContext',
    'Event',
    'EventContext',
    'Job',
    'JobContext',
    'CommandRegistry',
    'CooldownTracker',
    'ParsedArgs',
    'parse_args',
    'build_usage',
    'CommandHelpers',
    'EventHelpers',
    'DispatcherConfig',
    'PluginLoader',
    'EventRouter',
    'JobRouter',
    'Dispatcher',
]
