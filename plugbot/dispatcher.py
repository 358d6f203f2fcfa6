"""
Central dispatcher for commands, events, and jobs.

Handles:
- Loading plugins once the platform has started
- Parsing prefixed chat messages into command invocations
- Argument validation, cooldowns, and error handling for commands
- Wiring event and job plugins to the platform
"""

import logging
from typing import Any, Callable, Optional

from .commands import CommandRegistry, CooldownTracker
from .config import DispatcherConfig
from .errors import EventConfigurationError
from .event_types import EventCategory, EventType, external_event_for, resolve_category
from .events import EventRouter
from .help_command import HelpCommand
from .helpers import CommandHelpers
from .jobs import JobRouter
from .models import Command, CommandContext, Event, Job
from .platform import IncomingMessage, Platform
from .plugin_loader import PluginLoader
from .tasks import drain, maybe_await, spawn

logger = logging.getLogger(__name__)


def split_command(content: str, prefix: str) -> Optional[tuple[str, list[str]]]:
    """
    Split a prefixed message into a lower-cased command name and raw args.

    Returns:
        (name, args), or None if the text is not a command invocation
    """
    if not content.startswith(prefix):
        return None

    tokens = content[len(prefix):].split()
    if not tokens:
        return None

    return tokens[0].lower(), tokens[1:]


class Dispatcher:
    """Owns the plugin registries and routes platform traffic to them."""

    def __init__(
        self,
        platform: Platform,
        config: Optional[DispatcherConfig] = None,
        loader: Optional[PluginLoader] = None,
        cooldowns: Optional[CooldownTracker] = None,
    ):
        self.platform = platform
        self.config = config if config is not None else DispatcherConfig()
        self.plugin_loader = loader if loader is not None else PluginLoader(**self.config.loader_options())
        self.registry = CommandRegistry()
        self.cooldowns = cooldowns if cooldowns is not None else CooldownTracker()
        self.event_router = EventRouter(platform)
        self.job_router = JobRouter(platform)
        self.started = False

    @property
    def command_prefix(self) -> str:
        return self.config.command_prefix

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Start the platform, load all plugins, and begin handling messages.

        Exits the process if the platform cannot be started.
        """
        try:
            await self.platform.start(self.config.on_starting)
        except Exception as e:
            logger.error(f"Failed to start platform: {e}")
            raise SystemExit(1) from e

        self._load_commands()
        self._load_events()
        self._load_jobs()

        self.platform.on_message(self.on_message)
        self.started = True

        if self.config.on_ready is not None:
            try:
                await maybe_await(self.config.on_ready())
            except Exception:
                logger.exception("on_ready hook failed")

        logger.info("Dispatcher initialized successfully")

    async def shutdown(self) -> None:
        """Wait for in-flight handlers, then run plugin cleanup hooks."""
        await drain()

        units: list[Any] = [
            *self.registry.unique(),
            *self.event_router.events.values(),
            *self.job_router.jobs.values(),
        ]
        for unit in units:
            if unit.cleanup is None:
                continue
            try:
                await maybe_await(unit.cleanup())
            except Exception:
                logger.exception(f"Cleanup failed for {unit!r}")

    def _load_commands(self) -> None:
        """Discover command plugins and register them with their aliases."""
        loaded = self.plugin_loader.load_commands()
        for command in loaded.values():
            self.registry.register(command)

        if not self.config.disable_help_command:
            self.registry.register(HelpCommand(self.registry, self.command_prefix))

        logger.info(
            f"Registered {len(loaded)} commands: {sorted(loaded.keys())}"
        )

    def _load_events(self) -> None:
        self.event_router.load(self.plugin_loader.load_events())

    def _load_jobs(self) -> None:
        self.job_router.load(self.plugin_loader.load_jobs())

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def on_message(self, message: IncomingMessage) -> None:
        """Platform listener: dispatch the message without blocking the caller."""
        if split_command(message.content, self.command_prefix) is None:
            return
        spawn(self.handle_message(message), name=f"command:{message.message_id}")

    async def handle_message(self, message: IncomingMessage) -> Optional[bool]:
        """
        Handle an incoming chat message.

        Returns:
            None if the message is not a command invocation, otherwise the
            result of execute_command()
        """
        parsed = split_command(message.content, self.command_prefix)
        if parsed is None:
            return None

        name, args = parsed
        return await self.execute_command(name, args, message)

    async def execute_command(self, name: str, args: list[str], message: IncomingMessage) -> bool:
        """
        Run a command by name or alias.

        Args:
            name: Command name or alias (case-insensitive)
            args: Raw argument tokens
            message: The message the command originates from

        Returns:
            True if the command executed successfully, False otherwise
        """
        command = self.get_command(name)
        if command is None:
            return False

        helpers = CommandHelpers(message, self.platform)

        parsed = command.parse_args(args)
        if not parsed.valid:
            try:
                await helpers.reply(
                    f"❌ {parsed.error}\n\nUsage: `{self.command_prefix}{command.get_usage()}`"
                )
            except Exception:
                logger.exception(f"Failed to send usage for command {command.name}")
            return False

        remaining = self.cooldowns.remaining(command.name, message.user_id, command.cooldown)
        if remaining > 0:
            logger.warning(
                f"Command {command.name} is on cooldown for user {message.user_id} "
                f"({remaining}ms left)"
            )
            return False

        context = CommandContext(
            args=parsed.args,
            message=message,
            helpers=helpers,
            platform=self.platform,
        )

        try:
            if command.validate is not None and not await maybe_await(command.validate(context)):
                logger.warning(f"Command validation failed for {command.name}")
                return False

            if command.cooldown > 0:
                self.cooldowns.record(command.name, message.user_id)

            await maybe_await(command.execute(context))

        except Exception:
            logger.exception(f"Error executing command {command.name}")
            return False

        logger.info(f"Executed command: {command.name} (user {message.user_id})")
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_command(self, name: str) -> Optional[Command]:
        """Get a command by name or alias."""
        return self.registry.get(name)

    def get_commands(self) -> dict[str, Command]:
        """All registered commands keyed by name and alias."""
        return self.registry.as_dict()

    def get_events(self) -> dict[str, Event]:
        return dict(self.event_router.events)

    def get_jobs(self) -> dict[str, Job]:
        return dict(self.job_router.jobs)

    def get_command_prefix(self) -> str:
        return self.command_prefix

    # ------------------------------------------------------------------
    # Raw subscriptions
    # ------------------------------------------------------------------

    def on(self, event_type: EventType, handler: Callable[[Any], None]) -> None:
        """
        Subscribe a plain callback to a channel message event.

        Raises:
            EventConfigurationError: If the event is not a channel message event
        """
        external_id = external_event_for(event_type)
        category = resolve_category(external_id)
        if category is not EventCategory.CHANNEL_MESSAGES:
            raise EventConfigurationError(f"Unknown event: {event_type}")
        self.platform.event_surface(category).on(external_id, handler)
