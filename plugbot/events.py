"""
Routes platform notifications to Event plugins.
"""

import logging
from typing import Any, Callable

from .errors import EventConfigurationError
from .event_types import EventCategory, resolve_category, validate_event_map
from .helpers import EventHelpers, reply_target
from .models import Event, EventContext
from .platform import Platform
from .tasks import maybe_await, spawn

logger = logging.getLogger(__name__)


class EventRouter:
    """
    Attaches enabled Event plugins to the platform surface for their category.

    Each listener builds an EventContext from the raw payload and runs the
    plugin's validator and executor in a background task.
    """

    def __init__(self, platform: Platform, resolve: Callable[[str], EventCategory] = resolve_category):
        self.platform = platform
        self.resolve = resolve
        self.events: dict[str, Event] = {}

    def load(self, events: dict[str, Event]) -> dict[str, Event]:
        """
        Register every enabled event from the loader's output.

        Raises:
            EventConfigurationError: If the event table is inconsistent or an
                event cannot be classified
        """
        try:
            validate_event_map()
        except EventConfigurationError as e:
            logger.error(f"Event table is inconsistent: {e}")
            raise

        for name, event in events.items():
            if not event.enabled:
                logger.info(f"Skipping disabled event: {name}")
                continue

            try:
                self.register(event)
            except EventConfigurationError:
                logger.error(f"Cannot register event {name}: invalid event configuration")
                raise

            self.events[name] = event

        logger.info(f"Registered {len(self.events)} events")
        return self.events

    def register(self, event: Event) -> EventCategory:
        """Attach a listener for one event and return its category."""
        category = self.resolve(event.external_event)
        surface = self.platform.event_surface(category)
        listener = self.make_listener(event)

        if event.once:
            surface.once(event.external_event, listener)
        else:
            surface.on(event.external_event, listener)

        logger.debug(
            f"Attached {'once' if event.once else 'on'} listener for {event.name} "
            f"({event.external_event} on {category.value})"
        )
        return category

    def make_listener(self, event: Event) -> Callable[[Any], None]:
        def listener(payload: Any) -> None:
            spawn(self.dispatch(event, payload), name=f"event:{event.name}")

        return listener

    def build_context(self, event: Event, payload: Any) -> EventContext:
        helpers = EventHelpers(reply_target(payload), self.platform)
        return EventContext(
            event_name=event.event,
            data=payload,
            helpers=helpers,
            platform=self.platform,
        )

    async def dispatch(self, event: Event, payload: Any) -> bool:
        """
        Run one event handler for a payload.

        Returns:
            True if the executor ran to completion
        """
        context = self.build_context(event, payload)

        try:
            if event.validate is not None and not await maybe_await(event.validate(context)):
                logger.debug(f"Event {event.name} rejected by validator")
                return False

            await maybe_await(event.execute(context))
            return True

        except Exception:
            logger.exception(f"Error executing event {event.name} ({type(event).__name__})")
            return False
