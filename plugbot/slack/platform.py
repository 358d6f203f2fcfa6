"""
Slack implementation of the Platform contract.

Translates Slack Events API callbacks into the dispatcher's event taxonomy
and exposes message sending and member lookup through the Slack Web API.
"""

import logging
from typing import Any, Callable, Optional

from slack_bolt.async_app import AsyncApp
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler

from ..errors import PlatformStartError
from ..event_types import EventCategory, resolve_category
from ..platform import Hook, IncomingMessage, ListenerSurface
from ..tasks import maybe_await
from .scheduler import IntervalScheduler

logger = logging.getLogger(__name__)

MESSAGE_CREATED = "channelMessage.created"

# Slack message subtypes that map onto message lifecycle events
MESSAGE_SUBTYPES = {
    None: MESSAGE_CREATED,
    "thread_broadcast": MESSAGE_CREATED,
    "file_share": MESSAGE_CREATED,
    "message_changed": "channelMessage.edited",
    "message_deleted": "channelMessage.deleted",
}

# Slack event type -> (external identifier, payload builder name)
SLACK_EVENTS = {
    "reaction_added": ("channelMessageReaction.created", "_reaction_payload"),
    "reaction_removed": ("channelMessageReaction.deleted", "_reaction_payload"),
    "pin_added": ("channelMessagePin.created", "_pin_payload"),
    "pin_removed": ("channelMessagePin.deleted", "_pin_payload"),
    "team_join": ("community.joined", "_user_payload"),
    "team_rename": ("community.edited", "_plain_payload"),
    "member_joined_channel": ("communityMember.attach", "_member_payload"),
    "member_left_channel": ("communityMember.detach", "_member_payload"),
    "user_change": ("user.set.profile", "_user_payload"),
    "channel_created": ("channel.created", "_channel_payload"),
    "channel_deleted": ("channel.deleted", "_channel_payload"),
    "channel_rename": ("channel.edited", "_channel_payload"),
}


class SlackPlatform:
    """Platform adapter backed by a slack_bolt AsyncApp in Socket Mode."""

    def __init__(
        self,
        bot_token: Optional[str] = None,
        app_token: Optional[str] = None,
        app: Optional[Any] = None,
        scheduler: Optional[Any] = None,
    ):
        self.app = app if app is not None else AsyncApp(token=bot_token)
        self.app_token = app_token
        self.scheduler = scheduler if scheduler is not None else IntervalScheduler()
        self.surfaces = {category: ListenerSurface(category.value) for category in EventCategory}
        self._message_handlers: list[Callable[[IncomingMessage], None]] = []
        self._socket_handler: Optional[AsyncSocketModeHandler] = None

        self._register_slack_listeners()

    def _register_slack_listeners(self) -> None:
        self.app.event("message")(self._on_slack_message)
        for slack_event, (external_id, builder) in SLACK_EVENTS.items():
            self.app.event(slack_event)(self._make_forwarder(external_id, getattr(self, builder)))

    # ------------------------------------------------------------------
    # Platform contract
    # ------------------------------------------------------------------

    async def start(self, on_starting: Optional[Hook] = None) -> None:
        """Run the starting hook, then connect to Slack over Socket Mode."""
        try:
            if on_starting is not None:
                await maybe_await(on_starting())

            self._socket_handler = AsyncSocketModeHandler(self.app, self.app_token)
            await self._socket_handler.connect_async()
        except Exception as e:
            raise PlatformStartError(f"Could not connect to Slack: {e}") from e

        logger.info("Connected to Slack")

    async def close(self) -> None:
        if self._socket_handler is not None:
            await self._socket_handler.close_async()
        if hasattr(self.scheduler, "close"):
            await self.scheduler.close()

    def on_message(self, handler: Callable[[IncomingMessage], None]) -> None:
        self._message_handlers.append(handler)

    def event_surface(self, category: EventCategory) -> ListenerSurface:
        return self.surfaces[category]

    async def send_message(self, channel_id: str, content: str) -> None:
        await self.app.client.chat_postMessage(channel=channel_id, text=content)

    async def get_member_nickname(self, user_id: str) -> str:
        response = await self.app.client.users_info(user=user_id)
        user = response.get("user") or {}
        profile = user.get("profile") or {}
        return (
            profile.get("display_name")
            or user.get("real_name")
            or user.get("name")
            or user_id
        )

    def mention_markup(self, user_id: str, nickname: str) -> str:
        return f"<@{user_id}>"

    # ------------------------------------------------------------------
    # Slack event translation
    # ------------------------------------------------------------------

    def emit(self, external_id: str, payload: Any) -> int:
        """Emit a payload on the surface owning external_id."""
        return self.surfaces[resolve_category(external_id)].emit(external_id, payload)

    async def _on_slack_message(self, event: dict) -> None:
        if event.get("bot_id") or event.get("subtype") == "bot_message":
            return

        external_id = MESSAGE_SUBTYPES.get(event.get("subtype"))
        if external_id is None:
            return

        payload = self._message_payload(event)
        self.emit(external_id, payload)

        if external_id != MESSAGE_CREATED or not payload["messageContent"]:
            return

        message = IncomingMessage(
            channel_id=payload["channelId"],
            user_id=payload["userId"],
            content=payload["messageContent"],
            message_id=payload["messageId"],
        )
        for handler in self._message_handlers:
            try:
                handler(message)
            except Exception:
                logger.exception("Message handler failed")

    def _make_forwarder(self, external_id: str, build: Callable[[dict], dict]):
        async def forward(event: dict) -> None:
            self.emit(external_id, build(event))

        return forward

    @staticmethod
    def _message_payload(event: dict) -> dict:
        inner = event.get("message") or event.get("previous_message") or {}
        return {
            "channelId": event.get("channel", ""),
            "userId": event.get("user") or inner.get("user", ""),
            "messageContent": event.get("text") or inner.get("text", ""),
            "messageId": event.get("ts") or inner.get("ts", ""),
            "raw": event,
        }

    @staticmethod
    def _reaction_payload(event: dict) -> dict:
        item = event.get("item") or {}
        return {
            "channelId": item.get("channel", ""),
            "userId": event.get("user", ""),
            "messageId": item.get("ts", ""),
            "reaction": event.get("reaction", ""),
            "raw": event,
        }

    @staticmethod
    def _pin_payload(event: dict) -> dict:
        item = event.get("item") or {}
        message = item.get("message") or {}
        return {
            "channelId": event.get("channel_id", ""),
            "userId": event.get("user", ""),
            "messageId": message.get("ts", ""),
            "raw": event,
        }

    @staticmethod
    def _member_payload(event: dict) -> dict:
        return {
            "channelId": event.get("channel", ""),
            "userId": event.get("user", ""),
            "raw": event,
        }

    @staticmethod
    def _user_payload(event: dict) -> dict:
        user = event.get("user") or {}
        return {
            "channelId": "",
            "userId": user.get("id", "") if isinstance(user, dict) else user,
            "raw": event,
        }

    @staticmethod
    def _channel_payload(event: dict) -> dict:
        channel = event.get("channel") or {}
        if isinstance(channel, dict):
            channel_id = channel.get("id", "")
        else:
            channel_id = channel
        return {"channelId": channel_id, "raw": event}

    @staticmethod
    def _plain_payload(event: dict) -> dict:
        return {"channelId": "", "raw": event}
