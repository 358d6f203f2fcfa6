"""
Convenience operations handed to command and event handlers.

Helpers are bound to a reply target (the originating channel) and talk to
the platform on the handler's behalf.
"""

from dataclasses import dataclass
from typing import Any, Callable, Awaitable

from .platform import IncomingMessage, Platform


@dataclass
class MemberRef:
    """The member that triggered a command."""
    id: str
    mention: Callable[[], Awaitable[str]]


@dataclass
class ChannelRef:
    """The channel an event reply is sent to."""
    id: str
    create_message: Callable[[str], Awaitable[None]]


class CommandHelpers:
    """Helpers bound to the message that triggered a command."""

    def __init__(self, message: IncomingMessage, platform: Platform):
        self.message = message
        self.platform = platform

    async def mention(self) -> str:
        """Mention markup for the invoking user."""
        nickname = await self.get_member_nickname()
        return self.platform.mention_markup(self.message.user_id, nickname)

    async def get_member_nickname(self) -> str:
        return await self.platform.get_member_nickname(self.message.user_id)

    async def reply(self, content: str, include_mention: bool = False) -> None:
        """
        Reply in the channel the command was sent from.

        Args:
            content: Message text
            include_mention: Prefix the reply with a mention of the invoker
        """
        if include_mention:
            content = f"{await self.mention()} {content}"
        await self.platform.send_message(self.message.channel_id, content)

    @property
    def member(self) -> MemberRef:
        return MemberRef(id=self.message.user_id, mention=self.mention)

    @property
    def raw_client(self) -> Platform:
        return self.platform

    @property
    def raw_event(self) -> IncomingMessage:
        return self.message


class EventHelpers:
    """Helpers bound to the channel an event originated from."""

    def __init__(self, channel_id: str, platform: Platform):
        self.channel_id = channel_id
        self.platform = platform

    async def mention(self, user_id: str) -> str:
        nickname = await self.get_member_nickname(user_id)
        return self.platform.mention_markup(user_id, nickname)

    async def get_member_nickname(self, user_id: str) -> str:
        return await self.platform.get_member_nickname(user_id)

    async def reply(self, content: str) -> None:
        await self.platform.send_message(self.channel_id, content)

    @property
    def channel(self) -> ChannelRef:
        return ChannelRef(id=self.channel_id, create_message=self.reply)

    @property
    def raw_client(self) -> Platform:
        return self.platform


def reply_target(payload: Any) -> str:
    """Derive the channel to reply into from a raw event payload."""
    if isinstance(payload, dict):
        value = payload.get("channelId") or payload.get("channel_id")
    else:
        value = getattr(payload, "channel_id", None) or getattr(payload, "channelId", None)
    return value or ""
