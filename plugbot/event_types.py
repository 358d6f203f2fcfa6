"""
Platform-agnostic event taxonomy and its mapping onto external subscriptions.

Every EventType maps to exactly one external identifier, and every external
identifier belongs to exactly one EventCategory. The category decides which
platform surface a listener is attached to.
"""

from enum import Enum
from typing import Mapping, Optional

from .errors import EventConfigurationError


class EventType(str, Enum):
    """Events a plugin can subscribe to."""

    # Channel message events
    CHANNEL_MESSAGE_CREATED = "ChannelMessageCreated"
    CHANNEL_MESSAGE_EDITED = "ChannelMessageEdited"
    CHANNEL_MESSAGE_DELETED = "ChannelMessageDeleted"
    CHANNEL_MESSAGE_REACTION_CREATED = "ChannelMessageReactionCreated"
    CHANNEL_MESSAGE_REACTION_DELETED = "ChannelMessageReactionDeleted"
    CHANNEL_MESSAGE_PIN_CREATED = "ChannelMessagePinCreated"
    CHANNEL_MESSAGE_PIN_DELETED = "ChannelMessagePinDeleted"
    CHANNEL_MESSAGE_SET_TYPING_INDICATOR = "ChannelMessageSetTypingIndicator"

    # Community events
    COMMUNITY_MEMBER_JOINED = "CommunityMemberJoined"
    COMMUNITY_MEMBER_LEFT = "CommunityMemberLeft"
    COMMUNITY_EDITED = "CommunityEdited"

    # Ban events
    COMMUNITY_MEMBER_BAN_CREATED = "CommunityMemberBanCreated"
    COMMUNITY_MEMBER_BAN_DELETED = "CommunityMemberBanDeleted"

    # Member events
    COMMUNITY_MEMBER_ATTACH = "CommunityMemberAttach"
    COMMUNITY_MEMBER_DETACH = "CommunityMemberDetach"
    USER_SET_PROFILE = "UserSetProfile"

    # Channel events
    CHANNEL_CREATED = "ChannelCreated"
    CHANNEL_DELETED = "ChannelDeleted"
    CHANNEL_EDITED = "ChannelEdited"
    CHANNEL_MOVED = "ChannelMoved"

    # Channel group events
    CHANNEL_GROUP_CREATED = "ChannelGroupCreated"
    CHANNEL_GROUP_DELETED = "ChannelGroupDeleted"
    CHANNEL_GROUP_EDITED = "ChannelGroupEdited"
    CHANNEL_GROUP_MOVED = "ChannelGroupMoved"

    # Channel directory events
    CHANNEL_DIRECTORY_CREATED = "ChannelDirectoryCreated"
    CHANNEL_DIRECTORY_DELETED = "ChannelDirectoryDeleted"
    CHANNEL_DIRECTORY_EDITED = "ChannelDirectoryEdited"
    CHANNEL_DIRECTORY_MOVED = "ChannelDirectoryMoved"


class EventCategory(str, Enum):
    """External subscription surfaces exposed by the platform."""

    CHANNEL_MESSAGES = "channel_messages"
    COMMUNITIES = "communities"
    COMMUNITY_MEMBER_BANS = "community_member_bans"
    COMMUNITY_MEMBERS = "community_members"
    CHANNELS = "channels"
    CHANNEL_GROUPS = "channel_groups"
    CHANNEL_DIRECTORIES = "channel_directories"


CATEGORY_EVENTS: dict[EventCategory, frozenset[str]] = {
    EventCategory.CHANNEL_MESSAGES: frozenset({
        "channelMessage.created",
        "channelMessage.edited",
        "channelMessage.deleted",
        "channelMessageReaction.created",
        "channelMessageReaction.deleted",
        "channelMessagePin.created",
        "channelMessagePin.deleted",
        "channelMessage.set.typingIndicator",
    }),
    EventCategory.COMMUNITIES: frozenset({
        "community.joined",
        "community.leave",
        "community.edited",
    }),
    EventCategory.COMMUNITY_MEMBER_BANS: frozenset({
        "communityMemberBan.created",
        "communityMemberBan.deleted",
    }),
    EventCategory.COMMUNITY_MEMBERS: frozenset({
        "communityMember.attach",
        "communityMember.detach",
        "user.set.profile",
    }),
    EventCategory.CHANNELS: frozenset({
        "channel.created",
        "channel.deleted",
        "channel.edited",
        "channel.moved",
    }),
    EventCategory.CHANNEL_GROUPS: frozenset({
        "channelGroup.created",
        "channelGroup.deleted",
        "channelGroup.edited",
        "channelGroup.moved",
    }),
    EventCategory.CHANNEL_DIRECTORIES: frozenset({
        "channelDirectory.created",
        "channelDirectory.deleted",
        "channelDirectory.edited",
        "channelDirectory.moved",
    }),
}


EVENT_MAP: dict[EventType, str] = {
    EventType.CHANNEL_MESSAGE_CREATED: "channelMessage.created",
    EventType.CHANNEL_MESSAGE_EDITED: "channelMessage.edited",
    EventType.CHANNEL_MESSAGE_DELETED: "channelMessage.deleted",
    EventType.CHANNEL_MESSAGE_REACTION_CREATED: "channelMessageReaction.created",
    EventType.CHANNEL_MESSAGE_REACTION_DELETED: "channelMessageReaction.deleted",
    EventType.CHANNEL_MESSAGE_PIN_CREATED: "channelMessagePin.created",
    EventType.CHANNEL_MESSAGE_PIN_DELETED: "channelMessagePin.deleted",
    EventType.CHANNEL_MESSAGE_SET_TYPING_INDICATOR: "channelMessage.set.typingIndicator",

    EventType.COMMUNITY_MEMBER_JOINED: "community.joined",
    EventType.COMMUNITY_MEMBER_LEFT: "community.leave",
    EventType.COMMUNITY_EDITED: "community.edited",

    EventType.COMMUNITY_MEMBER_BAN_CREATED: "communityMemberBan.created",
    EventType.COMMUNITY_MEMBER_BAN_DELETED: "communityMemberBan.deleted",

    EventType.COMMUNITY_MEMBER_ATTACH: "communityMember.attach",
    EventType.COMMUNITY_MEMBER_DETACH: "communityMember.detach",
    EventType.USER_SET_PROFILE: "user.set.profile",

    EventType.CHANNEL_CREATED: "channel.created",
    EventType.CHANNEL_DELETED: "channel.deleted",
    EventType.CHANNEL_EDITED: "channel.edited",
    EventType.CHANNEL_MOVED: "channel.moved",

    EventType.CHANNEL_GROUP_CREATED: "channelGroup.created",
    EventType.CHANNEL_GROUP_DELETED: "channelGroup.deleted",
    EventType.CHANNEL_GROUP_EDITED: "channelGroup.edited",
    EventType.CHANNEL_GROUP_MOVED: "channelGroup.moved",

    EventType.CHANNEL_DIRECTORY_CREATED: "channelDirectory.created",
    EventType.CHANNEL_DIRECTORY_DELETED: "channelDirectory.deleted",
    EventType.CHANNEL_DIRECTORY_EDITED: "channelDirectory.edited",
    EventType.CHANNEL_DIRECTORY_MOVED: "channelDirectory.moved",
}


def external_event_for(event_type: EventType) -> str:
    """Return the external subscription identifier for an event type."""
    try:
        return EVENT_MAP[EventType(event_type)]
    except (KeyError, ValueError):
        raise EventConfigurationError(
            f"No external event mapped for {event_type!r}"
        ) from None


def resolve_category(
    external_id: str,
    table: Optional[Mapping[EventCategory, frozenset[str]]] = None,
) -> EventCategory:
    """
    Classify an external identifier into its subscription category.

    Args:
        external_id: External event identifier, e.g. "channelMessage.created"
        table: Category table to classify against (defaults to CATEGORY_EVENTS)

    Returns:
        The single category containing the identifier

    Raises:
        EventConfigurationError: If the identifier is in zero or several categories
    """
    table = CATEGORY_EVENTS if table is None else table
    matches = [category for category, ids in table.items() if external_id in ids]

    if not matches:
        raise EventConfigurationError(f"Unknown event type: {external_id}")
    if len(matches) > 1:
        names = ", ".join(category.value for category in matches)
        raise EventConfigurationError(
            f"Event type {external_id} is ambiguous, found in: {names}"
        )
    return matches[0]


def validate_event_map(
    event_map: Optional[Mapping[EventType, str]] = None,
    table: Optional[Mapping[EventCategory, frozenset[str]]] = None,
) -> dict[EventType, EventCategory]:
    """Check every mapped event type classifies into exactly one category."""
    event_map = EVENT_MAP if event_map is None else event_map
    return {
        event_type: resolve_category(external_id, table)
        for event_type, external_id in event_map.items()
    }
