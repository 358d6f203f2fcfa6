import pytest

from plugbot.errors import EventConfigurationError
from plugbot.event_types import (
    CATEGORY_EVENTS,
    EVENT_MAP,
    EventCategory,
    EventType,
    external_event_for,
    resolve_category,
    validate_event_map,
)


def test_every_event_type_is_mapped() -> None:
    assert set(EVENT_MAP) == set(EventType)


def test_every_mapped_identifier_is_in_exactly_one_category() -> None:
    for event_type, external_id in EVENT_MAP.items():
        matches = [category for category, ids in CATEGORY_EVENTS.items() if external_id in ids]
        assert len(matches) == 1, event_type
        assert resolve_category(external_id) is matches[0]


def test_validate_event_map_classifies_everything() -> None:
    categories = validate_event_map()
    assert categories[EventType.CHANNEL_MESSAGE_CREATED] is EventCategory.CHANNEL_MESSAGES
    assert categories[EventType.COMMUNITY_MEMBER_JOINED] is EventCategory.COMMUNITIES
    assert categories[EventType.COMMUNITY_MEMBER_BAN_CREATED] is EventCategory.COMMUNITY_MEMBER_BANS
    assert categories[EventType.USER_SET_PROFILE] is EventCategory.COMMUNITY_MEMBERS
    assert categories[EventType.CHANNEL_MOVED] is EventCategory.CHANNELS
    assert categories[EventType.CHANNEL_GROUP_EDITED] is EventCategory.CHANNEL_GROUPS
    assert categories[EventType.CHANNEL_DIRECTORY_DELETED] is EventCategory.CHANNEL_DIRECTORIES


def test_orphaned_identifier_raises() -> None:
    with pytest.raises(EventConfigurationError, match="Unknown event type"):
        resolve_category("channelMessage.exploded")


def test_duplicated_identifier_raises() -> None:
    table = dict(CATEGORY_EVENTS)
    table[EventCategory.CHANNELS] = table[EventCategory.CHANNELS] | {"channelMessage.created"}

    with pytest.raises(EventConfigurationError, match="ambiguous"):
        resolve_category("channelMessage.created", table)

    with pytest.raises(EventConfigurationError):
        validate_event_map(table=table)


def test_orphaned_mapping_fails_validation() -> None:
    event_map = dict(EVENT_MAP)
    event_map[EventType.CHANNEL_MOVED] = "channel.teleported"

    with pytest.raises(EventConfigurationError):
        validate_event_map(event_map=event_map)


def test_external_event_for_accepts_values() -> None:
    assert external_event_for(EventType.CHANNEL_CREATED) == "channel.created"
    assert external_event_for("ChannelCreated") == "channel.created"
    with pytest.raises(EventConfigurationError):
        external_event_for("NotAnEvent")
