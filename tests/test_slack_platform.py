import asyncio
from datetime import datetime, timedelta

import pytest

from plugbot.event_types import EventCategory, resolve_category
from plugbot.platform import JOB_FIRED, JobInterval, JobSchedule
from plugbot.slack.platform import MESSAGE_SUBTYPES, SLACK_EVENTS, SlackPlatform
from plugbot.slack.scheduler import IntervalScheduler, next_run_after


class FakeWebClient:
    def __init__(self, users=None):
        self.posted = []
        self.users = users or {}

    async def chat_postMessage(self, channel, text):
        self.posted.append((channel, text))
        return {"ok": True}

    async def users_info(self, user):
        return {"ok": True, "user": self.users.get(user, {})}


class FakeApp:
    """Records listeners the way slack_bolt's app.event() decorator does."""

    def __init__(self, client=None):
        self.client = client or FakeWebClient()
        self.listeners = {}

    def event(self, event_type):
        def decorator(func):
            self.listeners[event_type] = func
            return func

        return decorator

    async def dispatch(self, event_type, event):
        await self.listeners[event_type](event)


@pytest.fixture
def slack_app() -> FakeApp:
    return FakeApp(FakeWebClient(users={
        "U1": {"name": "alice", "real_name": "Alice A", "profile": {"display_name": "ally"}},
        "U2": {"name": "bob", "real_name": "Bob B", "profile": {"display_name": ""}},
    }))


@pytest.fixture
def slack(slack_app) -> SlackPlatform:
    return SlackPlatform(app=slack_app, scheduler=IntervalScheduler())


async def test_new_message_reaches_message_handlers_and_surface(slack, slack_app) -> None:
    messages, created = [], []
    slack.on_message(messages.append)
    slack.event_surface(EventCategory.CHANNEL_MESSAGES).on("channelMessage.created", created.append)

    await slack_app.dispatch("message", {"channel": "C1", "user": "U1", "text": "!ping", "ts": "1.0"})

    assert len(messages) == 1
    assert (messages[0].channel_id, messages[0].user_id, messages[0].content, messages[0].message_id) == (
        "C1", "U1", "!ping", "1.0"
    )
    assert created[0]["channelId"] == "C1"
    assert created[0]["messageContent"] == "!ping"


async def test_bot_messages_are_ignored(slack, slack_app) -> None:
    messages = []
    slack.on_message(messages.append)

    await slack_app.dispatch("message", {"channel": "C1", "bot_id": "B1", "text": "!ping"})
    await slack_app.dispatch("message", {"channel": "C1", "subtype": "bot_message", "text": "!ping"})

    assert messages == []


async def test_edits_are_routed_but_not_dispatched_as_commands(slack, slack_app) -> None:
    messages, edited = [], []
    slack.on_message(messages.append)
    slack.event_surface(EventCategory.CHANNEL_MESSAGES).on("channelMessage.edited", edited.append)

    await slack_app.dispatch("message", {
        "channel": "C1",
        "subtype": "message_changed",
        "message": {"user": "U1", "text": "!ping edited", "ts": "1.0"},
    })

    assert messages == []
    assert edited[0]["userId"] == "U1"
    assert edited[0]["messageContent"] == "!ping edited"


async def test_workspace_events_are_translated(slack, slack_app) -> None:
    reactions, joins, channels = [], [], []
    slack.event_surface(EventCategory.CHANNEL_MESSAGES).on("channelMessageReaction.created", reactions.append)
    slack.event_surface(EventCategory.COMMUNITY_MEMBERS).on("communityMember.attach", joins.append)
    slack.event_surface(EventCategory.CHANNELS).on("channel.created", channels.append)

    await slack_app.dispatch("reaction_added", {
        "user": "U1", "reaction": "tada", "item": {"type": "message", "channel": "C1", "ts": "2.0"},
    })
    await slack_app.dispatch("member_joined_channel", {"user": "U2", "channel": "C7"})
    await slack_app.dispatch("channel_created", {"channel": {"id": "C8", "name": "new"}})

    assert (reactions[0]["channelId"], reactions[0]["reaction"]) == ("C1", "tada")
    assert (joins[0]["channelId"], joins[0]["userId"]) == ("C7", "U2")
    assert channels[0]["channelId"] == "C8"


async def test_send_message_and_nicknames(slack, slack_app) -> None:
    await slack.send_message("C1", "hi")

    assert slack_app.client.posted == [("C1", "hi")]
    assert await slack.get_member_nickname("U1") == "ally"
    assert await slack.get_member_nickname("U2") == "Bob B"
    assert await slack.get_member_nickname("U404") == "U404"
    assert slack.mention_markup("U1", "ally") == "<@U1>"


def test_translated_identifiers_all_classify() -> None:
    produced = {*MESSAGE_SUBTYPES.values(), *(external_id for external_id, _ in SLACK_EVENTS.values())}

    assert "channelMessage.created" in produced
    for external_id in produced:
        resolve_category(external_id)


def test_next_run_after_skips_missed_runs() -> None:
    start = datetime(2024, 1, 1, 9, 0)
    schedule = JobSchedule("t", "r", start, JobInterval.HOURLY)

    assert next_run_after(schedule, start, start) == start + timedelta(hours=1)
    assert next_run_after(schedule, start, start + timedelta(hours=5, minutes=1)) == start + timedelta(hours=6)


def test_next_run_after_respects_end_and_once() -> None:
    start = datetime(2024, 1, 1, 9, 0)
    ending = JobSchedule("t", "r", start, JobInterval.DAILY, end=start + timedelta(hours=12))
    once = JobSchedule("t", "r", start, JobInterval.ONCE)

    assert next_run_after(ending, start, start) is None
    assert next_run_after(once, start, start) is None


async def test_interval_scheduler_fires_due_schedule() -> None:
    scheduler = IntervalScheduler()
    fired = []
    scheduler.on(JOB_FIRED, fired.append)

    start = datetime.now() - timedelta(seconds=1)
    schedule_id = scheduler.create(JobSchedule("ping", "r1", start, JobInterval.ONCE))
    await asyncio.wait_for(scheduler.tasks[schedule_id], timeout=2)

    assert len(fired) == 1
    assert (fired[0].tag, fired[0].resource_id, fired[0].job_schedule_id) == ("ping", "r1", schedule_id)
    assert fired[0].job_time == int(start.timestamp() * 1000)
    assert scheduler.tasks == {}


async def test_interval_scheduler_close_cancels_pending() -> None:
    scheduler = IntervalScheduler()
    scheduler.create(JobSchedule("later", "r1", datetime.now() + timedelta(hours=1), JobInterval.DAILY))

    await scheduler.close()

    assert scheduler.tasks == {}
