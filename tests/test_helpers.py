from plugbot.helpers import CommandHelpers, EventHelpers, reply_target
from plugbot.platform import IncomingMessage, ListenerSurface


async def test_command_reply_with_mention(platform) -> None:
    helpers = CommandHelpers(IncomingMessage("C1", "U1", "!ping", "M1"), platform)

    await helpers.reply("pong")
    await helpers.reply("pong", include_mention=True)

    assert platform.sent == [("C1", "pong"), ("C1", "[@alice](user://U1) pong")]
    assert helpers.member.id == "U1"
    assert await helpers.member.mention() == "[@alice](user://U1)"
    assert helpers.raw_client is platform
    assert helpers.raw_event.content == "!ping"


async def test_event_helpers_are_bound_to_channel(platform) -> None:
    helpers = EventHelpers("C5", platform)

    await helpers.channel.create_message("hello")

    assert platform.sent == [("C5", "hello")]
    assert await helpers.get_member_nickname("U2") == "bob"
    assert await helpers.mention("U9") == "[@U9](user://U9)"


def test_reply_target_reads_dicts_and_objects() -> None:
    assert reply_target({"channelId": "C1"}) == "C1"
    assert reply_target({"channel_id": "C2"}) == "C2"
    assert reply_target(IncomingMessage("C3", "U1", "")) == "C3"
    assert reply_target({}) == ""
    assert reply_target(None) == ""


def test_listener_surface_order_and_once() -> None:
    surface = ListenerSurface("test")
    calls = []
    surface.on("x", lambda payload: calls.append(("on", payload)))
    surface.once("x", lambda payload: calls.append(("once", payload)))

    assert surface.emit("x", 1) == 2
    assert surface.emit("x", 2) == 1
    assert surface.emit("y", 3) == 0
    assert calls == [("on", 1), ("once", 1), ("on", 2)]


def test_listener_surface_isolates_failures(caplog) -> None:
    surface = ListenerSurface("test")
    calls = []

    def broken(payload):
        raise RuntimeError("nope")

    surface.on("x", broken)
    surface.on("x", calls.append)

    surface.emit("x", "payload")

    assert calls == ["payload"]
    assert "Listener for 'x' on test failed" in caplog.text
