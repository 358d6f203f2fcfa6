"""
Welcome event - greets members joining a channel.
"""

import random

from plugbot import Event, EventContext, EventType

WELCOME_MESSAGES = [
    "🎉 Welcome to the channel, {user}!",
    "👋 Great to have you here, {user}!",
    "🌟 Welcome, {user}! Feel free to ask any questions!",
]


class WelcomeEvent(Event):
    def __init__(self):
        super().__init__(event=EventType.COMMUNITY_MEMBER_ATTACH)

    def validate(self, context: EventContext) -> bool:
        return bool(context.data.get("channelId") and context.data.get("userId"))

    async def execute(self, context: EventContext) -> None:
        mention = await context.mention(context.data["userId"])
        await context.reply(random.choice(WELCOME_MESSAGES).format(user=mention))
