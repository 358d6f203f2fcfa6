"""
Ping command - checks the bot is responsive.
"""

import time

from plugbot import Command, CommandContext


class PingCommand(Command):
    def __init__(self):
        super().__init__(
            name="ping",
            description="Check if the bot is responsive",
            aliases=["p"],
            category="Utility",
            cooldown=5,
        )

    async def execute(self, context: CommandContext) -> None:
        started = time.perf_counter()
        await context.reply("🏓 Pong!", include_mention=True)
        elapsed = (time.perf_counter() - started) * 1000
        await context.reply(f"Round trip: {elapsed:.0f}ms")
