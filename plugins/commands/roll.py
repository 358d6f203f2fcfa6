"""
Roll command - rolls a die of a chosen size.
"""

import random

from plugbot import Command, CommandArg, CommandContext


class RollCommand(Command):
    def __init__(self):
        super().__init__(
            name="roll",
            description="Roll a die",
            args=[
                CommandArg(name="sides", description="Die size", required=True, options=["6", "12", "20"]),
                CommandArg(name="count", description="How many dice to roll"),
            ],
            examples=["roll 20", "roll 6 3"],
            category="Fun",
        )

    async def validate(self, context: CommandContext) -> bool:
        if len(context.args) > 1 and not context.args[1].isdigit():
            await context.reply("❌ Count must be a whole number")
            return False
        return True

    async def execute(self, context: CommandContext) -> None:
        sides = int(context.args[0])
        count = int(context.args[1]) if len(context.args) > 1 else 1
        rolls = [random.randint(1, sides) for _ in range(min(count, 10))]
        await context.reply(f"🎲 {', '.join(str(r) for r in rolls)}")
