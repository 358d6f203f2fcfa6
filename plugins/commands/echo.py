"""
Echo command - repeats the message back to the channel.
"""

from plugbot import Command, CommandArg, CommandContext


class EchoCommand(Command):
    def __init__(self):
        super().__init__(
            name="echo",
            description="Echo back a message",
            args=[
                CommandArg(name="message", description="Message to echo", required=True),
            ],
            examples=["echo hello"],
            category="Fun",
            cooldown=3,
        )

    def parse_args(self, provided):
        # Accept free text: join everything after the command into one argument
        return super().parse_args([" ".join(provided)] if provided else [])

    async def execute(self, context: CommandContext) -> None:
        await context.reply(f"🔊 {' '.join(context.args)}")


default = EchoCommand
