"""
Built-in help command listing registered commands.
"""

from .commands import CommandRegistry
from .models import Command, CommandArg, CommandContext, DEFAULT_CATEGORY


class HelpCommand(Command):
    """Shows all commands grouped by category, or details for one command."""

    def __init__(self, registry: CommandRegistry, prefix: str = "!"):
        super().__init__(
            name="help",
            description="Shows all available commands or detailed info about a specific command",
            aliases=["h", "?"],
            args=[
                CommandArg(
                    name="command",
                    description="The command to get help for",
                    required=False,
                ),
            ],
            examples=["help", "help ping"],
            category="Utility",
        )
        self.registry = registry
        self.prefix = prefix

    async def execute(self, context: CommandContext) -> None:
        if not context.args:
            await context.reply(self.list_commands())
            return

        await context.reply(self.describe(context.args[0].lower()))

    def list_commands(self) -> str:
        categories: dict[str, list[Command]] = {}
        for command in self.registry.unique():
            categories.setdefault(command.category or DEFAULT_CATEGORY, []).append(command)

        lines = ["*📚 Available Commands*", ""]
        for category, commands in categories.items():
            lines.append(f"*{category}*")
            for command in commands:
                lines.append(f"• `{command.name}` - {command.description}")
            lines.append("")

        lines.append(
            f"Use `{self.prefix}help <command>` to get detailed information about a specific command."
        )
        return "\n".join(lines)

    def describe(self, name: str) -> str:
        command = self.registry.get(name)
        if command is None:
            return (
                f"❌ Command `{name}` not found. "
                f"Use `{self.prefix}help` to see all commands."
            )

        lines = [f"*📖 Help: {command.name}*", "", f"*Description:* {command.description}", ""]

        if command.aliases:
            aliases = ", ".join(f"`{alias}`" for alias in command.aliases)
            lines += [f"*Aliases:* {aliases}", ""]

        lines += [f"*Usage:* `{self.prefix}{command.get_usage()}`", ""]

        if command.args:
            lines.append("*Arguments:*")
            for arg in command.args:
                required = "*Required*" if arg.required else "_Optional_"
                options = f" (Options: {', '.join(arg.options)})" if arg.options else ""
                lines.append(f"• `{arg.name}` {required} - {arg.description}{options}")
            lines.append("")

        if command.examples:
            lines.append("*Examples:*")
            for example in command.examples:
                lines.append(f"• `{self.prefix}{example}`")
            lines.append("")

        lines.append(f"*Category:* {command.category}")
        if command.cooldown > 0:
            lines.append(f"*Cooldown:* {command.cooldown}s")

        return "\n".join(lines)
