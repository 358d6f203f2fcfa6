"""
Command registry, argument parsing, usage strings, and cooldown tracking.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Sequence

if TYPE_CHECKING:
    from .models import Command, CommandArg

logger = logging.getLogger(__name__)


@dataclass
class ParsedArgs:
    """Result of validating raw tokens against an argument schema."""
    valid: bool
    args: list[str] = field(default_factory=list)
    error: Optional[str] = None


def parse_args(schema: Sequence["CommandArg"], provided: Sequence[str]) -> ParsedArgs:
    """
    Validate provided tokens against a declared argument schema.

    Tokens are matched positionally and surfaced as literal text; no type
    coercion is performed.

    Args:
        schema: Declared arguments, in order
        provided: Raw tokens following the command name

    Returns:
        ParsedArgs with valid=False and an error message on mismatch
    """
    tokens = list(provided)
    required = sum(1 for arg in schema if arg.required)

    if len(tokens) < required:
        return ParsedArgs(
            valid=False,
            args=tokens,
            error=f"Missing required arguments. Expected at least {required}, got {len(tokens)}",
        )

    if len(tokens) > len(schema):
        return ParsedArgs(
            valid=False,
            args=tokens,
            error=f"Too many arguments. Expected at most {len(schema)}, got {len(tokens)}",
        )

    for arg, value in zip(schema, tokens):
        if arg.options and value not in arg.options:
            return ParsedArgs(
                valid=False,
                args=tokens,
                error=(
                    f"Invalid value for argument '{arg.name}'. "
                    f"Must be one of: {', '.join(arg.options)}"
                ),
            )

    return ParsedArgs(valid=True, args=tokens)


def build_usage(name: str, schema: Sequence["CommandArg"]) -> str:
    """Derive a usage string such as 'roll <sides> [<count>]'."""
    parts = [name]
    for arg in schema:
        rendered = f"<{'|'.join(arg.options)}>" if arg.options else f"<{arg.name}>"
        parts.append(rendered if arg.required else f"[{rendered}]")
    return " ".join(parts).strip()


def now_ms() -> int:
    return int(time.time() * 1000)


class CooldownTracker:
    """
    Per-(command, user) throttling.

    A command is blocked while less than cooldown * 1000 ms have passed since
    its last recorded execution by the same user.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock
        self._last_run: dict[tuple[str, str], int] = {}

    def remaining(self, command_name: str, user_id: str, cooldown: int) -> int:
        """Milliseconds left before the user may run the command again."""
        last = self._last_run.get((command_name, user_id))
        if last is None or cooldown <= 0:
            return 0
        elapsed = self.clock() - last
        return max(0, cooldown * 1000 - elapsed)

    def is_active(self, command_name: str, user_id: str, cooldown: int) -> bool:
        return self.remaining(command_name, user_id, cooldown) > 0

    def record(self, command_name: str, user_id: str) -> int:
        """Store the current time as the last execution and return it."""
        stamp = self.clock()
        self._last_run[(command_name, user_id)] = stamp
        return stamp


class CommandRegistry:
    """
    Maps lower-cased command names and aliases to Command instances.

    One command appears under several keys when it declares aliases.
    """

    def __init__(self):
        self._commands: dict[str, "Command"] = {}

    def register(self, command: "Command") -> None:
        keys = [command.name, *command.aliases]
        for key in keys:
            key = key.lower()
            existing = self._commands.get(key)
            if existing is not None and existing is not command:
                logger.warning(
                    f"Command key '{key}' from {command!r} replaces {existing!r}"
                )
            self._commands[key] = command

    def get(self, name: str) -> Optional["Command"]:
        return self._commands.get(name.lower())

    def unique(self) -> list["Command"]:
        """Registered commands without alias duplicates, in registration order."""
        seen: dict[int, "Command"] = {}
        for command in self._commands.values():
            seen.setdefault(id(command), command)
        return list(seen.values())

    def as_dict(self) -> dict[str, "Command"]:
        return dict(self._commands)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._commands

    def __iter__(self) -> Iterator[str]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)
