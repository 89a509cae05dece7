"""Pure parsing helpers for slash commands typed into the input box."""

from __future__ import annotations

from dataclasses import dataclass
import os

from .models import ActiveMode

COMMAND_HELP = (
    "/mode <chat|image|video|live>  /attach <path>  /detach <n>  "
    "/budget <tokens>  /reasoning  /quit"
)

_KNOWN_COMMANDS = frozenset(
    {"mode", "attach", "detach", "budget", "reasoning", "quit", "help"}
)


@dataclass(frozen=True)
class SlashCommand:
    """A recognized command and its single normalized argument."""

    name: str
    argument: str = ""


@dataclass(frozen=True)
class CommandError:
    message: str


def _is_ascii_number(text: str) -> bool:
    return text.isascii() and text.isdecimal()


def parse_slash_command(text: str) -> SlashCommand | CommandError | None:
    """Parse ``text`` as a slash command.

    Returns ``None`` for ordinary chat input, a :class:`CommandError` for a
    malformed command, and a :class:`SlashCommand` otherwise. ``/detach``
    arguments are converted from the 1-based numbers shown to the user into
    0-based indices.
    """
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None

    name, _, rest = stripped[1:].partition(" ")
    name = name.lower()
    argument = rest.strip()
    if name not in _KNOWN_COMMANDS:
        return CommandError(f"Unknown command /{name}. {COMMAND_HELP}")

    if name == "mode":
        valid = [mode.value for mode in ActiveMode]
        if argument.lower() not in valid:
            return CommandError(f"Usage: /mode <{'|'.join(valid)}>")
        return SlashCommand("mode", argument.lower())

    if name == "attach":
        if not argument:
            return CommandError("Usage: /attach <path>")
        return SlashCommand("attach", os.path.expanduser(argument))

    if name == "detach":
        if not _is_ascii_number(argument) or int(argument) < 1:
            return CommandError("Usage: /detach <attachment number>")
        return SlashCommand("detach", str(int(argument) - 1))

    if name == "budget":
        if not _is_ascii_number(argument):
            return CommandError("Usage: /budget <non-negative integer>")
        return SlashCommand("budget", str(int(argument)))

    return SlashCommand(name)
