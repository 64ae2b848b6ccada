"""
Command catalog - the ten question commands, loaded once from commands.json.

The catalog is read-only after loading. A missing or malformed definition
raises CommandCatalogError; the app factory loads it at startup so a broken
file stops the service before it serves traffic.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional

from tenq.config.settings import Config
from tenq.domain.entities.command import Command

logger = logging.getLogger(__name__)


class CommandCatalogError(RuntimeError):
    """The command definition file is missing or malformed."""


class CommandCatalog:
    """Immutable lookup of commands by question number."""

    def __init__(self, commands: list[Command]):
        by_number: dict[int, Command] = {}
        for command in commands:
            if command.number in by_number:
                raise CommandCatalogError(
                    f"Duplicate command number {command.number}"
                )
            by_number[command.number] = command
        self._by_number = by_number

    def get(self, number: int) -> Optional[Command]:
        return self._by_number.get(number)

    def __len__(self) -> int:
        return len(self._by_number)

    def __iter__(self) -> Iterator[Command]:
        return iter(sorted(self._by_number.values(), key=lambda c: c.number))


def _parse_command(raw: dict) -> Command:
    try:
        return Command(
            number=int(raw["number"]),
            name=str(raw["name"]),
            prompt=str(raw["prompt"]),
            static_question=raw.get("staticQuestion") or None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise CommandCatalogError(f"Malformed command entry {raw!r}: {e}") from e


@lru_cache(maxsize=None)
def load_commands(path: Optional[str] = None) -> CommandCatalog:
    """Parse the command definition once; later calls return the cached catalog."""
    commands_path = Path(path or Config.COMMANDS_FILE)
    try:
        data = json.loads(commands_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise CommandCatalogError(f"Command file not found: {commands_path}") from e
    except json.JSONDecodeError as e:
        raise CommandCatalogError(f"Command file is not valid JSON: {e}") from e

    raw_commands = data.get("commands") if isinstance(data, dict) else None
    if not isinstance(raw_commands, list) or not raw_commands:
        raise CommandCatalogError("Command file must contain a non-empty 'commands' list")

    catalog = CommandCatalog([_parse_command(raw) for raw in raw_commands])
    logger.info("Loaded %d commands from %s", len(catalog), commands_path)
    return catalog


def get_command(question_number: int) -> Optional[Command]:
    return load_commands().get(question_number)
