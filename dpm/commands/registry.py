"""Command registry for the dpm interpreter.

Maps command names to executable units. A command is anything exposing
`name`, `description`, `syntax`, `examples`, `tag` and
`execute(ctx, args) -> Value`. Two flavours are stored behind that one
interface:

- named implementations: subclasses of `Command`;
- anonymous handlers: plain callables `handler(ctx, args)` wrapped in a
  `HandlerCommand` at registration time.

The evaluator never distinguishes the two. Registering a name that already
exists replaces the previous command (last registration wins); the name keeps
the position of its first registration in `list()`.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, NamedTuple, Optional

from dpm import Value
from dpm.commands import tags
from dpm.commands.tags import Tag

logger = logging.getLogger(__name__)

HandlerFn = Callable[..., Value]


class Command:
    """Base class for named command implementations."""

    name: str = ""
    description: str = "No description available"
    syntax: str = "Syntax not documented"
    examples: str = "Examples not available"
    tag: Tag = tags.CORE

    def execute(self, ctx, args: tuple) -> Value:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class HandlerCommand(Command):
    """A bare callable decorated with command metadata."""

    def __init__(
        self,
        name: str,
        description: str,
        tag: Tag,
        handler: HandlerFn,
        syntax: str | None = None,
        examples: str | None = None,
    ):
        self.name = name
        self.description = description
        self.tag = tag
        self.handler = handler
        self.syntax = syntax or f"({name} ...)"
        self.examples = examples or Command.examples

    def execute(self, ctx, args: tuple) -> Value:
        return self.handler(ctx, args)


class CommandInfo(NamedTuple):
    name: str
    description: str
    tag: Tag


class CommandRegistry:
    """Lookup table from command name to Command, populated at start-up."""

    __slots__ = ("_commands",)

    def __init__(self):
        self._commands: dict[str, Command] = {}

    def register(self, command: Command) -> Command:
        """Insert `command` under its own name, replacing any existing entry."""
        name = command.name
        if not isinstance(name, str) or not name:
            raise ValueError(f"Command {command!r} has no name")
        if name in self._commands:
            logger.debug("registry: replacing command %r", name)
        self._commands[name] = command
        return command

    def register_handler(
        self,
        name: str,
        description: str,
        tag: Tag,
        handler: HandlerFn,
        syntax: str | None = None,
        examples: str | None = None,
    ) -> Command:
        """Register a plain callable `handler(ctx, args)` under `name`."""
        return self.register(HandlerCommand(name, description, tag, handler, syntax, examples))

    def command(
        self,
        name: str,
        description: str,
        tag: Tag = tags.CORE,
        syntax: str | None = None,
        examples: str | None = None,
    ) -> Callable[[HandlerFn], HandlerFn]:
        """Decorator form of `register_handler`; returns the function unchanged."""
        def deco(fn: HandlerFn) -> HandlerFn:
            self.register_handler(name, description, tag, fn, syntax, examples)
            return fn
        return deco

    def lookup(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def list(self) -> list[CommandInfo]:
        return [CommandInfo(c.name, c.description, c.tag) for c in self._commands.values()]

    def names(self) -> list[str]:
        return list(self._commands)

    def grouped_by_tag(self) -> list[tuple[Tag, list[Command]]]:
        """Commands grouped by tag; tags by `order`, commands by name."""
        groups: dict[Tag, list[Command]] = {}
        for cmd in self._commands.values():
            groups.setdefault(cmd.tag, []).append(cmd)
        result = sorted(groups.items(), key=lambda item: (item[0].order, item[0].name))
        return [(tag, sorted(cmds, key=lambda c: c.name)) for tag, cmds in result]

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(list(self._commands.values()))
