"""Introspection commands built on the registry metadata."""
from __future__ import annotations

from io import StringIO

from dpm import Value
from dpm.commands import tags, Command, CommandRegistry
from dpm.errors import DpmArityError, DpmUnknownCommand
from dpm.types.context import Context
from dpm.types.values import expect_arity, expect_str

GENERAL_USAGE = (
    "=== GENERAL USAGE ===\n"
    "All commands use Lisp-style syntax with parentheses:\n"
    "  (command-name arg1 arg2 ...)\n\n"
    "Commands can be nested:\n"
    "  (print (sum 1 2 3))  ; Prints the result of sum\n\n"
    "Multiple expressions can be evaluated:\n"
    "  dpm '(sum 1 2 3)' '(print \"Hello\")'\n"
)


def short_help(registry: CommandRegistry) -> str:
    with StringIO() as buffer:
        buffer.write("Available commands:\n\n")
        for tag, commands in registry.grouped_by_tag():
            buffer.write(f"=== {tag.text} ===\n")
            for cmd in commands:
                buffer.write(f"  {cmd.name:<12} - {cmd.description}\n")
            buffer.write("\n")
        return buffer.getvalue()


def command_help(cmd: Command) -> str:
    return (
        f"Command: {cmd.name}\n"
        f"Description: {cmd.description}\n"
        f"Syntax: {cmd.syntax}\n"
        "Examples:\n"
        f"{cmd.examples}\n"
    )


def long_help(registry: CommandRegistry) -> str:
    with StringIO() as buffer:
        buffer.write("=== DETAILED COMMAND REFERENCE ===\n\n")
        for tag, commands in registry.grouped_by_tag():
            buffer.write(f"=== {tag.text} ===\n\n")
            for cmd in commands:
                buffer.write(command_help(cmd))
                buffer.write("\n")
            buffer.write("\n")
        buffer.write(GENERAL_USAGE)
        return buffer.getvalue()


def help_builtin(ctx: Context, args: tuple) -> Value:
    """(help) lists every command by tag; (help "name") details one command."""
    if len(args) > 1:
        raise DpmArityError("help expects at most one argument (command name)")
    if args:
        name = expect_str("help", args[0], "command name")
        cmd = ctx.registry.lookup(name)
        if cmd is None:
            raise DpmUnknownCommand(name)
        text = command_help(cmd)
    else:
        text = short_help(ctx.registry)
    print(text)
    return text


def help_long(ctx: Context, args: tuple) -> Value:
    expect_arity("help-long", args, 0, message="help-long expects no arguments")
    text = long_help(ctx.registry)
    print(text)
    return text


def commands_builtin(ctx: Context, args: tuple) -> Value:
    """Names of every registered command in registration order."""
    expect_arity("commands", args, 0, message="commands expects no arguments")
    return tuple(ctx.registry.names())


def register(registry: CommandRegistry) -> None:
    registry.register_handler("help", "Show short help for all commands, or details of one", tags.COMMANDS,
                              help_builtin, '(help) or (help "command")',
                              '  (help)              ; Shows short help\n  (help "sum")        ; Shows help for sum')
    registry.register_handler("help-long", "Show detailed help with syntax and examples", tags.COMMANDS,
                              help_long, "(help-long)", "  (help-long)         ; Shows this detailed help")
    registry.register_handler("commands", "List the names of all registered commands", tags.COMMANDS,
                              commands_builtin, "(commands)", "  (commands)          ; Returns (\"sum\" ...)")
