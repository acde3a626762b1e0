import logging

import pytest

from dpm.builtin import FAMILIES
from dpm.commands import Command, CommandInfo, CommandRegistry, HandlerCommand, Tag, tags
from dpm.evaluation import eval_string
from dpm.types.context import Context


class EchoCommand(Command):
    name = "echo"
    description = "Return the arguments as a list"
    syntax = "(echo arg ...)"
    tag = tags.COMMANDS

    def execute(self, ctx, args):
        return tuple(args)


def echo_handler(ctx, args):
    return tuple(args)


def test_named_and_handler_commands_behave_the_same():
    named = CommandRegistry()
    named.register(EchoCommand())
    handled = CommandRegistry()
    handled.register_handler("echo", "Return the arguments as a list", tags.COMMANDS, echo_handler)

    for reg in (named, handled):
        ctx = Context(reg, debug=False)
        assert eval_string("(echo 1 \"a\")", ctx) == (1, "a")
        cmd = reg.lookup("echo")
        assert (cmd.name, cmd.description, cmd.tag) == ("echo", "Return the arguments as a list", tags.COMMANDS)


def test_handler_metadata_defaults():
    cmd = HandlerCommand("thing", "Does a thing", tags.CORE, echo_handler)
    assert cmd.syntax == "(thing ...)"
    assert cmd.examples == Command.examples


def test_command_decorator_registers_and_returns_function():
    reg = CommandRegistry()

    @reg.command("twice", "Double an integer", syntax="(twice n)")
    def twice(ctx, args):
        return args[0] * 2

    assert twice(None, (4,)) == 8
    assert reg.lookup("twice").syntax == "(twice n)"
    assert reg.lookup("twice").tag == tags.CORE


def test_lookup_is_exact_and_case_sensitive():
    reg = CommandRegistry()
    reg.register(EchoCommand())
    assert reg.lookup("echo") is not None
    assert reg.lookup("ECHO") is None
    assert reg.lookup("ech") is None
    assert "echo" in reg
    assert "Echo" not in reg


def test_last_registration_wins_without_duplicates(caplog):
    reg = CommandRegistry()
    reg.register_handler("a", "first a", tags.CORE, echo_handler)
    reg.register_handler("b", "b", tags.CORE, echo_handler)
    with caplog.at_level(logging.DEBUG, logger="dpm"):
        second = reg.register_handler("a", "second a", tags.COMMANDS, echo_handler)

    assert reg.lookup("a") is second
    assert reg.list() == [
        CommandInfo("a", "second a", tags.COMMANDS),
        CommandInfo("b", "b", tags.CORE),
    ]
    assert len(reg) == 2
    assert "replacing command 'a'" in caplog.text


def test_list_keeps_registration_order():
    reg = CommandRegistry()
    for name in ("omega", "alpha", "mid"):
        reg.register_handler(name, name, tags.CORE, echo_handler)
    assert [info.name for info in reg.list()] == ["omega", "alpha", "mid"]
    assert reg.names() == ["omega", "alpha", "mid"]


def test_grouped_by_tag_orders_tags_then_names():
    reg = CommandRegistry()
    late = Tag("late", 50, "Late")
    reg.register_handler("b-core", "", tags.CORE, echo_handler)
    reg.register_handler("z-late", "", late, echo_handler)
    reg.register_handler("a-core", "", tags.CORE, echo_handler)
    reg.register_handler("cmds", "", tags.COMMANDS, echo_handler)

    groups = [(tag, [c.name for c in cmds]) for tag, cmds in reg.grouped_by_tag()]
    assert groups == [
        (tags.COMMANDS, ["cmds"]),
        (late, ["z-late"]),
        (tags.CORE, ["a-core", "b-core"]),
    ]


def test_register_requires_a_name():
    with pytest.raises(ValueError):
        CommandRegistry().register(Command())


def test_families_register_independently():
    # Each family works on its own, without the others installed.
    for family in FAMILIES:
        reg = CommandRegistry()
        family.register(reg)
        assert len(reg) > 0


def test_every_builtin_exposes_metadata(registry):
    names = registry.names()
    assert len(names) == len(set(names))
    for info in registry.list():
        assert info.name and info.description
        assert isinstance(info.tag, Tag)
    for name in ("sum", "+", "concat", "help", "set-var", "read-env", "docker", "std-process-output"):
        assert name in registry
