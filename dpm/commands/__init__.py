from dpm.commands import tags
from dpm.commands.tags import Tag
from dpm.commands.registry import Command, HandlerCommand, CommandInfo, CommandRegistry

__all__ = ["tags", "Tag", "Command", "HandlerCommand", "CommandInfo", "CommandRegistry"]
