"""Categories used to group commands in help output. Lower `order` sorts first."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Tag:
    name: str
    order: int
    text: str


COMMANDS = Tag("commands", 2, "Command Management")
ENV = Tag("env", 10, "Environment Files")
DOCKER = Tag("docker", 20, "Docker")
CORE = Tag("core", 1000, "Core Commands")
STD = Tag("std", 9999, "Python Standard Library")
