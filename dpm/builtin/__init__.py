"""Built-in command families.

Each family module exposes `register(registry)` and knows nothing about the
others; `register_all` installs them in a fixed order so help output and
override behaviour are deterministic.
"""
from dpm.commands import CommandRegistry
from dpm.builtin import (
    core_builtin,
    help_builtin,
    vars_builtin,
    envfile_builtin,
    docker_builtin,
    std_builtin,
)

FAMILIES = (core_builtin, help_builtin, vars_builtin, envfile_builtin, docker_builtin, std_builtin)


def register_all(registry: CommandRegistry) -> CommandRegistry:
    for family in FAMILIES:
        family.register(registry)
    return registry
