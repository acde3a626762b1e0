"""Docker commands.

`docker` runs `docker compose run ...` in the base directory with every string
session variable exported into the container. The remaining commands store
the run configuration as ordinary session variables, so `write-env` and
`debug` see it like any other state.
"""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence

from dpm import Value
from dpm.commands import tags, CommandRegistry
from dpm.errors import DpmArityError, DpmCommandFailure
from dpm.files import read_env_file
from dpm.types.context import Context
from dpm.types.nil import Nil
from dpm.types.values import expect_arity, expect_str, string_args, write

logger = logging.getLogger(__name__)

DOCKER_COMPOSE_ARGS = ("compose", "run", "--rm", "--no-deps", "-T")
DOCKER_MAKE_ARGS = ("make", "make")
DOCKER_SOCKET_PATH = "/var/run/docker.sock"
DOCKER_DESKTOP_SOCKET_SUFFIX = "/.docker/desktop/docker.sock"
DOCKER_SOCKET_SUFFIX = "/docker.sock"
ENV_DOCKER_HOST_MAP = "DOCKER_HOST_MAP"
ENV_DOCKER_ENV_KEYS = "DOCKER_ENV_KEYS"

VAR_COMPOSE_ARGS = "docker_compose_args"
VAR_MAKE_ARGS = "docker_make_args"
VAR_SOCKET_PATH = "docker_socket_path"
VAR_PRE_HOOKS = "docker_pre_hooks"
VAR_POST_HOOKS = "docker_post_hooks"


@dataclass
class DockerConfig:
    compose_args: list[str] = field(default_factory=lambda: list(DOCKER_COMPOSE_ARGS))
    make_args: list[str] = field(default_factory=lambda: list(DOCKER_MAKE_ARGS))
    socket_path: Optional[str] = None
    pre_commands: list[list[str]] = field(default_factory=list)
    post_commands: list[list[str]] = field(default_factory=list)


def _strings(items: tuple) -> list[str]:
    return [s for s in items if isinstance(s, str)]


def _hooks(items: tuple) -> list[list[str]]:
    hooks = []
    for item in items:
        if isinstance(item, tuple):
            cmd = _strings(item)
            if cmd:
                hooks.append(cmd)
    return hooks


def build_docker_config(ctx: Context) -> DockerConfig:
    """Read the docker_* session variables; anything unset or malformed keeps its default."""
    config = DockerConfig()
    compose_args = ctx.get(VAR_COMPOSE_ARGS)
    if isinstance(compose_args, tuple) and compose_args:
        config.compose_args = _strings(compose_args)
    make_args = ctx.get(VAR_MAKE_ARGS)
    if isinstance(make_args, tuple) and make_args:
        config.make_args = _strings(make_args)
    socket_path = ctx.get(VAR_SOCKET_PATH)
    if isinstance(socket_path, str):
        config.socket_path = socket_path
    pre_hooks = ctx.get(VAR_PRE_HOOKS)
    if isinstance(pre_hooks, tuple):
        config.pre_commands = _hooks(pre_hooks)
    post_hooks = ctx.get(VAR_POST_HOOKS)
    if isinstance(post_hooks, tuple):
        config.post_commands = _hooks(post_hooks)
    return config


def resolve_socket_mapping(config: DockerConfig, dotenv: Mapping[str, str]) -> str:
    """The `-v` value that mounts the host's Docker socket into the container."""
    host_map = dotenv.get(ENV_DOCKER_HOST_MAP)
    if host_map:
        logger.debug("docker: using %s from .env file: %s", ENV_DOCKER_HOST_MAP, host_map)
        return host_map

    if config.socket_path:
        socket_path = config.socket_path
    elif Path(DOCKER_SOCKET_PATH).exists():
        socket_path = DOCKER_SOCKET_PATH
    elif Path(str(Path.home()) + DOCKER_DESKTOP_SOCKET_SUFFIX).exists():
        socket_path = str(Path.home()) + DOCKER_DESKTOP_SOCKET_SUFFIX
    elif os.environ.get("XDG_RUNTIME_DIR"):
        socket_path = os.environ["XDG_RUNTIME_DIR"] + DOCKER_SOCKET_SUFFIX
    else:
        socket_path = DOCKER_SOCKET_PATH
    return f"{socket_path}:{DOCKER_SOCKET_PATH}"


def build_docker_argv(config: DockerConfig, socket_mapping: str, env_keys: Sequence[str],
                      args: Sequence[str]) -> list[str]:
    argv = ["docker", *(config.compose_args or DOCKER_COMPOSE_ARGS), "-v", socket_mapping]
    for key in env_keys:
        argv += ["-e", key]
    argv += ["-e", ENV_DOCKER_ENV_KEYS]
    argv += config.make_args or DOCKER_MAKE_ARGS
    argv += args
    return argv


def run_process(argv: Sequence[str], cwd: Path, env: Mapping[str, str] | None = None) -> None:
    """Run `argv` to completion, raising DpmCommandFailure on a non-zero exit."""
    logger.debug("docker: executing command: %s", " ".join(argv))
    try:
        completed = subprocess.run(list(argv), cwd=cwd, env=env)
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to execute command {argv[0]}: {ex}") from ex
    if completed.returncode != 0:
        raise DpmCommandFailure(f"Command {argv[0]} failed with exit code: {completed.returncode}")


def docker(ctx: Context, args: tuple) -> Value:
    docker_args = string_args("docker", args)
    exported = {k: v for k, v in ctx.variables.items() if isinstance(v, str)}

    dotenv: dict[str, str] = {}
    env_file = ctx.basedir / ".env"
    if env_file.exists():
        try:
            dotenv = read_env_file(env_file)
        except OSError as ex:
            logger.warning("docker: failed to read %s: %s", env_file, ex)

    config = build_docker_config(ctx)

    for hook in config.pre_commands:
        try:
            run_process(hook, ctx.basedir)
        except DpmCommandFailure as ex:
            raise DpmCommandFailure(f"Docker command failed: pre-hook {hook[0]}: {ex}") from ex

    env = dict(os.environ)
    env.update(exported)
    env[ENV_DOCKER_ENV_KEYS] = ";".join(exported)
    argv = build_docker_argv(config, resolve_socket_mapping(config, dotenv), list(exported), docker_args)
    try:
        run_process(argv, ctx.basedir, env)
    except DpmCommandFailure as ex:
        raise DpmCommandFailure(f"Docker command failed: {ex}") from ex

    for hook in config.post_commands:
        try:
            run_process(hook, ctx.basedir)
        except DpmCommandFailure as ex:
            logger.warning("docker: post-hook failed: %s", ex)

    return "Docker command executed successfully"


def docker_compose_args(ctx: Context, args: tuple) -> Value:
    ctx.set(VAR_COMPOSE_ARGS, tuple(string_args("docker-compose-args", args)))
    return "Docker Compose arguments configured"


def docker_make_args(ctx: Context, args: tuple) -> Value:
    ctx.set(VAR_MAKE_ARGS, tuple(string_args("docker-make-args", args)))
    return "Docker make arguments configured"


def docker_socket(ctx: Context, args: tuple) -> Value:
    expect_arity("docker-socket", args, 1, message="docker-socket requires exactly one argument (socket path)")
    path = expect_str("docker-socket", args[0])
    ctx.set(VAR_SOCKET_PATH, path)
    return f"Docker socket path set to: {path}"


def _add_hook(name: str, var: str, ctx: Context, args: tuple) -> None:
    expect_arity(name, args, at_least=1, message=f"{name} requires at least one argument (command)")
    hooks = ctx.get(var)
    if not isinstance(hooks, tuple):
        hooks = ()
    ctx.set(var, hooks + (tuple(string_args(name, args)),))


def docker_pre(ctx: Context, args: tuple) -> Value:
    _add_hook("docker-pre", VAR_PRE_HOOKS, ctx, args)
    return "Docker pre-hook command added"


def docker_post(ctx: Context, args: tuple) -> Value:
    _add_hook("docker-post", VAR_POST_HOOKS, ctx, args)
    return "Docker post-hook command added"


def docker_reset(ctx: Context, args: tuple) -> Value:
    expect_arity("docker-reset", args, 0, message="docker-reset takes no arguments")
    for var in (VAR_COMPOSE_ARGS, VAR_MAKE_ARGS, VAR_SOCKET_PATH, VAR_PRE_HOOKS, VAR_POST_HOOKS):
        ctx.set(var, Nil)
    return "Docker configuration reset to defaults"


def docker_show_config(ctx: Context, args: tuple) -> Value:
    if args:
        raise DpmArityError("docker-show-config takes no arguments")
    config = build_docker_config(ctx)

    def lst(items) -> str:
        return write(tuple(tuple(i) if isinstance(i, list) else i for i in items))

    output = (
        "=== Docker Configuration ===\n"
        f"Compose args: {lst(config.compose_args)}\n"
        f"Make args: {lst(config.make_args)}\n"
        f"Socket path: {write(config.socket_path) if config.socket_path else 'nil'}\n"
        f"Pre-commands: {lst(config.pre_commands)}\n"
        f"Post-commands: {lst(config.post_commands)}\n"
        "============================"
    )
    print(output)
    return output


def register(registry: CommandRegistry) -> None:
    registry.register_handler("docker", "Execute Docker commands with environment variables and configurations",
                              tags.DOCKER, docker, "(docker [args...])",
                              '  (docker "build")            ; Runs the make target build in the compose service\n'
                              '  (docker "test" "-j" 4)      ; Extra arguments are appended')
    registry.register_handler("docker-compose-args", "Configure Docker Compose arguments", tags.DOCKER,
                              docker_compose_args, "(docker-compose-args arg1 arg2 ...)",
                              '  (docker-compose-args "compose" "run" "--rm")  ; Set compose arguments')
    registry.register_handler("docker-make-args", "Configure Docker make arguments", tags.DOCKER,
                              docker_make_args, "(docker-make-args arg1 arg2 ...)",
                              '  (docker-make-args "make" "build")     ; Set make arguments')
    registry.register_handler("docker-socket", "Set custom Docker socket path", tags.DOCKER, docker_socket,
                              "(docker-socket path)", '  (docker-socket "/var/run/docker.sock")')
    registry.register_handler("docker-pre", "Add pre-hook command to execute before Docker command",
                              tags.DOCKER, docker_pre, "(docker-pre command arg1 arg2 ...)",
                              '  (docker-pre "mkdir" "-p" "logs")      ; Create logs directory first')
    registry.register_handler("docker-post", "Add post-hook command to execute after Docker command",
                              tags.DOCKER, docker_post, "(docker-post command arg1 arg2 ...)",
                              '  (docker-post "rm" "-rf" "temp")       ; Clean up temp files')
    registry.register_handler("docker-reset", "Reset Docker configuration to defaults", tags.DOCKER,
                              docker_reset, "(docker-reset)", "  (docker-reset)")
    registry.register_handler("docker-show-config", "Show current Docker configuration", tags.DOCKER,
                              docker_show_config, "(docker-show-config)", "  (docker-show-config)")
