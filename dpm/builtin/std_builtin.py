"""Thin wrappers over the Python standard library: environment, files, paths, processes.

Paths are used as given (relative paths resolve against the working
directory, not the base directory).
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from dpm import Value
from dpm.commands import tags, CommandRegistry
from dpm.errors import DpmArityError, DpmCommandFailure
from dpm.types.context import Context
from dpm.types.nil import Nil
from dpm.types.values import expect_arity, expect_str, string_args

logger = logging.getLogger(__name__)


def _no_args(name: str, args: tuple) -> None:
    expect_arity(name, args, 0, message=f"{name} expects no arguments")


def _one_path(name: str, args: tuple, what: str = "path") -> str:
    expect_arity(name, args, 1, message=f"{name} expects exactly one argument ({what})")
    return expect_str(name, args[0], what)


def _two_strings(name: str, args: tuple, first: str, second: str) -> tuple[str, str]:
    expect_arity(name, args, 2, message=f"{name} expects exactly two arguments ({first} and {second})")
    return expect_str(name, args[0], first), expect_str(name, args[1], second)


# -------------------------------
# Environment
# -------------------------------
def env_current_dir(ctx: Context, args: tuple) -> Value:
    _no_args("std-env-current-dir", args)
    return str(Path.cwd())


def env_home_dir(ctx: Context, args: tuple) -> Value:
    _no_args("std-env-home-dir", args)
    try:
        return str(Path.home())
    except RuntimeError:
        return Nil


def env_var(ctx: Context, args: tuple) -> Value:
    name = _one_path("std-env-var", args, "variable name")
    value = os.environ.get(name)
    return Nil if value is None else value


def env_vars(ctx: Context, args: tuple) -> Value:
    """Every process environment variable as a (name value) pair."""
    _no_args("std-env-vars", args)
    return tuple((k, v) for k, v in os.environ.items())


# -------------------------------
# Filesystem
# -------------------------------
def fs_read(ctx: Context, args: tuple) -> Value:
    file_path = _one_path("std-fs-read", args, "file path")
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as ex:
        raise DpmCommandFailure(f"Failed to read file '{file_path}': {ex}") from ex


def fs_write(ctx: Context, args: tuple) -> Value:
    file_path, content = _two_strings("std-fs-write", args, "file path", "content")
    try:
        data = content.encode("utf-8")
        Path(file_path).write_bytes(data)
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to write to file '{file_path}': {ex}") from ex
    return f"Successfully wrote {len(data)} bytes to '{file_path}'"


def fs_create_dir(ctx: Context, args: tuple) -> Value:
    dir_path = _one_path("std-fs-create-dir", args, "directory path")
    try:
        Path(dir_path).mkdir(parents=True, exist_ok=True)
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to create directory '{dir_path}': {ex}") from ex
    return f"Successfully created directory '{dir_path}'"


def fs_remove_file(ctx: Context, args: tuple) -> Value:
    file_path = _one_path("std-fs-remove-file", args, "file path")
    try:
        Path(file_path).unlink()
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to remove file '{file_path}': {ex}") from ex
    return f"Successfully removed file '{file_path}'"


def fs_copy(ctx: Context, args: tuple) -> Value:
    source, dest = _two_strings("std-fs-copy", args, "source", "destination")
    try:
        shutil.copyfile(source, dest)
        size = Path(dest).stat().st_size
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to copy from '{source}' to '{dest}': {ex}") from ex
    return f"Successfully copied {size} bytes from '{source}' to '{dest}'"


# -------------------------------
# Paths
# -------------------------------
def path_join(ctx: Context, args: tuple) -> Value:
    expect_arity("std-path-join", args, at_least=1, message="std-path-join expects at least one argument")
    parts = [expect_str("std-path-join", a) for a in args]
    return str(Path(*parts))


def path_parent(ctx: Context, args: tuple) -> Value:
    p = Path(_one_path("std-path-parent", args))
    return Nil if p.parent == p else str(p.parent)


def path_filename(ctx: Context, args: tuple) -> Value:
    name = Path(_one_path("std-path-filename", args)).name
    return name or Nil


def path_extension(ctx: Context, args: tuple) -> Value:
    """Extension without the leading dot; nil when there is none."""
    suffix = Path(_one_path("std-path-extension", args)).suffix
    return suffix[1:] if suffix else Nil


def path_exists(ctx: Context, args: tuple) -> Value:
    return Path(_one_path("std-path-exists", args)).exists()


def path_is_dir(ctx: Context, args: tuple) -> Value:
    return Path(_one_path("std-path-is-dir", args)).is_dir()


def path_is_file(ctx: Context, args: tuple) -> Value:
    return Path(_one_path("std-path-is-file", args)).is_file()


# -------------------------------
# Processes
# -------------------------------
def _command_line(name: str, args: tuple) -> list[str]:
    if not args:
        raise DpmArityError(f"{name} expects at least one argument (program name)")
    return string_args(name, args, allow_int=False)


def process_command(ctx: Context, args: tuple) -> Value:
    """Run a program with inherited stdio; returns (success code)."""
    argv = _command_line("std-process-command", args)
    logger.debug("std-process-command: executing %s with %d arguments", argv[0], len(argv) - 1)
    try:
        completed = subprocess.run(argv)
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to execute command '{argv[0]}': {ex}") from ex
    code = completed.returncode if completed.returncode >= 0 else -1
    return completed.returncode == 0, code


def process_output(ctx: Context, args: tuple) -> Value:
    """Run a program capturing its output; returns (stdout stderr success code)."""
    argv = _command_line("std-process-output", args)
    logger.debug("std-process-output: executing %s with %d arguments", argv[0], len(argv) - 1)
    try:
        completed = subprocess.run(argv, capture_output=True)
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to execute command '{argv[0]}': {ex}") from ex
    stdout = completed.stdout.decode("utf-8", errors="replace")
    stderr = completed.stderr.decode("utf-8", errors="replace")
    code = completed.returncode if completed.returncode >= 0 else -1
    logger.debug("std-process-output: exit code %d, stdout %d bytes, stderr %d bytes",
                 code, len(stdout), len(stderr))
    return stdout, stderr, completed.returncode == 0, code


STD_COMMANDS = [
    ("std-env-current-dir", "Get the current working directory", env_current_dir,
     "(std-env-current-dir)", "  (std-env-current-dir)"),
    ("std-env-home-dir", "Get the user's home directory", env_home_dir,
     "(std-env-home-dir)", "  (std-env-home-dir)"),
    ("std-env-var", "Get an environment variable (nil if unset)", env_var,
     "(std-env-var name)", '  (std-env-var "PATH")'),
    ("std-env-vars", "Get all environment variables as a list of (name value) pairs", env_vars,
     "(std-env-vars)", "  (std-env-vars)"),
    ("std-fs-read", "Read a file as a string", fs_read,
     "(std-fs-read path)", '  (std-fs-read "config.txt")'),
    ("std-fs-write", "Write a string to a file", fs_write,
     "(std-fs-write path content)", '  (std-fs-write "out.txt" "hello")'),
    ("std-fs-create-dir", "Create a directory and any missing parents", fs_create_dir,
     "(std-fs-create-dir path)", '  (std-fs-create-dir "build/logs")'),
    ("std-fs-remove-file", "Remove a file", fs_remove_file,
     "(std-fs-remove-file path)", '  (std-fs-remove-file "out.txt")'),
    ("std-fs-copy", "Copy a file", fs_copy,
     "(std-fs-copy source destination)", '  (std-fs-copy "a.txt" "b.txt")'),
    ("std-path-join", "Join path components", path_join,
     "(std-path-join part1 part2 ...)", '  (std-path-join "docker" "app" "Dockerfile")'),
    ("std-path-parent", "Parent directory of a path (nil at the root)", path_parent,
     "(std-path-parent path)", '  (std-path-parent "/a/b/c.txt")  ; Returns "/a/b"'),
    ("std-path-filename", "Final component of a path", path_filename,
     "(std-path-filename path)", '  (std-path-filename "/a/b/c.txt")  ; Returns "c.txt"'),
    ("std-path-extension", "Extension of a path without the dot", path_extension,
     "(std-path-extension path)", '  (std-path-extension "c.txt")  ; Returns "txt"'),
    ("std-path-exists", "Whether a path exists", path_exists,
     "(std-path-exists path)", '  (std-path-exists ".env")'),
    ("std-path-is-dir", "Whether a path is a directory", path_is_dir,
     "(std-path-is-dir path)", '  (std-path-is-dir "docker")'),
    ("std-path-is-file", "Whether a path is a regular file", path_is_file,
     "(std-path-is-file path)", '  (std-path-is-file ".env")'),
    ("std-process-command", "Run a program; returns (success code)", process_command,
     "(std-process-command program arg1 ...)", '  (std-process-command "make" "build")'),
    ("std-process-output", "Run a program capturing output; returns (stdout stderr success code)",
     process_output, "(std-process-output program arg1 ...)", '  (std-process-output "git" "status")'),
]


def register(registry: CommandRegistry) -> None:
    for name, description, handler, syntax, examples in STD_COMMANDS:
        registry.register_handler(name, description, tags.STD, handler, syntax, examples)
