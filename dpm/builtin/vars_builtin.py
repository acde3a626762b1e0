"""Session variable commands plus the debug and basedir switches."""
from __future__ import annotations

import logging
from pathlib import Path

from dpm import Value
from dpm.commands import tags, Command, CommandRegistry
from dpm.errors import DpmArityError, DpmCommandFailure, DpmTypeError
from dpm.files import interpolate_variables
from dpm.types.context import Context
from dpm.types.values import expect_arity, expect_str

logger = logging.getLogger(__name__)


def get_var(ctx: Context, args: tuple) -> Value:
    expect_arity("get-var", args, 1, message="get-var expects exactly one argument (key)")
    key = expect_str("get-var", args[0], "key")
    logger.debug("get-var: getting variable: %s", key)
    if key not in ctx:
        raise DpmCommandFailure(f"Variable '{key}' not found")
    return ctx.get(key)


def set_var(ctx: Context, args: tuple) -> Value:
    expect_arity("set-var", args, 2, message="set-var expects exactly two arguments (key, value)")
    key = expect_str("set-var", args[0], "key")
    raw = expect_str("set-var", args[1], "value")
    value = interpolate_variables(raw, ctx.variables)
    logger.debug("set-var: setting variable: %s = %s", key, value)
    ctx.set(key, value)
    return f"Variable '{key}' set to '{value}'"


class DebugCommand(Command):
    name = "debug"
    description = "Print current program state or set debug printing true/false"
    syntax = '(debug) or (debug "true"|"false")'
    examples = (
        '  (debug)            ; Print session variables\n'
        '  (debug "true")     ; Enable debug printing\n'
        '  (debug "false")    ; Disable debug printing'
    )
    tag = tags.COMMANDS

    def execute(self, ctx: Context, args: tuple) -> Value:
        if len(args) > 1:
            raise DpmArityError("debug command accepts either no arguments or exactly one argument (true/false)")
        if args:
            if not isinstance(args[0], str):
                raise DpmTypeError("debug command argument must be a string ('true' or 'false')")
            match args[0].lower():
                case "true":
                    ctx.debug = True
                    return "Debug printing enabled"
                case "false":
                    ctx.debug = False
                    return "Debug printing disabled"
                case _:
                    raise DpmTypeError("debug command argument must be 'true' or 'false'")

        output = ctx.describe()
        print(output, end="")
        return output


def basedir(ctx: Context, args: tuple) -> Value:
    """(basedir) returns the base directory; (basedir "path") changes it."""
    if not args:
        return str(ctx.basedir)
    expect_arity("basedir", args, 1, message="basedir expects at most one argument (path)")
    path_arg = expect_str("basedir", args[0], "path")
    path = Path(path_arg)
    if not path.is_absolute():
        logger.debug("basedir: path is relative, resolving against the working directory")
        path = Path.cwd() / path
    if not path.exists():
        raise DpmCommandFailure(f"Path does not exist: {path}")
    if not path.is_dir():
        raise DpmCommandFailure(f"Path is not a directory: {path}")
    ctx.basedir = path
    logger.debug("basedir: base directory set to %s", path)
    return f"Base directory set to: {path}"


def basedir_root(ctx: Context, args: tuple) -> Value:
    """Walk up from the working directory until `target` exists, then use that directory."""
    if len(args) > 1:
        raise DpmArityError("basedir-root expects at most one argument (target)")
    target = expect_str("basedir-root", args[0], "target") if args else ".git"
    start = Path.cwd()
    for candidate in (start, *start.parents):
        logger.debug("basedir-root: checking for %s in %s", target, candidate)
        if (candidate / target).exists():
            ctx.basedir = candidate
            return f"Found '{target}' at: {candidate / target}\nBase directory set to: {candidate}"
    raise DpmCommandFailure(f"Target '{target}' not found in any parent directory from {start}")


def register(registry: CommandRegistry) -> None:
    registry.register_handler("get-var", "Get a variable from the context with the given key", tags.COMMANDS,
                              get_var, "(get-var key)",
                              '  (get-var "name")        ; Get variable \'name\'')
    registry.register_handler("set-var", "Set a variable in the context with the given key and value",
                              tags.COMMANDS, set_var, "(set-var key value)",
                              '  (set-var "name" "John")          ; Set variable \'name\' to \'John\'\n'
                              '  (set-var "path" "${HOME}/work")  ; Interpolates ${HOME}')
    registry.register(DebugCommand())
    registry.register_handler("basedir", "Get or set the base directory for subsequent operations",
                              tags.COMMANDS, basedir, "(basedir [path])",
                              '  (basedir "/home/user/project")  ; Set absolute path\n'
                              '  (basedir "../project")          ; Set relative path\n'
                              '  (basedir)                       ; Current base directory')
    registry.register_handler("basedir-root",
                              "Find and set base directory by searching up the filesystem for a target file/folder",
                              tags.COMMANDS, basedir_root, "(basedir-root [target])",
                              '  (basedir-root)                 ; Search for .git (default)\n'
                              '  (basedir-root "setup.py")      ; Search for setup.py')
