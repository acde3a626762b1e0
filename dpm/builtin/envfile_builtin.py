"""Environment-file, directory versioning and file listing commands.

Every path argument is resolved against the context's base directory.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path

from dpm import Value
from dpm.commands import tags, CommandRegistry
from dpm.errors import DpmCommandFailure
from dpm.files import (
    ENV_FILE_HEADER, compute_dir_md5, interpolate_variables, parse_env_line,
    read_env_file, version_name, write_env_file,
)
from dpm.types.context import Context, VersionInfo
from dpm.types.values import display, expect_arity, expect_str

logger = logging.getLogger(__name__)

VERSIONS_FILE = "versions.properties"


def _path_arg(name: str, args: tuple, what: str = "path") -> str:
    expect_arity(name, args, 1, message=f"{name} expects exactly one argument ({what})")
    return expect_str(name, args[0], what)


def read_env(ctx: Context, args: tuple) -> Value:
    """Load KEY=VALUE lines into the context as strings, interpolating ${NAME}."""
    file_path = ctx.basedir / _path_arg("read-env", args)
    logger.debug("read-env: resolved file path: %s", file_path)
    if not file_path.exists():
        raise DpmCommandFailure(f"File does not exist: {file_path}")
    try:
        contents = file_path.read_text(encoding="utf-8")
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to read file {file_path}: {ex}") from ex

    loaded = 0
    lines = contents.splitlines()
    for line_num, line in enumerate(lines, start=1):
        parsed = parse_env_line(line)
        if parsed is None:
            logger.debug("read-env: skipping line %d", line_num)
            continue
        key, raw = parsed
        value = interpolate_variables(raw, ctx.variables)
        logger.debug("read-env: found variable: %s = %s", key, value)
        ctx.set(key, value)
        loaded += 1

    return f"Loaded {loaded} variables from {file_path} (processed {len(lines)} lines)"


def write_env(ctx: Context, args: tuple) -> Value:
    """Write every session variable as KEY=value under a generated header."""
    file_path = ctx.basedir / _path_arg("write-env", args)
    logger.debug("write-env: resolved file path: %s", file_path)

    lines = [f"{key}={display(value)}\n" for key, value in ctx.variables.items()]
    content = ENV_FILE_HEADER + ("".join(lines) if lines else "# No variables to write\n")
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to write file {file_path}: {ex}") from ex

    logger.debug("write-env: wrote %d variables", len(lines))
    return f"Wrote {len(lines)} variables to {file_path}"


def _stored_entry(existing: dict[str, str], v_name: str) -> tuple[int, str]:
    """(version, checksum) recorded for `v_name`, reading the legacy V=version.checksum form too."""
    legacy_version, legacy_checksum = 1, ""
    legacy = existing.get(v_name)
    if legacy is not None and "." in legacy:
        head, _, legacy_checksum = legacy.partition(".")
        legacy_version = int(head) if head.isdigit() else 1

    version_str = existing.get(f"{v_name}_VERSION")
    if version_str is not None:
        version = int(version_str) if version_str.isdigit() else 1
    else:
        version = legacy_version
    checksum = existing.get(f"{v_name}_CHECKSUM", legacy_checksum)
    return version, checksum


def version_check(ctx: Context, args: tuple) -> Value:
    """
    Checksum every subdirectory of `path` and maintain versions.properties there.

    A directory seen for the first time gets version 1; a directory whose
    checksum differs from the stored one has its version incremented.
    """
    base = ctx.basedir / _path_arg("version-check", args)
    logger.debug("version-check: resolved path: %s", base)
    if not base.exists():
        raise DpmCommandFailure(f"Directory does not exist: {base}")
    if not base.is_dir():
        raise DpmCommandFailure(f"Path is not a directory: {base}")

    found: list[VersionInfo] = []
    for entry in sorted(base.iterdir()):
        if not entry.is_dir():
            logger.debug("version-check: skipping non-directory: %s", entry)
            continue
        try:
            checksum = compute_dir_md5(entry)
        except OSError as ex:
            logger.debug("version-check: failed to compute checksum for %s: %s", entry.name, ex)
            continue
        info = VersionInfo(version_name(entry.name), entry.name, checksum)
        logger.debug("version-check: %s -> %s (%s)", info.real_name, info.v_name, checksum)
        ctx.set_version(info)
        found.append(info)

    versions_file = base / VERSIONS_FILE
    existing: dict[str, str] = {}
    if versions_file.exists():
        try:
            existing = read_env_file(versions_file)
        except OSError as ex:
            logger.debug("version-check: failed to read %s: %s", versions_file, ex)

    updated: dict[str, str] = {}
    changes = 0
    for info in found:
        v_name = info.v_name
        version, stored_checksum = _stored_entry(existing, v_name)
        if stored_checksum != info.checksum:
            logger.debug("version-check: checksum changed for %s: %r -> %r", v_name, stored_checksum, info.checksum)
            changes += 1
            version = version + 1 if stored_checksum else 1
        updated[f"{v_name}_VERSION"] = str(version)
        updated[f"{v_name}_CHECKSUM"] = info.checksum

    try:
        write_env_file(versions_file, updated)
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to write versions.properties file: {ex}") from ex

    return (
        f"Processed {len(found)} directories from {base} and stored version check data. "
        f"Version tracking: {changes} changes detected, versions.properties updated."
    )


def wildcard_to_regex(pattern: str) -> re.Pattern:
    """`*` matches any run of characters, `?` one character; everything else is literal."""
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def fs_list(ctx: Context, args: tuple) -> Value:
    """Sorted names of the regular files in the base directory matching `pattern`."""
    pattern = _path_arg("fs-list", args, "pattern string")
    regex = wildcard_to_regex(pattern)
    try:
        entries = list(Path(ctx.basedir).iterdir())
    except OSError as ex:
        raise DpmCommandFailure(f"Failed to read directory {ctx.basedir}: {ex}") from ex
    names = sorted(p.name for p in entries if p.is_file() and regex.fullmatch(p.name))
    logger.debug("fs-list: matched %d files", len(names))
    return tuple(names)


def register(registry: CommandRegistry) -> None:
    registry.register_handler("read-env", "Read environment variables from a file and store them in the context",
                              tags.ENV, read_env, "(read-env path)",
                              '  (read-env "config.env")     ; Read from config.env relative to basedir\n'
                              '  (read-env "../shared.env")  ; Read from parent directory')
    registry.register_handler("write-env", "Write all context variables to a file", tags.ENV, write_env,
                              "(write-env path)",
                              '  (write-env "config.env")     ; Write to config.env relative to basedir')
    registry.register_handler("version-check", "Process subdirectories and create version check data structure",
                              tags.ENV, version_check, "(version-check path)",
                              '  (version-check "docker")     ; Process subdirectories in docker folder')
    registry.register_handler("fs-list", "List files in the base directory matching a wildcard pattern",
                              tags.ENV, fs_list, "(fs-list pattern)",
                              '  (fs-list "*.env")      ; List env files\n'
                              '  (fs-list "config.*")   ; List files starting with \'config.\'')
