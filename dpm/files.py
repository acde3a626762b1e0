"""File helpers shared by the environment and versioning commands."""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path
from typing import Mapping, Optional

from dpm.types.values import display

VAR_REF_RE = re.compile(r"\$\{([^}]+)\}")

ENV_FILE_HEADER = (
    "# Environment variables written by write-env command\n"
    "# Generated automatically - do not edit manually\n\n"
)


def parse_env_line(line: str) -> Optional[tuple[str, str]]:
    """(key, value) for a KEY=VALUE line; None for blanks, comments and junk."""
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#"):
        return None
    key, sep, value = trimmed.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, value.strip()


def read_env_file(path: Path | str) -> dict[str, str]:
    env_vars: dict[str, str] = {}
    with open(path, encoding="utf-8") as f:
        for line in f:
            parsed = parse_env_line(line)
            if parsed is not None:
                env_vars[parsed[0]] = parsed[1]
    return env_vars


def write_env_file(path: Path | str, env_vars: Mapping[str, str]) -> None:
    """Write KEY=VALUE lines sorted by key, replacing the file."""
    with open(path, "w", encoding="utf-8") as f:
        for key in sorted(env_vars):
            f.write(f"{key}={env_vars[key]}\n")


def interpolate_variables(value: str, variables: Mapping[str, object]) -> str:
    """
    Replace ${NAME} references in a single pass: context variables first, then
    the process environment. Unknown references are left as written, and
    substituted text is never scanned again.
    """
    def substitute(m: re.Match) -> str:
        name = m.group(1)
        if name in variables:
            return display(variables[name])
        env_value = os.environ.get(name)
        if env_value is not None:
            return env_value
        return m.group(0)

    return VAR_REF_RE.sub(substitute, value)


def file_md5(path: Path, chunk_size: int = 1 << 16) -> str:
    """MD5 hex digest of a file, read in fixed-size chunks."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def compute_dir_md5(directory: Path | str) -> str:
    """
    Short checksum of a directory tree: the first 8 hex digits of the MD5 of
    the concatenated MD5 hex digests of every regular file, in path order.
    """
    root = Path(directory)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    file_paths = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            p = Path(dirpath) / name
            if p.is_file():
                file_paths.append(p)
    file_paths.sort()

    digests = [file_md5(p) for p in file_paths]
    return hashlib.md5("".join(digests).encode("ascii")).hexdigest()[:8]


def version_name(dir_name: str) -> str:
    """Upper-cased directory name with every non-alphanumeric character as '_'."""
    return "".join(c if c.isalnum() else "_" for c in dir_name.upper())
