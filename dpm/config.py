from __future__ import annotations
import os
from pathlib import Path
from typing import Iterable, List


_TRUE_VALUES = ("1", "true", "yes", "on")

# Defaults (relative to the base directory)
_DEFAULT_PRELUDE = Path(".dpm") / "prelude.dpm"


def paths_from_env(var: str, defaults: Iterable[Path]) -> List[Path]:
    raw = os.environ.get(var)
    if not raw:
        return [Path(p) for p in defaults]
    return [Path(p.strip()) for p in raw.split(os.pathsep) if p.strip()]


def flag_from_env(var: str, default: bool = False) -> bool:
    raw = os.environ.get(var)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def get_basedir() -> Path:
    raw = os.environ.get('DPM_BASEDIR')
    return Path(raw) if raw else Path('.')


def get_debug() -> bool:
    return flag_from_env('DPM_DEBUG')


def get_prelude_paths(basedir: Path | None = None) -> List[Path]:
    base = basedir if basedir is not None else get_basedir()
    return paths_from_env('DPM_PRELUDE_PATH', [base / _DEFAULT_PRELUDE])
