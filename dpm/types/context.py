"""Execution context for dpm.

The Context stores the session's variable bindings and holds the command
registry used to resolve calls. It is created once per interpreter session and
passed explicitly through every evaluation step; commands that store values
mutate the same instance, so state persists across top-level forms.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, TYPE_CHECKING

from dpm import Value
from dpm.errors import DpmTypeError
from dpm.log import set_debug, debug_enabled
from dpm.types.symbol import Symbol
from dpm.types.values import display

if TYPE_CHECKING:
    from dpm.commands.registry import CommandRegistry


@dataclass(frozen=True)
class VersionInfo:
    """Checksum data computed by `version-check` for one component directory."""
    v_name: str
    real_name: str
    checksum: str


def _key(name: Symbol | str) -> str:
    if isinstance(name, Symbol):
        return name.id
    if isinstance(name, str):
        return name
    raise DpmTypeError(f"Variable name must be a symbol or string, got {name!r}")


class Context:
    """Flat mapping from names to values plus the session's command registry."""

    __slots__ = ("_vars", "_registry", "_debug", "basedir", "versions")

    def __init__(
        self,
        registry: CommandRegistry,
        basedir: Path | str | None = None,
        debug: bool | None = None,
    ):
        self._vars: dict[str, Value] = {}
        self._registry = registry
        self.basedir: Path = Path(basedir) if basedir is not None else Path(".")
        self.versions: dict[str, VersionInfo] = {}
        if debug is None:
            self._debug = debug_enabled()
        else:
            self.debug = debug

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    @property
    def debug(self) -> bool:
        return self._debug

    @debug.setter
    def debug(self, enabled: bool) -> None:
        self._debug = bool(enabled)
        set_debug(self._debug)

    @property
    def variables(self) -> Mapping[str, Value]:
        """Read-only view of the bindings, in insertion order."""
        return MappingProxyType(self._vars)

    def get(self, name: Symbol | str) -> Optional[Value]:
        return self._vars.get(_key(name))

    def set(self, name: Symbol | str, value: Value) -> None:
        # Last write wins; the key keeps its first insertion position.
        self._vars[_key(name)] = value

    def __contains__(self, name: Symbol | str) -> bool:
        return _key(name) in self._vars

    def set_version(self, info: VersionInfo) -> None:
        self.versions[info.v_name] = info

    def describe(self) -> str:
        """Multi-line dump of the fixed session fields and every variable."""
        with StringIO() as buffer:
            buffer.write("\n=== DEBUG: Current Program State ===\n")
            buffer.write("\n--- Fixed Context Variables ---\n")
            buffer.write(f"  debugPrint = {'true' if self.debug else 'false'}\n")
            buffer.write(f"  basedir = {self.basedir}\n")
            buffer.write("\n--- Session Variables ---\n")
            if not self._vars:
                buffer.write("  (no variables set)\n")
            for k, v in self._vars.items():
                buffer.write(f"  {k} = {display(v)}\n")
            buffer.write("\n=== End Debug Info ===\n")
            return buffer.getvalue()

    def __repr__(self) -> str:
        return f"<Context vars={len(self._vars)} commands={len(self._registry)} basedir={self.basedir}>"
