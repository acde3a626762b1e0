from dpm.types.nil import Nil, NilType
from dpm.types.symbol import Symbol
from dpm.types.context import Context, VersionInfo

__all__ = ["Nil", "NilType", "Symbol", "Context", "VersionInfo"]
