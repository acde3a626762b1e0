"""Value model helpers.

The closed set of runtime values is:

    Integer  -> int (never bool), signed 64-bit
    String   -> str
    Boolean  -> bool
    List     -> tuple of values (immutable; doubles as call syntax)
    Symbol   -> dpm.types.symbol.Symbol
    Nil      -> dpm.types.nil.Nil

Commands use the `expect_*` helpers to validate their arguments; there is no
implicit coercion between Integer and String anywhere in the interpreter.
"""

from __future__ import annotations

from typing import Iterable

from dpm import Value
from dpm.errors import DpmArityError, DpmTypeError, DpmCommandFailure
from dpm.types.nil import Nil, NilType
from dpm.types.symbol import Symbol

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_ESCAPES = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\t": "\\t", "\r": "\\r"}


def is_int(v: Value) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def in_int64_range(n: int) -> bool:
    return INT64_MIN <= n <= INT64_MAX


def make_int(n: int) -> int:
    """Return `n` as an Integer value; fails if it does not fit in 64 bits."""
    if not in_int64_range(n):
        raise DpmCommandFailure(f"Integer overflow: {n} does not fit in 64 bits")
    return n


def make_list(*items: Value) -> tuple:
    return tuple(items)


def is_value(v: Value) -> bool:
    """True if `v` belongs to the closed set of interpreter values."""
    if isinstance(v, tuple):
        return all(is_value(x) for x in v)
    if is_int(v):
        return in_int64_range(v)
    return isinstance(v, (str, bool, Symbol, NilType))


def is_equal(a: Value, b: Value) -> bool:
    """Structural equality; lists compare element-wise, other cases by value."""
    if a is b:
        return True
    if isinstance(a, tuple) and isinstance(b, tuple):
        if len(a) != len(b):
            return False
        return all(is_equal(x, y) for x, y in zip(a, b))
    # bool is a subclass of int: True must never equal 1
    if type(a) != type(b):
        return False
    return a == b


def is_truthy(v: Value) -> bool:
    """Nil, false and the integer 0 are false; everything else is true."""
    if v is Nil or v is False:
        return False
    if is_int(v) and v == 0:
        return False
    return True


def display(v: Value) -> str:
    """Human-readable rendering used by print/concat and env files."""
    if v is Nil:
        return "nil"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, tuple):
        return "(" + " ".join(display(x) for x in v) + ")"
    return str(v)


def write(v: Value) -> str:
    """Readable rendering: strings are quoted so the text reads back as the value."""
    if isinstance(v, str):
        return '"' + "".join(_ESCAPES.get(c, c) for c in v) + '"'
    if isinstance(v, bool):
        return "#t" if v else "#f"
    if isinstance(v, tuple):
        return "(" + " ".join(write(x) for x in v) + ")"
    return display(v)


def type_name(v: Value) -> str:
    if v is Nil:
        return "nil"
    if isinstance(v, bool):
        return "boolean"
    if is_int(v):
        return "integer"
    if isinstance(v, str):
        return "string"
    if isinstance(v, Symbol):
        return "symbol"
    if isinstance(v, tuple):
        return "list"
    return type(v).__name__


# -------------------------------
# Argument validation for commands
# -------------------------------
def expect_arity(name: str, args: tuple, count: int | None = None, *, at_least: int | None = None,
                 message: str | None = None) -> None:
    if count is not None and len(args) != count:
        raise DpmArityError(message or f"{name} expects exactly {count} argument(s), got {len(args)}")
    if at_least is not None and len(args) < at_least:
        raise DpmArityError(message or f"{name} expects at least {at_least} argument(s), got {len(args)}")


def expect_int(name: str, v: Value) -> int:
    if not is_int(v):
        raise DpmTypeError(f"{name}: expected integer, got {type_name(v)} {write(v)}")
    return v


def expect_str(name: str, v: Value, what: str = "argument") -> str:
    if not isinstance(v, str):
        raise DpmTypeError(f"{name} {what} must be a string, got {type_name(v)}")
    return v


def expect_list(name: str, v: Value) -> tuple:
    if not isinstance(v, tuple):
        raise DpmTypeError(f"{name}: expected list, got {type_name(v)} {write(v)}")
    return v


def expect_bool(name: str, v: Value) -> bool:
    if not isinstance(v, bool):
        raise DpmTypeError(f"{name}: expected boolean, got {type_name(v)} {write(v)}")
    return v


def string_args(name: str, args: Iterable[Value], allow_int: bool = True) -> list[str]:
    """Convert command arguments to strings for process invocation."""
    out: list[str] = []
    for a in args:
        if isinstance(a, str):
            out.append(a)
        elif allow_int and is_int(a):
            out.append(str(a))
        else:
            kinds = "strings or integers" if allow_int else "strings"
            raise DpmTypeError(f"{name} arguments must be {kinds}")
    return out
