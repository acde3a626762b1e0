"""Core commands: arithmetic, strings, lists and comparison.

`sum`, `concat`, `multiply` and `print` are named Command classes; the rest
are plain handlers registered with their metadata. Both end up behind the same
registry entry type.
"""
from __future__ import annotations

import logging
from functools import reduce

from dpm import Value
from dpm.commands import tags, Command, CommandRegistry
from dpm.errors import DpmTypeError
from dpm.types.context import Context
from dpm.types.nil import Nil
from dpm.types.values import (
    display, expect_arity, expect_int, expect_list, is_equal, is_int, is_truthy, make_int, write,
)

logger = logging.getLogger(__name__)


def _sum_values(name: str, args: tuple) -> int:
    total = 0
    for arg in args:
        items = arg if isinstance(arg, tuple) else (arg,)
        for item in items:
            if not is_int(item):
                raise DpmTypeError(f"{name}: cannot sum non-integer value: {write(item)}")
            total += item
    logger.debug("%s: summed %d arguments", name, len(args))
    return make_int(total)


class SumCommand(Command):
    name = "sum"
    description = "Sum a list of integers"
    syntax = "(sum number1 number2 ...)"
    examples = "  (sum 1 2 3)        ; Returns 6\n  (sum (list 10 20)) ; Returns 30"

    def execute(self, ctx: Context, args: tuple) -> Value:
        return _sum_values(self.name, args)


class PlusCommand(SumCommand):
    name = "+"
    description = "Add integers (alias of sum)"
    syntax = "(+ number1 number2 ...)"
    examples = "  (+ 1 2 3)          ; Returns 6"


class ConcatCommand(Command):
    name = "concat"
    description = "Concatenate strings"
    syntax = "(concat string1 string2 ...)"
    examples = '  (concat "Hello" " " "World") ; Returns "Hello World"\n  (concat "A" "B" "C")         ; Returns "ABC"'

    def execute(self, ctx: Context, args: tuple) -> Value:
        return "".join(display(a) for a in args)


class MultiplyCommand(Command):
    name = "multiply"
    description = "Multiply two numbers"
    syntax = "(multiply number1 number2)"
    examples = "  (multiply 6 7)      ; Returns 42\n  (multiply 3 4)      ; Returns 12"

    def execute(self, ctx: Context, args: tuple) -> Value:
        expect_arity(self.name, args, 2, message="multiply expects exactly 2 arguments")
        a = expect_int(self.name, args[0])
        b = expect_int(self.name, args[1])
        return make_int(a * b)


class PrintCommand(Command):
    name = "print"
    description = "Print arguments to stdout"
    syntax = "(print arg1 arg2 ...)"
    examples = '  (print "Hello World")\n  (print "Sum is:" (sum 1 2 3))'

    def execute(self, ctx: Context, args: tuple) -> Value:
        output = " ".join(display(a) for a in args)
        print(output)
        return output


# -------------------------------
# Handlers
# -------------------------------
def sub(ctx: Context, args: tuple) -> Value:
    """Subtract all subsequent integers from the first; unary negation for one arg."""
    expect_arity("-", args, at_least=1, message="- requires at least 1 argument")
    nums = [expect_int("-", a) for a in args]
    if len(nums) == 1:
        return make_int(-nums[0])
    return make_int(reduce(lambda x, y: x - y, nums))


def mul(ctx: Context, args: tuple) -> Value:
    result = 1
    for a in args:
        result *= expect_int("*", a)
    return make_int(result)


def list_builtin(ctx: Context, args: tuple) -> Value:
    return tuple(args)


def list_first(ctx: Context, args: tuple) -> Value:
    expect_arity("list-first", args, 1, message="list-first expects exactly one argument")
    items = expect_list("list-first", args[0])
    return items[0] if items else Nil


def list_rest(ctx: Context, args: tuple) -> Value:
    expect_arity("list-rest", args, 1, message="list-rest expects exactly one argument")
    items = expect_list("list-rest", args[0])
    return items[1:]


def length(ctx: Context, args: tuple) -> Value:
    expect_arity("length", args, 1)
    v = args[0]
    if isinstance(v, (tuple, str)):
        return len(v)
    if v is Nil:
        return 0
    raise DpmTypeError(f"length: expected list or string, got {write(v)}")


def equals(ctx: Context, args: tuple) -> Value:
    """True if all arguments are structurally equal (or zero/one arg)."""
    if len(args) <= 1:
        return True
    first = args[0]
    return all(is_equal(first, other) for other in args[1:])


def logical_not(ctx: Context, args: tuple) -> Value:
    expect_arity("not", args, 1)
    return not is_truthy(args[0])


def register(registry: CommandRegistry) -> None:
    """Register the core command family."""
    for cmd in (SumCommand(), PlusCommand(), ConcatCommand(), MultiplyCommand(), PrintCommand()):
        registry.register(cmd)

    registry.register_handler("-", "Subtract integers from the first one", tags.CORE, sub,
                              "(- number1 number2 ...)", "  (- 10 3 2)         ; Returns 5\n  (- 4)              ; Returns -4")
    registry.register_handler("*", "Multiply any number of integers", tags.CORE, mul,
                              "(* number1 number2 ...)", "  (* 2 3 4)          ; Returns 24")
    registry.register_handler("list", "Create a list from arguments", tags.CORE, list_builtin,
                              "(list element1 element2 ...)",
                              '  (list 1 2 3)       ; Creates (1 2 3)\n  (list "a" "b")     ; Creates ("a" "b")')
    registry.register_handler("list-first", "Get first element of a list", tags.CORE, list_first,
                              "(list-first list)", "  (list-first (list 1 2 3))  ; Returns 1")
    registry.register_handler("list-rest", "Get all but first element of a list", tags.CORE, list_rest,
                              "(list-rest list)", "  (list-rest (list 1 2 3))   ; Returns (2 3)")
    registry.register_handler("length", "Number of elements in a list or characters in a string", tags.CORE,
                              length, "(length list-or-string)", '  (length (list 1 2))  ; Returns 2')
    registry.register_handler("=", "Structural equality of all arguments", tags.CORE, equals,
                              "(= a b ...)", '  (= 1 1)            ; Returns #t\n  (= "1" 1)          ; Returns #f')
    registry.register_handler("not", "Logical negation (nil, #f and 0 are false)", tags.CORE, logical_not,
                              "(not value)", "  (not nil)          ; Returns #t")
