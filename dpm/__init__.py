# Core type aliases for dpm's data model.
# Values are plain Python objects (int, str, bool, tuple) plus the Symbol and Nil
# types from dpm.types. The reader emits the same objects the evaluator returns,
# so there is no separate AST type: a quoted list and a call are the same tuple.
#
# Naming guidance:
# - SExpression: use in reader/evaluator code to denote forms (code-as-data).
# - Value:       use in command code to denote evaluated values.
# Both aliases resolve to `Any` and are interchangeable.

from typing import Any, Callable

__version__ = "0.3.0"

# Runtime value alias
Value = Any
# Forms alias (used interchangeably with Value)
SExpression = Value

# Evaluator function type handed to special forms
EvaluatorFn = Callable[..., Value]
