from dpm import EvaluatorFn
from dpm import SExpression, Value
from dpm.errors import DpmSyntaxError
from dpm.types.context import Context


def quote_form(tail: tuple[SExpression, ...], ctx: Context, evaluate_fn: EvaluatorFn) -> Value:
    """(quote expr) returns expr without evaluating it."""
    if len(tail) != 1:
        raise DpmSyntaxError(f"quote expects exactly 1 argument, got {len(tail)}")
    return tail[0]
