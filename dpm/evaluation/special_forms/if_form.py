from dpm import EvaluatorFn
from dpm import SExpression, Value
from dpm.errors import DpmSyntaxError
from dpm.types.nil import Nil
from dpm.types.values import is_truthy
from dpm.types.context import Context


def if_form(tail: tuple[SExpression, ...], ctx: Context, evaluate_fn: EvaluatorFn) -> Value:
    if len(tail) not in (2, 3):
        raise DpmSyntaxError("if requires a condition, a then-expression and an optional else-expression")

    cond = evaluate_fn(tail[0], ctx)
    if is_truthy(cond):
        return evaluate_fn(tail[1], ctx)
    if len(tail) == 3:
        return evaluate_fn(tail[2], ctx)
    return Nil
