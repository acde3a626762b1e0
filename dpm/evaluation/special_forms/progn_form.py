from dpm import EvaluatorFn
from dpm import SExpression, Value
from dpm.types.nil import Nil
from dpm.types.context import Context


def progn_form(tail: tuple[SExpression, ...], ctx: Context, evaluate_fn: EvaluatorFn) -> Value:
    result: Value = Nil
    for e in tail:
        result = evaluate_fn(e, ctx)
    return result
