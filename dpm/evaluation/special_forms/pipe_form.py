from dpm import EvaluatorFn
from dpm import SExpression, Value
from dpm.errors import DpmSyntaxError
from dpm.types.nil import Nil
from dpm.types.symbol import Symbol
from dpm.types.context import Context

QUOTE = Symbol("quote")


def pipe_form(tail: tuple[SExpression, ...], ctx: Context, evaluate_fn: EvaluatorFn) -> Value:
    """
    (pipe first (cmd a ...) (cmd b ...) ...)
    Evaluates `first`, then each step with the previous result appended as its
    last argument. The result is quoted before it is spliced in so a list
    result is passed as data rather than re-evaluated as a call.
    """
    if not tail:
        return Nil
    result = evaluate_fn(tail[0], ctx)
    for step in tail[1:]:
        if not isinstance(step, tuple) or not step or not isinstance(step[0], Symbol):
            raise DpmSyntaxError(f"pipe steps must be command calls, got {step!r}")
        result = evaluate_fn(step + ((QUOTE, result),), ctx)
    return result
