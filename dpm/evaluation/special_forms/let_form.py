from dpm import EvaluatorFn
from dpm import SExpression, Value
from dpm.errors import DpmSyntaxError
from dpm.types.symbol import Symbol
from dpm.types.context import Context


def let_form(tail: tuple[SExpression, ...], ctx: Context, evaluate_fn: EvaluatorFn) -> Value:
    """
    (let name expr)
    Binds the value of expr to name in the session context and returns it.
    Rebinding an existing name overwrites it.
    """
    if len(tail) != 2:
        raise DpmSyntaxError("let requires exactly 2 arguments: (let name value)")
    name, val_expr = tail
    if not isinstance(name, Symbol):
        raise DpmSyntaxError(f"let first argument must be a symbol, got {name!r}")
    value = evaluate_fn(val_expr, ctx)
    ctx.set(name, value)
    return value
