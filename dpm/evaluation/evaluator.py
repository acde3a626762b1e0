"""Core evaluator for the dpm command language.

Walks an expression tree against a Context: atoms evaluate to themselves,
symbols resolve through the context, special forms are dispatched through
SPECIAL_FORMS and every other list is a command call resolved through the
context's registry. Evaluation is eager and strictly left to right; an error
aborts the current form immediately.
"""

from __future__ import annotations

import logging

from dpm import SExpression, Value
from dpm.errors import DpmError, DpmCommandFailure, DpmSyntaxError, DpmUnboundSymbol, DpmUnknownCommand
from dpm.reader import read_all
from dpm.types.context import Context
from dpm.types.nil import Nil
from dpm.types.symbol import Symbol
from dpm.evaluation.special_forms import SPECIAL_FORMS

logger = logging.getLogger(__name__)


def evaluate(expr: SExpression, ctx: Context) -> Value:
    match expr:
        case Symbol():
            if expr not in ctx:
                raise DpmUnboundSymbol(expr.id)
            return ctx.get(expr)
        case ():
            return Nil
        case (head, *tail_args):
            if not isinstance(head, Symbol):
                raise DpmSyntaxError(f"Cannot call {head!r}: the head of a call must be a command name")
            form = SPECIAL_FORMS.get(head)
            if form is not None:
                return form(tuple(tail_args), ctx, evaluate)
            return apply_command(head, tail_args, ctx)
        case _:
            # Integers, strings, booleans and nil are self-evaluating.
            return expr


def apply_command(name: Symbol, arg_forms, ctx: Context) -> Value:
    """Resolve `name` in the registry, evaluate the arguments and run it."""
    command = ctx.registry.lookup(name.id)
    if command is None:
        raise DpmUnknownCommand(name.id)

    args = tuple(evaluate(a, ctx) for a in arg_forms)
    logger.debug("%s: executing with %d argument(s)", name.id, len(args))
    try:
        result = command.execute(ctx, args)
    except DpmError:
        raise
    except Exception as ex:
        raise DpmCommandFailure(f"{name.id}: {ex}") from ex
    return Nil if result is None else result


def evaluate_form(form: SExpression, ctx: Context) -> Value:
    """Evaluate one top-level form; running out of Python stack is a DpmCommandFailure."""
    try:
        return evaluate(form, ctx)
    except RecursionError as ex:
        raise DpmCommandFailure("Expression nested too deeply to evaluate") from ex


def eval_string(source: str, ctx: Context) -> Value:
    """
    Read every form in `source`, then evaluate them in order.
    A parse error aborts before anything runs; an evaluation error aborts the
    remaining forms but keeps the effects of the forms already evaluated.
    """
    result: Value = Nil
    for form in read_all(source):
        result = evaluate_form(form, ctx)
    return result
