"""Registry of special forms for the dpm evaluator.

Maps Symbols to handler functions that control which of their own
sub-expressions get evaluated. The evaluator consults this table before the
command registry, so a special form name always shadows a command of the same
name.
"""

from dpm.types.symbol import Symbol
from dpm.evaluation.special_forms.quote_form import quote_form
from dpm.evaluation.special_forms.let_form import let_form
from dpm.evaluation.special_forms.progn_form import progn_form
from dpm.evaluation.special_forms.if_form import if_form
from dpm.evaluation.special_forms.pipe_form import pipe_form

SPECIAL_FORMS = {
    Symbol("quote"): quote_form,
    Symbol("let"): let_form,
    Symbol("progn"): progn_form,
    Symbol("begin"): progn_form,
    Symbol("if"): if_form,
    Symbol("pipe"): pipe_form,
}
