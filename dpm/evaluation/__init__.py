from dpm.evaluation.evaluator import evaluate, apply_command, evaluate_form, eval_string
from dpm.evaluation.special_forms import SPECIAL_FORMS

__all__ = ["evaluate", "apply_command", "evaluate_form", "eval_string", "SPECIAL_FORMS"]
