from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Literal

from dpm import SExpression, Value, config
from dpm.builtin import register_all
from dpm.commands import CommandRegistry
from dpm.errors import DpmCommandFailure
from dpm.evaluation.evaluator import evaluate_form, eval_string
from dpm.reader import read_all
from dpm.types.context import Context

logger = logging.getLogger(__name__)


class Interpreter:
    """
    Owns one session: a registry holding every built-in family and the Context
    that all evaluated forms share. State persists across `eval` calls.
    """

    def __init__(
        self,
        prelude: str | None | Literal['auto'] = 'auto',
        basedir: Path | str | None = None,
        registry: CommandRegistry | None = None,
        *,
        debug: bool | None = None,
    ):
        if registry is None:
            registry = register_all(CommandRegistry())
        self.registry = registry

        if basedir is None:
            basedir = config.get_basedir()
        if debug is None and config.get_debug():
            debug = True
        self.ctx = Context(registry, basedir=basedir, debug=debug)

        if prelude is None:
            pass  # explicit: no prelude
        elif prelude == 'auto':
            self.load_prelude()
        elif prelude:
            self.eval(prelude)

    def load_prelude(self) -> None:
        """Evaluate each configured prelude script that exists, in order."""
        for path in config.get_prelude_paths(self.ctx.basedir):
            if path.is_file():
                self.load(path)
            else:
                logger.debug("prelude: %s not found, skipping", path)

    def eval(self, code: str) -> Value:
        """Evaluate every form in `code`; returns the last value (nil when empty)."""
        return eval_string(code, self.ctx)

    def eval_form(self, form: SExpression) -> Value:
        return evaluate_form(form, self.ctx)

    def eval_forms(self, code: str) -> Iterator[tuple[SExpression, Value]]:
        """Yield (form, value) for each top-level form, evaluating lazily."""
        for form in read_all(code):
            yield form, self.eval_form(form)

    def load(self, path: Path | str) -> Value:
        logger.debug("load: evaluating %s", path)
        try:
            source = Path(path).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as ex:
            raise DpmCommandFailure(f"Failed to read script {path}: {ex}") from ex
        return self.eval(source)
