import logging

import pytest

from dpm.builtin import register_all
from dpm.commands import CommandRegistry
from dpm.evaluation import eval_string
from dpm.types.context import Context


@pytest.fixture
def registry():
    return register_all(CommandRegistry())


@pytest.fixture
def ctx(registry, tmp_path):
    return Context(registry, basedir=tmp_path, debug=False)


@pytest.fixture
def run(ctx):
    """Evaluate a source string against the shared test context."""
    def _run(source):
        return eval_string(source, ctx)
    return _run


@pytest.fixture(autouse=True)
def _reset_dpm_logger():
    logger = logging.getLogger("dpm")
    level = logger.level
    yield
    logger.setLevel(level)
