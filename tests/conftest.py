"""
Test Configuration
==================

Shared fixtures: isolated settings, registries, engines and the compiler.
"""

import logging
import os

import pytest

import pargo.config.settings as settings_module
from pargo import Engine, GrammarCompiler, Registry
from pargo.config.settings import Settings

ARITH_GRAMMAR = (
    'digit: "0"-"9"\n'
    "number: *oneOrMore(digit) {toInt}\n"
    'op: "+" | "-"\n'
    "sum: number, *zeroOrMore(*ws, op, *ws, number) {evalSum}\n"
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Drop PARGO_* overrides and the cached settings instance."""
    for key in list(os.environ):
        if key.upper().startswith("PARGO_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(settings_module, "settings", None)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler and level changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def registry():
    return Registry.with_primitives()


@pytest.fixture
def engine(registry):
    return Engine(registry)


@pytest.fixture
def compiler(settings):
    return GrammarCompiler(settings)


@pytest.fixture
def arith_source():
    return ARITH_GRAMMAR


@pytest.fixture
def arith_funcs():
    def eval_sum(parts):
        total, rest = parts
        for _, op, _, n in rest:
            total = total + n if op == "+" else total - n
        return total

    return {"toInt": lambda digits: int("".join(digits)), "evalSum": eval_sum}
