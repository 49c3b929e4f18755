# tests/core/engine/test_evaluation.py
"""Testes da avaliação de comandos (última expressão é o valor)."""

import pytest

from atlas_targets.core.engine.evaluation import evaluate_command
from atlas_targets.core.exceptions import CommandSyntaxError


def test_expression_value():
    assert evaluate_command("1 + 2", {}) == 3


def test_block_returns_last_expression_and_mutates_namespace():
    ns = {"x": 2}
    assert evaluate_command("y = x * 5\ny - 1", ns) == 9
    assert ns["y"] == 10


def test_block_without_trailing_expression_returns_none():
    ns = {}
    assert evaluate_command("def f():\n    return 1", ns) is None
    assert ns["f"]() == 1


def test_runtime_errors_propagate():
    with pytest.raises(ZeroDivisionError):
        evaluate_command("1 / 0", {})


def test_syntax_error_is_typed():
    with pytest.raises(CommandSyntaxError):
        evaluate_command("def (", {}, name="bad")
