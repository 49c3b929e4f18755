# tests/core/graph/test_target_model.py
"""
Testes do modelo `Target`.

Invariantes:
    - nomes precisam ser identificadores Python válidos
    - comandos vazios e formatos desconhecidos são inválidos
    - `deps` é ordenado e sem duplicatas
    - `Target` é imutável
"""

import dataclasses

import pytest

from atlas_targets.core.exceptions import InvalidTargetError
from atlas_targets.core.graph.target import Target, TargetFormat, TargetResult, TargetStatus, target


def test_factory_builds_value_target():
    t = target("summary", "raw.describe()", description="stats")
    assert t.format == TargetFormat.VALUE
    assert t.deps == ()
    assert t.description == "stats"


def test_format_is_coerced_from_string():
    assert target("plot", "'a.png'", format="file").format == TargetFormat.FILE


@pytest.mark.parametrize("name", ["", "1abc", "with-dash", "class", None])
def test_invalid_names(name):
    with pytest.raises(InvalidTargetError):
        target(name, "1")


def test_empty_command_is_invalid():
    with pytest.raises(InvalidTargetError):
        target("x", "   ")


def test_unknown_format_is_invalid():
    with pytest.raises(InvalidTargetError):
        target("x", "1", format="parquet")


def test_self_dependency_is_invalid():
    with pytest.raises(InvalidTargetError):
        target("x", "1", depends_on=["x"])


def test_with_deps_sorts_and_dedups():
    t = target("x", "a + b").with_deps(["b", "a", "b"])
    assert t.deps == ("a", "b")


def test_target_is_frozen():
    t = target("x", "1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        t.name = "y"


def test_bindings_do_not_affect_equality():
    assert target("x", "1", bindings={"a": 1}) == Target(name="x", command="1")


def test_result_to_dict_is_serializable():
    r = TargetResult(name="x", status=TargetStatus.BUILT, summary="built", data_hash="h", seconds=0.5)
    assert r.to_dict() == {
        "name": "x",
        "status": "built",
        "summary": "built",
        "data_hash": "h",
        "seconds": 0.5,
        "warnings": [],
        "error": None,
    }
