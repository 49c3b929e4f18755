# tests/core/engine/test_engine_failures.py
"""
Testes das políticas de erro do Engine.

Os testes asseguram que:
- exceções em comandos viram `ErrorPayload` (nunca escapam de `run`)
- com fail-fast, nenhum target é processado após a primeira falha
- sem fail-fast, dependentes são SKIPPED e targets independentes seguem
- o erro fica registrado no store e no Manifest
- um target que falhou é reexecutado na run seguinte
"""

import pytest

from atlas_targets.core.engine import Engine, SKIPPED_FAILED_DEPENDENCY
from atlas_targets.core.errors import TARGET_COMMAND_ERROR
from atlas_targets.core.exceptions import CycleDetectedError
from atlas_targets.core.graph import TargetGraph, TargetStatus, target
from atlas_targets.core.traceability import load_manifest


def _graph(bad_command="1 / 0"):
    return TargetGraph.from_targets(
        [
            target("a", "1"),
            target("bad", bad_command),
            target("child", "bad + 1"),
            target("grandchild", "child + 1"),
            target("zz_independent", "a + 1"),
        ]
    )


def test_fail_fast_stops_execution(dummy_ctx):
    dummy_ctx.config["engine"]["fail_fast"] = True
    result = Engine(graph=_graph(), ctx=dummy_ctx).run()

    assert list(result.targets) == ["a", "bad"]
    assert result.targets["bad"].status == TargetStatus.ERRORED
    assert not result.ok


def test_error_payload_is_structured(dummy_ctx):
    result = Engine(graph=_graph(), ctx=dummy_ctx).run()
    error = result.targets["bad"].error

    assert error["type"] == TARGET_COMMAND_ERROR
    assert error["details"] == {"target": "bad", "exc_type": "ZeroDivisionError"}
    assert error["hint"]
    assert "Traceback" not in error["message"]


def test_without_fail_fast_dependents_are_skipped(dummy_ctx):
    dummy_ctx.config["engine"]["fail_fast"] = False
    result = Engine(graph=_graph(), ctx=dummy_ctx).run()

    assert result.targets["child"].status == TargetStatus.SKIPPED
    assert result.targets["child"].summary == SKIPPED_FAILED_DEPENDENCY
    assert result.targets["grandchild"].summary == SKIPPED_FAILED_DEPENDENCY
    assert result.targets["zz_independent"].status == TargetStatus.BUILT
    assert result.counts() == {"built": 2, "skipped": 2, "errored": 1}


def test_error_is_persisted_in_store_and_manifest(dummy_ctx):
    Engine(graph=_graph(), ctx=dummy_ctx).run()

    meta = dummy_ctx.store.meta("bad")
    assert meta.status == "errored"
    assert meta.error["type"] == TARGET_COMMAND_ERROR

    manifest = load_manifest(dummy_ctx.store.manifest_path())
    assert manifest.targets["bad"]["status"] == "errored"
    assert "target_failed" in [e["event_type"] for e in manifest.events]


def test_errored_target_is_retried_next_run(new_ctx):
    Engine(graph=_graph(), ctx=new_ctx()).run()
    result = Engine(graph=_graph("2"), ctx=new_ctx()).run()

    assert result.ok
    assert "bad" in result.built
    assert new_ctx().store.read("grandchild") == 4


def test_structural_errors_are_fatal(dummy_ctx):
    graph = TargetGraph.from_targets([target("a", "b"), target("b", "a")])
    with pytest.raises(CycleDetectedError):
        Engine(graph=graph, ctx=dummy_ctx).run()
