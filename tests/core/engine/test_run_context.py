# tests/core/engine/test_run_context.py
"""
Testes do RunContext (cache de valores e log estruturado).
"""

import pytest

from atlas_targets.core.engine.context import RunContext
from atlas_targets.core.exceptions import TargetNotFoundError
from atlas_targets.core.graph import TargetFormat


def test_create_uses_config_store_path(tmp_path):
    ctx = RunContext.create(config={"store": {"path": str(tmp_path / "s")}})
    assert ctx.store.root == tmp_path / "s"
    assert len(ctx.run_id) == 32
    assert ctx.created_at.tzinfo is not None


def test_get_value_falls_back_to_store(dummy_ctx):
    dummy_ctx.store.save("x", [1, 2], fmt=TargetFormat.VALUE, definition_hash="h")
    assert not dummy_ctx.has_value("x")
    assert dummy_ctx.get_value("x") == [1, 2]
    assert dummy_ctx.has_value("x")


def test_get_value_unknown_raises(dummy_ctx):
    with pytest.raises(TargetNotFoundError):
        dummy_ctx.get_value("never_built")


def test_log_respects_level(dummy_ctx):
    dummy_ctx.config["engine"]["log_level"] = "WARNING"
    dummy_ctx.log(target="a", level="INFO", message="dropped")
    dummy_ctx.log(target="a", level="ERROR", message="kept", code=7)

    assert len(dummy_ctx.events) == 1
    event = dummy_ctx.events[0]
    assert event["message"] == "kept"
    assert event["level"] == "ERROR"
    assert event["code"] == 7
    assert event["run_id"] == "run-test-001"
    assert "timestamp" in event


def test_warnings_are_grouped_by_target(dummy_ctx):
    dummy_ctx.add_warning(target="a", message="w1")
    dummy_ctx.add_warning(target="a", message="w2")
    assert dummy_ctx.warnings == {"a": ["w1", "w2"]}
