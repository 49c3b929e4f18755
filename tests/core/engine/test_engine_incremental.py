# tests/core/engine/test_engine_incremental.py
"""
Testes de reconstrução incremental.

Um target é reconstruído quando seu comando muda, quando o valor de um
upstream muda, quando uma função global usada por ele muda ou quando o
objeto armazenado some. `Engine.outdated` reporta o mesmo sem executar.
"""

from atlas_targets.core.engine import Engine, UP_TO_DATE
from atlas_targets.core.graph import TargetGraph, target


def _graph(clean_command="[x for x in raw if x > 1]"):
    return TargetGraph.from_targets(
        [
            target("raw", "[1, 2, 3, 4]"),
            target("clean", clean_command),
            target("total", "sum(clean)"),
            target("other", "len(raw)"),
        ]
    )


def test_changed_command_rebuilds_target_and_downstream(new_ctx):
    Engine(graph=_graph(), ctx=new_ctx()).run()
    result = Engine(graph=_graph("[x for x in raw if x > 2]"), ctx=new_ctx()).run()

    assert result.built == ["clean", "total"]
    assert result.targets["raw"].summary == UP_TO_DATE
    assert result.targets["other"].summary == UP_TO_DATE
    assert new_ctx().store.read("total") == 7


def test_same_upstream_value_keeps_downstream_up_to_date(new_ctx):
    Engine(graph=_graph(), ctx=new_ctx()).run()
    # mesmo valor, comando diferente
    result = Engine(graph=_graph("[x for x in raw if x >= 2]"), ctx=new_ctx()).run()

    assert result.built == ["clean"]
    assert result.targets["total"].summary == UP_TO_DATE


def test_global_function_change_rebuilds(new_ctx):
    def scale_v1(x):
        return x * 2

    def scale_v2(x):
        return x * 3

    graph = TargetGraph.from_targets([target("scaled", "scale(5)")])
    Engine(graph=graph, ctx=new_ctx(env={"scale": scale_v1})).run()

    same = Engine(graph=graph, ctx=new_ctx(env={"scale": scale_v1})).run()
    assert same.built == []

    changed = Engine(graph=graph, ctx=new_ctx(env={"scale": scale_v2})).run()
    assert changed.built == ["scaled"]
    assert new_ctx().store.read("scaled") == 15


def test_missing_object_rebuilds(new_ctx):
    Engine(graph=_graph(), ctx=new_ctx()).run()
    new_ctx().store.object_path("total").unlink()

    result = Engine(graph=_graph(), ctx=new_ctx()).run()
    assert result.built == ["total"]


def test_outdated_reports_without_running(new_ctx):
    ctx = new_ctx()
    engine = Engine(graph=_graph(), ctx=ctx)
    assert engine.outdated() == ["raw", "clean", "other", "total"]
    assert ctx.store.names() == []

    engine.run()
    assert Engine(graph=_graph(), ctx=new_ctx()).outdated() == []

    changed = Engine(graph=_graph("[x for x in raw if x > 2]"), ctx=new_ctx())
    assert changed.outdated() == ["clean", "total"]
    assert changed.outdated(names=["other"]) == []
