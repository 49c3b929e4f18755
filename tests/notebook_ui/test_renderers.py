# tests/notebook_ui/test_renderers.py
"""
Testes do adapter de notebook.

Garantias:
- saída textual sempre preenchida
- HTML escapado
- tabelas de progresso destacam o status
- resultados de run exibem cards de erro
"""

import pandas as pd

from atlas_targets.core.engine import Engine
from atlas_targets.core.graph import TargetGraph, target
from atlas_targets.notebook_ui import (
    RenderResult,
    render_error,
    render_frame,
    render_payload,
    render_run_result,
    render_table_html,
)


def test_table_escapes_html():
    out = render_table_html([{"name": "<b>x</b>", "status": "built"}])
    assert "&lt;b&gt;x&lt;/b&gt;" in out
    assert "#2e7d32" in out


def test_empty_table():
    assert "(empty)" in render_table_html([])


def test_render_frame():
    frame = pd.DataFrame({"name": ["a"], "deps": [["x", "y"]]})
    result = render_frame(frame, title="graph")
    assert isinstance(result, RenderResult)
    assert "<h4>graph</h4>" in result.html
    assert "x, y" in result.html
    assert "a" in result.text


def test_render_error_card():
    result = render_error({"type": "TARGET_COMMAND_ERROR", "message": "boom", "details": {"target": "t"}, "hint": "fix"})
    assert "TARGET_COMMAND_ERROR" in result.html
    assert result.text == "[TARGET_COMMAND_ERROR] boom\nhint: fix"


def test_render_run_result(dummy_ctx):
    dummy_ctx.config["engine"]["fail_fast"] = False
    graph = TargetGraph.from_targets([target("ok", "1"), target("bad", "1 / 0")])
    run = Engine(graph=graph, ctx=dummy_ctx).run()

    result = render_run_result(run)
    assert "run-test-001" in result.text
    assert "errored: 1" in result.text
    assert "division by zero" in result.html
    assert render_payload(run).text == result.text


def test_render_payload_fallbacks():
    assert render_payload([{"a": 1}]).html.startswith("<table>")
    plain = render_payload(42)
    assert plain.html is None
    assert plain.text == "42"


def test_render_payload_does_not_mutate_input():
    payload = [{"a": 1}]
    render_payload(payload)
    assert payload == [{"a": 1}]
