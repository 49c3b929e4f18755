# tests/report/test_report_targets.py
"""
Testes de targets de relatório.

Os testes asseguram que:
- dependências vêm das chamadas `read`/`load` nos blocos do documento
- o target é de formato `file` e inclui o documento-fonte na saída
- editar o documento força nova renderização
- `report_rep` renderiza uma vez por linha, agrupado em batches
"""

from pathlib import Path

import pandas as pd

from atlas_targets.core.engine import Engine, UP_TO_DATE
from atlas_targets.core.graph import TargetFormat, TargetGraph, target
from atlas_targets.report import Renderer, report_dependencies, report_rep, report_target


def _document(tmp_path: Path) -> Path:
    doc = tmp_path / "analysis.qmd"
    doc.write_text("# Analysis\n", encoding="utf-8")
    return doc


def test_fake_renderer_satisfies_protocol(FakeRenderer):
    assert isinstance(FakeRenderer(), Renderer)


def test_dependencies_from_code_blocks(tmp_path, FakeRenderer):
    renderer = FakeRenderer(["x = read('summary')", "load(['fit', 'data'])\nread_raw(name)"])
    assert report_dependencies(_document(tmp_path), renderer) == ("data", "fit", "summary")


def test_report_target_definition(tmp_path, FakeRenderer):
    t = report_target("report", _document(tmp_path), FakeRenderer(["read('summary')"]))
    assert t.format == TargetFormat.FILE
    assert t.depends_on == ("summary",)


def test_report_target_renders_and_tracks_source(tmp_path, FakeRenderer, new_ctx):
    doc = _document(tmp_path)
    out = tmp_path / "out"
    renderer = FakeRenderer(["read('summary')"])

    def graph():
        return TargetGraph.from_targets(
            [target("summary", "42"), report_target("report", doc, renderer, output_dir=out)]
        )

    first = Engine(graph=graph(), ctx=new_ctx()).run()
    assert first.built == ["summary", "report"]
    assert new_ctx().store.read("report") == [str(out / "analysis.html"), str(doc)]

    second = Engine(graph=graph(), ctx=new_ctx()).run()
    assert second.targets["report"].summary == UP_TO_DATE

    doc.write_text("# Analysis v2\n", encoding="utf-8")
    third = Engine(graph=graph(), ctx=new_ctx()).run()
    assert third.built == ["report"]
    assert len(renderer.calls) == 2


def test_report_rep_renders_once_per_row(tmp_path, FakeRenderer, dummy_ctx):
    doc = _document(tmp_path)
    renderer = FakeRenderer()
    params = pd.DataFrame({"region": ["north", "south", "east"]})

    targets = report_rep("regional", doc, renderer, params, batches=2, output_dir=tmp_path / "out")
    assert [t.name for t in targets] == ["regional_1", "regional_2", "regional"]

    result = Engine(graph=TargetGraph.from_targets(targets), ctx=dummy_ctx).run()

    assert result.ok
    assert renderer.calls == [{"region": "north"}, {"region": "south"}, {"region": "east"}]
    files = dummy_ctx.store.read("regional")
    assert files[-1] == str(doc)
    assert [Path(f).name for f in files[:-1]] == [
        "analysis_north.html",
        "analysis_south.html",
        "analysis_east.html",
    ]
