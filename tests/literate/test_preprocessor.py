# tests/literate/test_preprocessor.py
"""
Testes do preprocessador literário.

Os testes asseguram que:
- chunks globais sempre executam no ambiente compartilhado
- no modo não interativo, cada chunk gera um script e o script do
  pipeline é (re)escrito
- no modo interativo, targets são avaliados e vinculados ao ambiente
- stand-ins só executam no modo interativo e nunca são escritos
- dependências indisponíveis no modo interativo falham com dica
- nomes de chunk repetidos em uma passada são inválidos
"""

from pathlib import Path

import pytest

from atlas_targets.core.exceptions import DuplicateChunkNameError, MissingInteractiveDependencyError
from atlas_targets.core.graph import TargetFormat
from atlas_targets.literate import DocumentChunk, LiterateEngine, LiterateState


def _chunk(code, **options):
    return DocumentChunk.from_options(code, options)


GLOBALS = _chunk("def double(x):\n    return x * 2", label="functions", tar_globals=True)
TARGETS = _chunk(
    "[target('raw', '[1, 2, 3]'), target('doubled', '[double(x) for x in raw]')]",
    label="pipeline_targets",
)
SIMPLE = _chunk("sum(doubled)", label="total", tar_simple=True)


@pytest.fixture
def engine(tmp_path, dummy_config):
    return LiterateEngine(dummy_config, {}, interactive_default=False, root=tmp_path)


def test_non_interactive_writes_scripts(tmp_path: Path, engine):
    results = engine.process_all([GLOBALS, TARGETS, SIMPLE])

    assert [r.state for r in results] == [LiterateState.NON_INTERACTIVE] * 3
    assert (tmp_path / "_targets_py" / "globals" / "functions.py").exists()
    assert (tmp_path / "_targets_py" / "targets" / "pipeline_targets.py").exists()
    assert (tmp_path / "_targets_py" / "targets" / "total.py").exists()
    assert (tmp_path / "_targets.py").exists()

    assert results[1].targets == ("raw", "doubled")
    assert results[2].targets == ("total",)
    assert "double" in engine.env
    assert "raw" not in engine.env


def test_global_chunks_always_execute(engine):
    engine.process(GLOBALS)
    assert engine.env["double"](4) == 8


def test_interactive_binds_values(tmp_path, dummy_config):
    env = {}
    engine = LiterateEngine(dummy_config, env, interactive_default=True, root=tmp_path)
    engine.process_all([GLOBALS, TARGETS, SIMPLE])

    assert env["raw"] == [1, 2, 3]
    assert env["doubled"] == [2, 4, 6]
    assert env["total"] == 12
    assert engine.graph.names() == ["raw", "doubled", "total"]
    assert not (tmp_path / "_targets_py").exists()


def test_interactive_order_follows_dependencies(tmp_path, dummy_config):
    chunk = _chunk("[target('b', 'a + 1'), target('a', '1')]", label="reversed")
    engine = LiterateEngine(dummy_config, {}, interactive_default=True, root=tmp_path)
    engine.process(chunk)
    assert engine.env["b"] == 2


def test_interactive_redefinition_supersedes(tmp_path, dummy_config):
    engine = LiterateEngine(dummy_config, {}, interactive_default=True, root=tmp_path)
    engine.process(_chunk("10", label="x", tar_simple=True))
    engine.process(_chunk("20", label="x", tar_simple=True))

    assert engine.env["x"] == 20
    assert engine.graph.names() == ["x"]


def test_chunk_option_overrides_document_default(engine):
    result = engine.process(_chunk("5", label="five", tar_simple=True, tar_interactive=True))
    assert result.state == LiterateState.INTERACTIVE
    assert engine.env["five"] == 5


def test_missing_interactive_dependency(tmp_path, dummy_config):
    engine = LiterateEngine(dummy_config, {}, interactive_default=True, root=tmp_path)
    engine.process(_chunk("[target('up', '1')]", label="up_chunk", tar_interactive=False))

    with pytest.raises(MissingInteractiveDependencyError) as exc:
        engine.process(_chunk("read('up') + 1", label="down", tar_simple=True))
    assert exc.value.details["missing"] == ["up"]
    assert "tar_stand_in" in exc.value.hint


def test_stand_in_satisfies_interactive_dependency(tmp_path, dummy_config):
    engine = LiterateEngine(dummy_config, {}, interactive_default=True, root=tmp_path)
    engine.process(_chunk("up = 41", label="fake_up", tar_globals=True, tar_stand_in=True))
    engine.process(_chunk("read('up') + 1", label="down", tar_simple=True))
    assert engine.env["down"] == 42


def test_stand_in_is_skipped_and_never_written(tmp_path, engine):
    result = engine.process(_chunk("up = 41", label="fake_up", tar_globals=True, tar_stand_in=True))
    assert not result.executed
    assert "up" not in engine.env
    assert not (tmp_path / "_targets_py").exists()


def test_interactive_falls_back_to_store(tmp_path, dummy_config, store):
    store.save("up", 5, fmt=TargetFormat.VALUE, definition_hash="d")
    engine = LiterateEngine(dummy_config, {}, interactive_default=True, root=tmp_path, store=store)
    engine.process(_chunk("up * 2", label="down", tar_simple=True))
    assert engine.env["down"] == 10


def test_duplicate_chunk_names_in_one_pass(engine):
    with pytest.raises(DuplicateChunkNameError):
        engine.process_all([_chunk("1", label="dup", tar_simple=True), _chunk("2", label="dup", tar_simple=True)])


def test_new_pass_allows_same_names(engine):
    engine.process_all([SIMPLE])
    engine.process_all([SIMPLE])


def test_switching_chunk_kind_removes_stale_script(tmp_path, engine):
    engine.process_all([_chunk("1", label="thing", tar_simple=True)])
    engine.process_all([_chunk("thing_helper = 1", label="thing", tar_globals=True)])

    assert (tmp_path / "_targets_py" / "globals" / "thing.py").exists()
    assert not (tmp_path / "_targets_py" / "targets" / "thing.py").exists()
