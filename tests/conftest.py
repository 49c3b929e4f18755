# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas Targets.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas (YAML e dict resolvido)
- um ResultStore isolado em `tmp_path`
- contexto de execução controlado (RunContext)
- um renderizador fake para targets de relatório

Decisões arquiteturais:
    - Imports do pacote são realizados de forma lazy para melhorar a
      clareza de erros durante falhas
    - Todo I/O acontece dentro de `tmp_path`

Invariantes:
    - Nenhuma fixture executa pipeline real
    - Todas as fixtures são seguras para execução em paralelo
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao uso real do projeto.

    Returns:
        str: Conteúdo YAML representando configuração padrão (defaults).
    """
    return """\
engine:
  fail_fast: true
  workers: 1
  log_level: INFO
targets:
  raw:
    enabled: true
  model:
    enabled: true
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de overrides locais (apenas o que muda)."""
    return """\
engine:
  log_level: DEBUG
targets:
  model:
    enabled: false
"""


@pytest.fixture
def dummy_config(tmp_path: Path) -> dict:
    """
    Configuração mínima, já resolvida, com store isolado em `tmp_path`.

    Invariantes:
        - `fail_fast` explicitamente habilitado
        - execução sequencial (`workers=1`)
    """
    return {
        "engine": {"fail_fast": True, "workers": 1, "log_level": "DEBUG"},
        "store": {"path": str(tmp_path / "store")},
        "literate": {"script_dir": "_targets_py", "pipeline_script": "_targets.py"},
        "targets": {},
    }


# =====================================================
# Store / RunContext fixtures
# =====================================================

@pytest.fixture
def store(dummy_config):
    from atlas_targets.persistence.result_store import ResultStore

    return ResultStore(path=dummy_config["store"]["path"])


@pytest.fixture
def dummy_ctx(dummy_config, store):
    """
    RunContext determinístico para testes do Engine.

    `run_id` e `created_at` são fixos; o ambiente global começa vazio.
    """
    from atlas_targets.core.engine.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        store=store,
        meta={"source": "pytest"},
    )


@pytest.fixture
def new_ctx(dummy_config, store):
    """Factory de RunContext (uma run nova por chamada, mesmo store)."""
    from atlas_targets.core.engine.context import RunContext

    counter = {"n": 0}

    def _make(env=None, config=None):
        counter["n"] += 1
        return RunContext(
            run_id=f"run-test-{counter['n']:03d}",
            created_at=datetime(2026, 1, 16, 0, 0, counter["n"], tzinfo=timezone.utc),
            config=config or dummy_config,
            store=store,
            env=env if env is not None else {},
        )

    return _make


# =====================================================
# Report fixtures
# =====================================================

@pytest.fixture
def FakeRenderer():
    """
    Fixture factory de um renderizador duck-typed.

    `code_blocks` retorna os blocos informados; `render` escreve um arquivo
    `.html` por chamada em `output_dir` e registra os parâmetros recebidos.
    """

    class _FakeRenderer:
        def __init__(self, blocks=None):
            self.blocks = list(blocks or [])
            self.calls = []

        def code_blocks(self, path):
            return list(self.blocks)

        def render(self, path, output_dir, params):
            self.calls.append(dict(params or {}))
            out_dir = Path(output_dir) if output_dir else Path(path).parent
            out_dir.mkdir(parents=True, exist_ok=True)
            suffix = "_".join(str(v) for v in (params or {}).values())
            out = out_dir / f"{Path(path).stem}{'_' + suffix if suffix else ''}.html"
            out.write_text(f"<p>{params}</p>", encoding="utf-8")
            return [out]

    return _FakeRenderer
