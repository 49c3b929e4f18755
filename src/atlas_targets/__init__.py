# src/atlas_targets/__init__.py
"""
Atlas Targets — pipeline de targets com cache e integração literária.

Um target é uma unidade nomeada de computação cujo resultado é persistido.
O Atlas Targets infere dependências a partir do código de cada target,
monta um DAG e reexecuta apenas o que ficou desatualizado.

Arquitetura em alto nível:
    - core.config       → carregamento, merge e hashing de configuração
    - core.graph        → targets, analisador de dependências, grafo e planner
    - core.engine       → contexto de execução e execução incremental
    - core.traceability → Manifest e Event Log das runs
    - persistence       → ResultStore (objetos joblib + metadados JSON)
    - branching         → branches dinâmicos a partir de tabelas de parâmetros
    - literate          → preprocessador de chunks de documentos literários
    - report            → targets de relatório (renderização externa)
    - notebook_ui       → apresentação de progresso e resultados em notebooks

Limites explícitos:
    - Não faz parse nem renderização de documentos
    - Não depende de notebooks ou IDEs
"""

from ._version import __version__
from .api import load, make, manifest, outdated, progress, read
from .branching import expand_branches, split_batches
from .core.graph import Target, TargetFormat, TargetGraph, target
from .report import report_rep, report_target

__all__ = [
    "Target",
    "TargetFormat",
    "TargetGraph",
    "__version__",
    "expand_branches",
    "load",
    "make",
    "manifest",
    "outdated",
    "progress",
    "read",
    "report_rep",
    "report_target",
    "split_batches",
    "target",
]
