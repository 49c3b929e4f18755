# src/atlas_targets/core/engine/__init__.py
"""
Engine do Atlas Targets.

Este pacote contém a implementação responsável por **planejar** e
**executar** incrementalmente o grafo de targets.

Componentes principais:
    - context    → `RunContext` (config, store, ambiente global, log)
    - evaluation → avaliação de comandos (última expressão é o valor)
    - engine     → `Engine` (decisão de atualização, execução, Manifest)

Invariantes:
    - Targets só são executados após suas dependências
    - Cada target é executado no máximo uma vez por run
    - Targets atualizados não são reexecutados
"""

from .context import LOG_LEVELS, RunContext
from .engine import (
    SKIPPED_BY_CONFIG,
    SKIPPED_FAILED_DEPENDENCY,
    UP_TO_DATE,
    Engine,
    RunResult,
    fingerprint,
)
from .evaluation import evaluate_command

__all__ = [
    "LOG_LEVELS",
    "SKIPPED_BY_CONFIG",
    "SKIPPED_FAILED_DEPENDENCY",
    "UP_TO_DATE",
    "Engine",
    "RunContext",
    "RunResult",
    "evaluate_command",
    "fingerprint",
]
