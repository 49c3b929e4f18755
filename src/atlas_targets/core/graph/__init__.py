"""
Grafo de targets do Atlas Targets.

Componentes:
    - target   → `Target`, `TargetFormat`, `TargetStatus`, `TargetResult`
    - analyzer → inferência estática de dependências a partir do comando
    - store    → `TargetGraph` (unicidade de nomes, resolução de deps)
    - planner  → ordem topológica determinística

Invariantes:
    - Nomes de targets são únicos em todo o grafo
    - As dependências formam um DAG; caso contrário o grafo é inválido
"""

from .analyzer import analyze_command, free_names
from .planner import plan_execution
from .store import TargetGraph
from .target import Target, TargetFormat, TargetResult, TargetStatus, target

__all__ = [
    "Target",
    "TargetFormat",
    "TargetGraph",
    "TargetResult",
    "TargetStatus",
    "analyze_command",
    "free_names",
    "plan_execution",
    "target",
]
