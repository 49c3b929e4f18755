"""
Branches dinâmicos do Atlas Targets.

Componentes:
    - batches  → `ParameterBatch`, `split_batches` (fatias contíguas da tabela)
    - expander → `expand_branches` (sub-targets por batch + target agregado)
"""

from .batches import ParameterBatch, as_table, split_batches
from .expander import aggregate_target, branch_name, branch_targets, expand_branches

__all__ = [
    "ParameterBatch",
    "aggregate_target",
    "as_table",
    "branch_name",
    "branch_targets",
    "expand_branches",
    "split_batches",
]
