# src/atlas_targets/branching/batches.py
"""
Divisão de uma tabela de parâmetros em batches contíguos.

Regras (v1):
- Cada batch tem `ceil(linhas / batches)` linhas (o último pode ter menos).
- A ordem original da tabela é preservada; nenhuma linha é reembaralhada.
- `batches=None` → um batch por linha.
- `batches` maior que o número de linhas é limitado ao número de linhas.
- `batches < 1` ou tabela vazia são inválidos.

Como o tamanho do batch é fixo em `ceil(linhas / batches)`, o número efetivo
de batches pode ser menor que o pedido (ex.: 10 linhas, 4 batches → 3 batches
de 4, 4 e 2 linhas).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Union

import pandas as pd

from atlas_targets.core.exceptions import InvalidBatchesError

ParamsLike = Union[pd.DataFrame, Sequence[Mapping[str, Any]], Mapping[str, Sequence[Any]]]


@dataclass(frozen=True)
class ParameterBatch:
    """Fatia contígua da tabela de parâmetros (índice original resetado)."""

    index: int
    rows: pd.DataFrame

    def __len__(self) -> int:
        return len(self.rows)

    def records(self) -> List[dict]:
        return self.rows.to_dict(orient="records")


def as_table(params: ParamsLike) -> pd.DataFrame:
    """Normaliza DataFrame, lista de mapeamentos ou mapeamento de colunas."""
    if isinstance(params, pd.DataFrame):
        return params.reset_index(drop=True)
    if isinstance(params, Mapping):
        try:
            return pd.DataFrame(dict(params))
        except ValueError as e:
            raise InvalidBatchesError(
                f"invalid parameter columns: {e}",
                details={"received": type(params).__name__, "columns": [str(k) for k in params]},
                hint="Num dict de colunas, cada valor deve ser uma lista de mesmo tamanho.",
            ) from e
    if isinstance(params, Sequence) and not isinstance(params, (str, bytes)):
        if not all(isinstance(row, Mapping) for row in params):
            raise InvalidBatchesError(
                "parameter rows must be mappings",
                details={"received": type(params).__name__},
            )
        return pd.DataFrame([dict(row) for row in params])
    raise InvalidBatchesError(
        f"unsupported parameter table type: {type(params).__name__}",
        details={"received": type(params).__name__},
        hint="Use um pandas.DataFrame, uma lista de dicts ou um dict de colunas.",
    )


def split_batches(params: ParamsLike, batches: Optional[int] = None) -> List[ParameterBatch]:
    """
    Divide `params` em batches contíguos de `ceil(linhas / batches)` linhas.

    Raises:
        InvalidBatchesError: tabela vazia, `batches < 1` ou tipo não suportado.
    """
    table = as_table(params)
    n_rows = len(table)

    if n_rows == 0:
        raise InvalidBatchesError(
            "parameter table is empty",
            details={"rows": 0},
            hint="Informe ao menos uma linha de parâmetros.",
        )

    if batches is None:
        batches = n_rows
    if isinstance(batches, bool) or not isinstance(batches, int) or batches < 1:
        raise InvalidBatchesError(
            f"batches must be a positive integer, got {batches!r}",
            details={"batches": batches},
        )

    size = math.ceil(n_rows / min(batches, n_rows))
    out: List[ParameterBatch] = []
    for i, start in enumerate(range(0, n_rows, size)):
        rows = table.iloc[start:start + size].reset_index(drop=True)
        out.append(ParameterBatch(index=i, rows=rows))
    return out
