# src/atlas_targets/branching/expander.py
"""
Expansão de branches dinâmicos a partir de uma tabela de parâmetros.

`expand_branches("fit", command, params, batches=3)` produz:
    - `fit_1`, `fit_2`, `fit_3` → um sub-target por batch; cada um avalia
      `command` uma vez por linha do batch, com as colunas da linha
      vinculadas como variáveis, e retorna a lista de saídas por linha;
    - `fit` → target agregado que depende de todos os branches e concatena
      suas saídas na ordem dos batches.

O comando do sub-target é gerado como texto: o comando original vira o corpo
de uma função cujos parâmetros são as colunas da tabela. Assim o analisador
de dependências enxerga as referências do comando original, e as colunas
(argumentos da função) nunca são confundidas com targets.

As linhas do batch entram em `Target.bindings`: mudar a tabela muda o hash
de definição do sub-target e força sua reconstrução.
"""

from __future__ import annotations

import ast
import keyword
import textwrap
from typing import List, Optional, Union

from atlas_targets.core.exceptions import InvalidBatchesError
from atlas_targets.core.graph.analyzer import parse_command
from atlas_targets.core.graph.target import Target, TargetFormat, target

from .batches import ParamsLike, ParameterBatch, as_table, split_batches

ROWS_BINDING = "__branch_rows__"
ROW_FUNCTION = "__branch_row__"


def branch_name(name: str, index: int) -> str:
    """Nome do sub-target (1-based): `branch_name("fit", 0) == "fit_1"`."""
    return f"{name}_{index + 1}"


def _row_function_source(command: str, columns: List[str], *, name: str) -> str:
    tree = parse_command(command, name=name)
    body = list(tree.body)
    if body and isinstance(body[-1], ast.Expr):
        body[-1] = ast.Return(value=body[-1].value)
    else:
        body.append(ast.Return(value=ast.Constant(value=None)))

    module = ast.fix_missing_locations(ast.Module(body=body, type_ignores=[]))
    params = ", ".join(columns)
    return f"def {ROW_FUNCTION}({params}):\n" + textwrap.indent(ast.unparse(module), "    ")


def _branch_command(command: str, columns: List[str], fmt: TargetFormat, *, name: str) -> str:
    collect = (
        "__branch_outputs__.extend(__branch_value__ if isinstance(__branch_value__, (list, tuple)) else [__branch_value__])"
        if fmt == TargetFormat.FILE
        else "__branch_outputs__.append(__branch_value__)"
    )
    return "\n".join(
        [
            _row_function_source(command, columns, name=name),
            "__branch_outputs__ = []",
            f"for __branch_kwargs__ in {ROWS_BINDING}:",
            f"    __branch_value__ = {ROW_FUNCTION}(**__branch_kwargs__)",
            f"    {collect}",
            "__branch_outputs__",
        ]
    )


def _validate_columns(columns: List[str]) -> None:
    bad = [c for c in columns if not (isinstance(c, str) and c.isidentifier() and not keyword.iskeyword(c))]
    if bad:
        raise InvalidBatchesError(
            "parameter columns must be valid Python identifiers",
            details={"columns": [str(c) for c in bad]},
            hint="Renomeie as colunas da tabela de parâmetros (ex.: 'learning_rate').",
        )


def branch_targets(
    name: str,
    command: str,
    batches: List[ParameterBatch],
    *,
    format: Union[str, TargetFormat] = TargetFormat.VALUE,
    description: str = "",
) -> List[Target]:
    """Sub-targets `<name>_<i>` para batches já divididos."""
    fmt = TargetFormat(format)
    out: List[Target] = []
    for batch in batches:
        columns = [str(c) for c in batch.rows.columns]
        _validate_columns(columns)
        sub = branch_name(name, batch.index)
        out.append(
            target(
                sub,
                _branch_command(command, columns, fmt, name=sub),
                format=fmt,
                bindings={ROWS_BINDING: batch.records()},
                description=description or f"branch {batch.index + 1} of {name}",
            )
        )
    return out


def aggregate_target(
    name: str,
    branches: List[Target],
    *,
    format: Union[str, TargetFormat] = TargetFormat.VALUE,
    description: str = "",
) -> Target:
    """Target que concatena as saídas dos branches na ordem dos batches."""
    command = "[" + ", ".join(f"*{b.name}" for b in branches) + "]"
    return target(
        name,
        command,
        format=format,
        depends_on=[b.name for b in branches],
        description=description or f"aggregate of {len(branches)} branches",
    )


def expand_branches(
    name: str,
    command: str,
    params: ParamsLike,
    batches: Optional[int] = None,
    *,
    format: Union[str, TargetFormat] = TargetFormat.VALUE,
    description: str = "",
) -> List[Target]:
    """
    Expande `command` sobre `params` em sub-targets + target agregado.

    Returns:
        List[Target]: `[<name>_1, ..., <name>_k, <name>]`.

    Raises:
        InvalidBatchesError: tabela vazia, `batches < 1` ou colunas inválidas.
        CommandSyntaxError: comando inválido.
    """
    table = as_table(params)
    parts = split_batches(table, batches)
    branches = branch_targets(name, command, parts, format=format, description=description)
    return branches + [aggregate_target(name, branches, format=format, description=description)]
