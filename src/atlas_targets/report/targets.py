"""
src/atlas_targets/report/targets.py

Targets de relatório (formato `file`).

- `report_target`: um documento renderizado uma vez.
- `report_rep`: o mesmo documento renderizado uma vez por linha de uma
  tabela de parâmetros, agrupado em batches (branches dinâmicos).

Regras:
- Dependências = referências `read`/`load` encontradas nos blocos de código
  do documento (o documento lê os targets do store durante a renderização).
- O arquivo-fonte do relatório faz parte da saída do target: editar o
  documento altera o hash dos arquivos e força nova renderização.
- O renderizador, o caminho e o diretório de saída entram em `bindings`.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from atlas_targets.branching.batches import ParamsLike, split_batches
from atlas_targets.branching.expander import branch_targets
from atlas_targets.core.graph.analyzer import analyze_command
from atlas_targets.core.graph.target import Target, TargetFormat, target
from atlas_targets.persistence.result_store import hash_files

from .renderer import PathLike, Renderer

RENDERER_BINDING = "__report_renderer__"
PATH_BINDING = "__report_path__"
OUTPUT_DIR_BINDING = "__report_output_dir__"
SOURCE_HASH_BINDING = "__report_source_hash__"

_SINGLE_COMMAND = (
    f"__report_files__ = [str(p) for p in {RENDERER_BINDING}.render({PATH_BINDING}, {OUTPUT_DIR_BINDING}, None)]\n"
    f"__report_files__ + [{PATH_BINDING}]"
)

# os parâmetros de cada linha chegam como argumentos da função gerada pelo expansor
_ROW_COMMAND = (
    "__report_params__ = dict(locals())\n"
    f"[str(p) for p in {RENDERER_BINDING}.render({PATH_BINDING}, {OUTPUT_DIR_BINDING}, __report_params__)]"
)


def report_dependencies(path: PathLike, renderer: Renderer) -> Tuple[str, ...]:
    """Targets lidos pelos blocos de código do documento (ordenados)."""
    deps: Set[str] = set()
    for block in renderer.code_blocks(path):
        deps |= set(analyze_command(block))
    return tuple(sorted(deps))


def _bindings(path: PathLike, renderer: Renderer, output_dir: Optional[PathLike]) -> Dict[str, Any]:
    source = Path(path)
    return {
        RENDERER_BINDING: renderer,
        PATH_BINDING: str(source),
        OUTPUT_DIR_BINDING: str(output_dir) if output_dir is not None else None,
        SOURCE_HASH_BINDING: hash_files([source]) if source.exists() else None,
    }


def report_target(
    name: str,
    path: PathLike,
    renderer: Renderer,
    *,
    output_dir: Optional[PathLike] = None,
    description: str = "",
) -> Target:
    """
    Target `file` que renderiza `path` uma vez.

    Saída: arquivos renderizados + caminho do documento-fonte.
    """
    return target(
        name,
        _SINGLE_COMMAND,
        format=TargetFormat.FILE,
        depends_on=report_dependencies(path, renderer),
        description=description or f"report {Path(path).name}",
        bindings=_bindings(path, renderer, output_dir),
    )


def report_rep(
    name: str,
    path: PathLike,
    renderer: Renderer,
    params: ParamsLike,
    batches: Optional[int] = None,
    *,
    output_dir: Optional[PathLike] = None,
    description: str = "",
) -> List[Target]:
    """
    Relatório parametrizado: uma renderização por linha de `params`.

    Cada linha é passada ao renderizador como dicionário de parâmetros
    (colunas → valores). Nomes de arquivos de saída distintos por linha são
    responsabilidade do renderizador (ex.: coluna `output_file`).

    Returns:
        List[Target]: `[<name>_1, ..., <name>_k, <name>]`; o target agregado
        retorna os arquivos de todos os branches + o documento-fonte.
    """
    deps = report_dependencies(path, renderer)
    extra = _bindings(path, renderer, output_dir)
    label = description or f"report {Path(path).name}"

    branches = [
        replace(
            b,
            depends_on=tuple(deps),
            bindings={**b.bindings, **extra},
        )
        for b in branch_targets(name, _ROW_COMMAND, split_batches(params, batches), format=TargetFormat.FILE, description=label)
    ]
    aggregate = target(
        name,
        "[" + ", ".join(f"*{b.name}" for b in branches) + f"] + [{PATH_BINDING}]",
        format=TargetFormat.FILE,
        depends_on=[b.name for b in branches],
        description=label,
        bindings={PATH_BINDING: extra[PATH_BINDING]},
    )
    return branches + [aggregate]
