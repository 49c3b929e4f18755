"""
src/atlas_targets/report/renderer.py

Contrato do renderizador de documentos usado por targets de relatório.

O Atlas Targets não faz parse nem renderização de documentos: ambos ficam
com o renderizador externo (ex.: um adaptador para Quarto, Jupyter ou
Markdown). O renderizador precisa apenas:

- `code_blocks(path)` → blocos de código Python do documento, usados para
  inferir de quais targets o relatório depende (`read("x")`/`load("x")`);
- `render(path, output_dir, params)` → renderiza o documento e retorna os
  caminhos dos arquivos gerados.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

PathLike = Union[str, Path]


@runtime_checkable
class Renderer(Protocol):
    def code_blocks(self, path: PathLike) -> List[str]:
        ...

    def render(
        self,
        path: PathLike,
        output_dir: Optional[PathLike],
        params: Optional[Mapping[str, Any]],
    ) -> Sequence[PathLike]:
        ...
