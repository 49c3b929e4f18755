# src/atlas_targets/literate/chunks.py
"""
Modelo de chunk de documento literário.

O preprocessador não faz parse de documentos: recebe chunks já extraídos
(código + opções) pelo renderizador externo. Este módulo normaliza as
opções reconhecidas:

    - tar_globals     → chunk global (funções/objetos compartilhados)
    - tar_interactive → força modo interativo/não interativo no chunk
    - tar_simple      → o código do chunk é o comando de um único target
    - tar_name/label  → nome do chunk (e do target, no modo simples)
    - tar_script      → caminho do script do pipeline escrito por este chunk
    - tar_stand_in    → chunk global apenas interativo (valores substitutos)

Opções desconhecidas são preservadas em `options` e ignoradas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from atlas_targets.core.exceptions import InvalidChunkError

CHUNK_OPTIONS = (
    "tar_globals",
    "tar_interactive",
    "tar_simple",
    "tar_name",
    "label",
    "tar_script",
    "tar_stand_in",
)


class ChunkMode(str, Enum):
    GLOBAL = "global"
    TARGET = "target"


def _flag(options: Mapping[str, Any], key: str, default: Optional[bool] = False) -> Optional[bool]:
    if key not in options or options[key] is None:
        return default
    value = options[key]
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    if isinstance(value, (bool, int)):
        return bool(value)
    raise InvalidChunkError(
        f"chunk option {key} must be a boolean, got {value!r}",
        details={"option": key, "value": str(value)},
    )


@dataclass(frozen=True)
class DocumentChunk:
    """
    Chunk de código extraído de um documento literário.

    Campos:
        - name: nome do chunk (arquivo de script e, no modo simples, target)
        - code: código Python do chunk
        - mode: `ChunkMode.GLOBAL` ou `ChunkMode.TARGET`
        - interactive: `None` usa o padrão do documento
        - simple: chunk de target único (código = comando)
        - script_path: caminho do script do pipeline (padrão: `literate.pipeline_script`)
        - stand_in: chunk global executado apenas no modo interativo
    """

    name: str
    code: str
    mode: ChunkMode = ChunkMode.TARGET
    interactive: Optional[bool] = None
    simple: bool = False
    script_path: Optional[str] = None
    stand_in: bool = False
    options: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidChunkError(
                "chunk must have a name",
                hint="Informe tar_name (ou o label do chunk).",
            )
        if any(sep in self.name for sep in ("/", "\\")):
            raise InvalidChunkError(
                f"chunk name cannot contain path separators: {self.name!r}",
                details={"name": self.name},
            )
        if self.simple and self.mode == ChunkMode.GLOBAL:
            raise InvalidChunkError(
                f"chunk '{self.name}' cannot be both global and simple",
                details={"name": self.name},
            )
        if self.stand_in and self.mode != ChunkMode.GLOBAL:
            raise InvalidChunkError(
                f"stand-in chunk '{self.name}' must be a global chunk",
                details={"name": self.name},
                hint="Use tar_globals=True junto com tar_stand_in=True.",
            )

    @property
    def is_global(self) -> bool:
        return self.mode == ChunkMode.GLOBAL

    @classmethod
    def from_options(cls, code: Union[str, Sequence[str]], options: Mapping[str, Any]) -> "DocumentChunk":
        """Cria o chunk a partir do código e das opções do renderizador."""
        text = code if isinstance(code, str) else "\n".join(code)
        opts = dict(options or {})
        name = opts.get("tar_name") or opts.get("label")
        is_global = bool(_flag(opts, "tar_globals"))
        script = opts.get("tar_script")
        return cls(
            name=str(name) if name is not None else "",
            code=text,
            mode=ChunkMode.GLOBAL if is_global else ChunkMode.TARGET,
            interactive=_flag(opts, "tar_interactive", default=None),
            simple=bool(_flag(opts, "tar_simple")),
            script_path=str(script) if script else None,
            stand_in=bool(_flag(opts, "tar_stand_in")),
            options=opts,
        )
