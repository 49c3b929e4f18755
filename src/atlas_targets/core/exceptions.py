"""
Atlas Targets — Canonical Exceptions (v1)

Exceções tipadas levantadas pelo grafo, pelo Engine, pelo preprocessador
literário e pelo expansor de branches.

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Erros estruturais (grafo inválido, chunk inválido) são fatais e propagam.
- Erros dentro de comandos de targets são convertidos em `ErrorPayload`
  pelo Engine e nunca escapam de `Engine.run`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .errors import ErrorPayload


class AtlasTargetsException(Exception):
    """Base class para exceções internas do Atlas Targets.

    Importante:
    - Mensagem curta e humana
    - Dados estruturados em `details`
    """

    code: str = "ATLAS_TARGETS_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.hint = hint

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> ErrorPayload:
        return ErrorPayload(
            type=self.code,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
        )


# ---------------------------------------------------------------------------
# Definição de targets / grafo
# ---------------------------------------------------------------------------

class InvalidTargetError(AtlasTargetsException, ValueError):
    """Definição de target inválida (nome, formato ou comando)."""

    code = "TARGET_INVALID"


class DuplicateTargetNameError(AtlasTargetsException, ValueError):
    """Dois targets com o mesmo nome no mesmo grafo."""

    code = "GRAPH_DUPLICATE_TARGET"


class UnknownDependencyError(AtlasTargetsException, ValueError):
    """Target depende explicitamente de um nome inexistente no grafo."""

    code = "GRAPH_UNKNOWN_DEPENDENCY"


class CycleDetectedError(AtlasTargetsException, ValueError):
    """As dependências do grafo formam um ciclo."""

    code = "GRAPH_CYCLE"


class CommandSyntaxError(AtlasTargetsException, ValueError):
    """O texto do comando não é Python válido."""

    code = "TARGET_COMMAND_SYNTAX"


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class TargetNotFoundError(AtlasTargetsException, KeyError):
    """Leitura de um target que nunca foi construído com sucesso."""

    code = "TARGET_NOT_FOUND"


class MissingOutputFileError(AtlasTargetsException):
    """Target de formato `file` retornou caminhos inexistentes."""

    code = "TARGET_FILE_MISSING"


# ---------------------------------------------------------------------------
# Branching
# ---------------------------------------------------------------------------

class InvalidBatchesError(AtlasTargetsException, ValueError):
    """Número de batches ou tabela de parâmetros inválidos."""

    code = "BRANCH_INVALID_BATCHES"


# ---------------------------------------------------------------------------
# Documento literário
# ---------------------------------------------------------------------------

class DuplicateChunkNameError(AtlasTargetsException, ValueError):
    """Dois chunks com o mesmo nome na mesma renderização."""

    code = "CHUNK_DUPLICATE_NAME"


class InvalidChunkError(AtlasTargetsException, ValueError):
    """Chunk com opções inconsistentes ou sem definição de target."""

    code = "CHUNK_INVALID"


class MissingInteractiveDependencyError(AtlasTargetsException, LookupError):
    """Target avaliado interativamente depende de um valor indisponível."""

    code = "CHUNK_MISSING_DEPENDENCY"
