"""
Atlas Targets — Canonical Error Structures (v1)

Erros de execução de targets são artefatos persistidos: aparecem no
`TargetResult`, nos metadados do ResultStore e no Manifest da run.
Por isso devem ser:

- explícitos
- serializáveis
- acionáveis (campo `hint`)

Nenhum stack trace cru é exposto no payload.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao usuário
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Grafo
GRAPH_DUPLICATE_TARGET = "GRAPH_DUPLICATE_TARGET"
GRAPH_UNKNOWN_DEPENDENCY = "GRAPH_UNKNOWN_DEPENDENCY"
GRAPH_CYCLE = "GRAPH_CYCLE"

# Targets
TARGET_COMMAND_ERROR = "TARGET_COMMAND_ERROR"
TARGET_FILE_MISSING = "TARGET_FILE_MISSING"
TARGET_NOT_FOUND = "TARGET_NOT_FOUND"

# Documento literário
CHUNK_MISSING_DEPENDENCY = "CHUNK_MISSING_DEPENDENCY"

# Engine
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def target_command_error(
    *,
    target: str,
    exc_type: str,
    exc_message: str,
    hint: str = "Corrija o comando do target (ou seus dados de entrada) e rode make novamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=TARGET_COMMAND_ERROR,
        message=exc_message or "Falha ao executar o comando do target",
        details={
            "target": target,
            "exc_type": exc_type,
        },
        hint=hint,
    )


def target_file_missing(
    *,
    target: str,
    missing_paths: List[str],
    hint: str = "Targets de formato 'file' devem retornar caminhos de arquivos existentes.",
) -> ErrorPayload:
    return ErrorPayload(
        type=TARGET_FILE_MISSING,
        message="Arquivo declarado pelo target não existe",
        details={
            "target": target,
            "missing_paths": list(missing_paths),
        },
        hint=hint,
    )


def chunk_missing_dependency(
    *,
    target: str,
    missing: List[str],
    hint: str = (
        "Defina um valor substituto em um chunk global com tar_stand_in=True "
        "ou construa o pipeline com make() antes de avaliar o chunk."
    ),
) -> ErrorPayload:
    return ErrorPayload(
        type=CHUNK_MISSING_DEPENDENCY,
        message="Dependência indisponível no modo interativo",
        details={
            "target": target,
            "missing": list(missing),
        },
        hint=hint,
    )


def engine_execution_error(
    *,
    target: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o log de eventos da run. Nenhum fallback é aplicado automaticamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a execução do pipeline",
        details={
            "target": target,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )
