"""
Tipos canônicos do grafo de targets.

Este módulo define o modelo de dados central do Atlas Targets:
    - TargetFormat → formato de armazenamento (valor genérico ou arquivo)
    - TargetStatus → estado final de um target em uma run
    - Target       → definição imutável de um target
    - TargetResult → resultado imutável da execução de um target

Um target é identificado exclusivamente por `name`. O nome precisa ser um
identificador Python válido porque, durante a avaliação de comandos, os
valores dos targets upstream são vinculados a variáveis com esse nome.

Ciclo de vida:
    - declarado em uma definição de pipeline (script ou chunk)
    - instanciado uma vez por construção do grafo
    - substituído apenas por redefinição explícita (`TargetGraph.supersede`)

Invariantes:
    - `Target` e `TargetResult` são imutáveis (frozen)
    - `deps` é sempre ordenado e sem duplicatas
    - Valores de enums são strings estáveis (serialização em JSON)
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from atlas_targets.core.exceptions import InvalidTargetError


class TargetFormat(str, Enum):
    """
    Formato de armazenamento do valor de um target.

    - VALUE: objeto Python genérico, persistido com joblib
    - FILE: o comando retorna um caminho (ou lista de caminhos); o Engine
      rastreia o conteúdo dos arquivos, não apenas o valor retornado
    """

    VALUE = "value"
    FILE = "file"


class TargetStatus(str, Enum):
    """
    Estados finais de um target em uma run.

    - BUILT: comando executado e resultado persistido
    - SKIPPED: não executado (atualizado, desabilitado ou dependência falhou)
    - ERRORED: comando falhou; o erro fica registrado no store e no Manifest
    """

    BUILT = "built"
    SKIPPED = "skipped"
    ERRORED = "errored"


def validate_target_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidTargetError("target name must be a non-empty string", details={"name": name})
    if not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidTargetError(
            f"target name must be a valid Python identifier: {name!r}",
            details={"name": name},
            hint="Use letras, dígitos e '_' (ex.: 'summary_table').",
        )
    return name


@dataclass(frozen=True)
class Target:
    """
    Definição imutável de um target.

    Campos:
        - name: identificador único no grafo
        - command: código Python (expressão ou bloco cuja última expressão
          é o valor do target)
        - format: `TargetFormat`
        - depends_on: dependências declaradas explicitamente
        - deps: dependências efetivas (inferidas + explícitas), preenchidas
          por `TargetGraph.resolve`
        - bindings: variáveis extras vinculadas na avaliação do comando
          (ex.: linhas de um batch de parâmetros)
        - description: texto livre para tabelas e relatórios

    Decisões arquiteturais:
        - O comando é texto, não callable, para permitir análise estática
          de dependências e hashing estável da definição
        - `bindings` não participa da igualdade; participa do hash de
          definição calculado pelo Engine
    """

    name: str
    command: str
    format: TargetFormat = TargetFormat.VALUE
    depends_on: Tuple[str, ...] = ()
    deps: Tuple[str, ...] = ()
    bindings: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)
    description: str = ""

    def __post_init__(self) -> None:
        validate_target_name(self.name)

        if not isinstance(self.command, str) or not self.command.strip():
            raise InvalidTargetError(
                f"target '{self.name}' must have a non-empty command string",
                details={"name": self.name},
            )

        try:
            fmt = TargetFormat(self.format)
        except ValueError:
            raise InvalidTargetError(
                f"unknown format for target '{self.name}': {self.format!r}",
                details={"name": self.name, "format": str(self.format)},
                hint="Formatos suportados: 'value', 'file'.",
            ) from None
        object.__setattr__(self, "format", fmt)

        explicit = tuple(dict.fromkeys(validate_target_name(d) for d in self.depends_on))
        object.__setattr__(self, "depends_on", explicit)
        object.__setattr__(self, "deps", tuple(sorted(set(self.deps))))

        if self.name in explicit:
            raise InvalidTargetError(
                f"target '{self.name}' cannot depend on itself",
                details={"name": self.name},
            )

    def with_deps(self, deps: Iterable[str]) -> "Target":
        """Retorna uma nova instância com `deps` efetivas definidas."""
        return Target(
            name=self.name,
            command=self.command,
            format=self.format,
            depends_on=self.depends_on,
            deps=tuple(deps),
            bindings=self.bindings,
            description=self.description,
        )


def target(
    name: str,
    command: str,
    *,
    format: Union[str, TargetFormat] = TargetFormat.VALUE,
    depends_on: Iterable[str] = (),
    description: str = "",
    bindings: Optional[Mapping[str, Any]] = None,
) -> Target:
    """
    Declara um target.

    Forma canônica usada em scripts de pipeline e chunks de documento:

        target("raw", "pd.read_csv('data.csv')")
        target("summary", "raw.describe()")
        target("plot_file", "save_plot(summary, 'out/plot.png')", format="file")
    """
    return Target(
        name=name,
        command=command,
        format=TargetFormat(format) if not isinstance(format, TargetFormat) else format,
        depends_on=tuple(depends_on),
        bindings=dict(bindings or {}),
        description=description,
    )


@dataclass(frozen=True)
class TargetResult:
    """
    Resultado imutável da execução de um target em uma run.

    Campos:
        - name: nome do target
        - status: `TargetStatus`
        - summary: resumo textual (ex.: "built", "up to date")
        - data_hash: hash do valor armazenado (ou do conteúdo dos arquivos)
        - seconds: duração da execução do comando
        - warnings: avisos não fatais
        - error: payload de erro serializável (apenas quando ERRORED)
    """

    name: str
    status: TargetStatus
    summary: str
    data_hash: Optional[str] = None
    seconds: float = 0.0
    warnings: List[str] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "summary": self.summary,
            "data_hash": self.data_hash,
            "seconds": self.seconds,
            "warnings": list(self.warnings),
            "error": dict(self.error) if self.error else None,
        }
