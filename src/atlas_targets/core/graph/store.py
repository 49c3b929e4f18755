"""
Grafo de targets (target graph store).

Este módulo define o `TargetGraph`, responsável por registrar definições de
targets, garantir unicidade de nomes e resolver as dependências efetivas de
cada target antes do planejamento.

Responsabilidades do módulo:
    - Validar unicidade de `target.name`
    - Preservar a ordem de declaração
    - Permitir substituição explícita de definições (modo interativo)
    - Resolver dependências (inferidas pelo analisador + explícitas)
    - Expor fechos upstream/downstream e a tabela de manifesto

Invariantes:
    - Cada target registrado possui nome único
    - `list()` reflete exatamente a ordem de registro
    - `resolve()` não muta as definições registradas

Limites explícitos:
    - Não planeja execução (ver `planner`)
    - Não executa comandos
    - Não verifica se targets estão atualizados (ver `Engine.outdated`)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Set

import pandas as pd

from atlas_targets.core.exceptions import DuplicateTargetNameError, TargetNotFoundError

from .analyzer import analyze_command
from .target import Target


@dataclass
class TargetGraph:
    """
    Registro canônico de targets de um pipeline.

    Decisões arquiteturais:
        - `add` rejeita nomes duplicados (definição de pipeline inválida)
        - `supersede` é o único caminho para redefinir um target
        - A resolução de dependências é recalculada a cada chamada, pois
          depende do conjunto completo de nomes do grafo
    """

    _targets: Dict[str, Target] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def from_targets(cls, targets: Iterable[Target]) -> "TargetGraph":
        graph = cls()
        graph.extend(targets)
        return graph

    # -----------------------------
    # Registro
    # -----------------------------
    def add(self, target: Target) -> None:
        if target.name in self._targets:
            raise DuplicateTargetNameError(
                f"Duplicate target name: {target.name}",
                details={"name": target.name},
                hint="Nomes de targets devem ser únicos em todo o pipeline.",
            )
        self._targets[target.name] = target
        self._order.append(target.name)

    def extend(self, targets: Iterable[Target]) -> None:
        for t in targets:
            self.add(t)

    def supersede(self, target: Target) -> None:
        """Registra `target`, substituindo uma definição anterior de mesmo nome."""
        if target.name not in self._targets:
            self._order.append(target.name)
        self._targets[target.name] = target

    def remove(self, name: str) -> None:
        self._targets.pop(name)
        self._order.remove(name)

    # -----------------------------
    # Acesso
    # -----------------------------
    def get(self, name: str) -> Target:
        if name not in self._targets:
            raise TargetNotFoundError(f"Unknown target: {name}", details={"name": name})
        return self._targets[name]

    def names(self) -> List[str]:
        return list(self._order)

    def list(self) -> List[Target]:
        return [self._targets[n] for n in self._order]

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Target]:
        return iter(self.list())

    # -----------------------------
    # Dependências
    # -----------------------------
    def resolve(self) -> List[Target]:
        """
        Retorna novas instâncias com `deps` = inferidas ∪ explícitas.

        A inferência considera como nomes conhecidos todos os targets do grafo,
        exceto o próprio target.
        """
        known = set(self._order)
        out: List[Target] = []
        for t in self.list():
            inferred = analyze_command(t.command, known - {t.name}, name=t.name)
            out.append(t.with_deps(set(inferred) | set(t.depends_on)))
        return out

    def upstream(self, name: str) -> Set[str]:
        """Fecho transitivo de dependências de `name` (sem incluí-lo)."""
        deps = {t.name: t.deps for t in self.resolve()}
        if name not in deps:
            raise TargetNotFoundError(f"Unknown target: {name}", details={"name": name})
        seen: Set[str] = set()
        stack = list(deps[name])
        while stack:
            cur = stack.pop()
            if cur in seen:
                continue
            seen.add(cur)
            stack.extend(deps.get(cur, ()))
        return seen

    def downstream(self, name: str) -> Set[str]:
        """Todos os targets que dependem, direta ou indiretamente, de `name`."""
        resolved = self.resolve()
        if name not in self._targets:
            raise TargetNotFoundError(f"Unknown target: {name}", details={"name": name})
        children: Dict[str, Set[str]] = {t.name: set() for t in resolved}
        for t in resolved:
            for d in t.deps:
                children.setdefault(d, set()).add(t.name)
        seen: Set[str] = set()
        stack = list(children[name])
        while stack:
            cur = stack.pop()
            if cur in seen:
                continue
            seen.add(cur)
            stack.extend(children.get(cur, ()))
        return seen

    # -----------------------------
    # Inspeção
    # -----------------------------
    def manifest(self) -> pd.DataFrame:
        """Tabela (uma linha por target) com nome, formato, deps e comando."""
        rows = [
            {
                "name": t.name,
                "format": t.format.value,
                "deps": list(t.deps),
                "command": t.command,
                "description": t.description,
            }
            for t in self.resolve()
        ]
        return pd.DataFrame(rows, columns=["name", "format", "deps", "command", "description"])
