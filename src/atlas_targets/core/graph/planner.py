"""
Planejador de execução do grafo de targets (DAG).

Este módulo valida a estrutura do grafo e produz uma ordem topológica
determinística de targets.

O planner opera exclusivamente em nível estrutural, analisando:
    - nomes de targets
    - dependências efetivas (`Target.deps`)
    - formação de ciclos

Decisões arquiteturais:
    - Ordenação topológica determinística (Kahn modificado)
    - Empates são resolvidos por ordem lexicográfica de `target.name`
    - Erros estruturais são tratados como falhas fatais
    - Com `names`, o plano é restrito aos targets pedidos e seus upstream

Invariantes:
    - Nenhum target aparece antes de suas dependências
    - Todos os targets planejados aparecem exatamente uma vez
    - A mesma definição sempre produz a mesma ordem

Limites explícitos:
    - Não executa comandos
    - Não decide se um target está desatualizado
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

from atlas_targets.core.exceptions import (
    CycleDetectedError,
    DuplicateTargetNameError,
    TargetNotFoundError,
    UnknownDependencyError,
)

from .target import Target


def _restrict(by_name: Dict[str, Target], names: Iterable[str]) -> Set[str]:
    keep: Set[str] = set()
    stack: List[str] = []
    for n in names:
        if n not in by_name:
            raise TargetNotFoundError(f"Unknown target: {n}", details={"name": n})
        stack.append(n)
    while stack:
        cur = stack.pop()
        if cur in keep:
            continue
        keep.add(cur)
        stack.extend(by_name[cur].deps)
    return keep


def plan_execution(targets: Iterable[Target], names: Optional[Iterable[str]] = None) -> List[Target]:
    """
    Valida e produz uma ordem de execução topológica determinística.

    Args:
        targets: Targets com dependências já resolvidas (`TargetGraph.resolve`).
        names: Restringe o plano a estes targets e seus upstream (opcional).

    Returns:
        List[Target]: Targets em ordem de execução.

    Raises:
        DuplicateTargetNameError: Se houver nomes duplicados.
        UnknownDependencyError: Se um target depender de nome inexistente.
        CycleDetectedError: Se houver ciclo no grafo.
        TargetNotFoundError: Se `names` contiver nome inexistente.
    """
    by_name: Dict[str, Target] = {}
    for t in targets:
        if t.name in by_name:
            raise DuplicateTargetNameError(f"Duplicate target name: {t.name}", details={"name": t.name})
        by_name[t.name] = t

    for name, t in by_name.items():
        for dep in t.deps:
            if dep not in by_name:
                raise UnknownDependencyError(
                    f"Target '{name}' depends on unknown target '{dep}'",
                    details={"target": name, "dependency": dep},
                    hint="Declare o target ausente ou corrija a referência no comando.",
                )

    if names is not None:
        keep = _restrict(by_name, names)
        by_name = {n: t for n, t in by_name.items() if n in keep}

    incoming_count: Dict[str, int] = {n: len(t.deps) for n, t in by_name.items()}
    outgoing: Dict[str, Set[str]] = {n: set() for n in by_name}
    for n, t in by_name.items():
        for dep in t.deps:
            outgoing[dep].add(n)

    ready: List[str] = sorted(n for n, c in incoming_count.items() if c == 0)
    order: List[str] = []

    while ready:
        n = ready.pop(0)
        order.append(n)
        for child in sorted(outgoing[n]):
            incoming_count[child] -= 1
            if incoming_count[child] == 0:
                ready.append(child)
                ready.sort()

    if len(order) != len(by_name):
        remaining = sorted(n for n in by_name if n not in set(order))
        raise CycleDetectedError(
            "Cycle detected in target dependency graph",
            details={"targets": remaining},
            hint="Remova a referência circular entre os targets listados.",
        )

    return [by_name[n] for n in order]
