"""
Avaliação de comandos e chunks.

Um comando é código Python: uma expressão única ou um bloco de instruções.
Quando a última instrução é uma expressão, seu valor é o resultado; caso
contrário o resultado é `None`.

O mesmo mecanismo avalia comandos de targets (Engine) e o código de chunks
de documentos literários (preprocessador).
"""

from __future__ import annotations

import ast
from typing import Any, Dict, Optional

from atlas_targets.core.graph.analyzer import parse_command


def evaluate_command(
    command: str,
    namespace: Dict[str, Any],
    *,
    name: Optional[str] = None,
) -> Any:
    """
    Executa `command` em `namespace` e retorna o valor da última expressão.

    `namespace` é usado como dicionário global da execução: atribuições
    feitas pelo comando ficam visíveis nele após a chamada.
    """
    tree = parse_command(command, name=name)
    filename = f"<target {name}>" if name else "<command>"

    body = list(tree.body)
    last: Optional[ast.expr] = None
    if body and isinstance(body[-1], ast.Expr):
        last = body.pop().value

    if body:
        module = ast.Module(body=body, type_ignores=[])
        exec(compile(module, filename, "exec"), namespace)  # noqa: S102

    if last is None:
        return None

    expression = ast.Expression(body=last)
    return eval(compile(expression, filename, "eval"), namespace)  # noqa: S307
