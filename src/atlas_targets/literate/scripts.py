# src/atlas_targets/literate/scripts.py
"""
Scripts gerados a partir de chunks e carregamento do pipeline.

Layout (padrões de `literate` na configuração):

    _targets.py                  → script do pipeline (gerado)
    _targets_py/globals/<nome>.py → um script por chunk global
    _targets_py/targets/<nome>.py → um script por chunk de target

Carregamento:
    - scripts globais são executados em ordem de nome, em um único namespace;
    - scripts de target são avaliados nesse namespace; a última expressão
      deve ser um `Target` ou uma lista de `Target`;
    - nomes duplicados entre scripts invalidam o pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from atlas_targets.branching import expand_branches, split_batches
from atlas_targets.core.engine.evaluation import evaluate_command
from atlas_targets.core.exceptions import InvalidChunkError
from atlas_targets.core.graph import Target, TargetFormat, TargetGraph, target

from .chunks import DocumentChunk

PathLike = Union[str, Path]

GLOBALS_DIR = "globals"
TARGETS_DIR = "targets"
HEADER = "# Generated by atlas_targets from chunk {name!r}. Do not edit by hand.\n"


@dataclass
class Pipeline:
    """Grafo de targets + ambiente global em que os comandos são avaliados."""

    graph: TargetGraph
    env: Dict[str, Any] = field(default_factory=dict)

    def names(self) -> List[str]:
        return self.graph.names()


def definition_namespace(env: Dict[str, Any]) -> Dict[str, Any]:
    """Namespace para avaliar definições: ambiente global + API de declaração."""
    ns = dict(env)
    ns.setdefault("target", target)
    ns.setdefault("expand_branches", expand_branches)
    ns.setdefault("split_batches", split_batches)
    ns.setdefault("TargetFormat", TargetFormat)
    return ns


def collect_targets(value: Any, *, source: str) -> List[Target]:
    """Normaliza o valor de uma definição em uma lista de `Target`."""
    if isinstance(value, Target):
        return [value]
    if isinstance(value, (list, tuple)):
        out: List[Target] = []
        for item in value:
            if isinstance(item, Target):
                out.append(item)
            elif isinstance(item, (list, tuple)) and all(isinstance(i, Target) for i in item):
                out.extend(item)
            else:
                raise InvalidChunkError(
                    f"{source} must evaluate to targets, found {type(item).__name__}",
                    details={"source": source, "received": type(item).__name__},
                )
        return out
    raise InvalidChunkError(
        f"{source} must evaluate to a target or a list of targets",
        details={"source": source, "received": type(value).__name__},
        hint="A última expressão do chunk deve ser target(...) ou uma lista de targets.",
    )


# ----------------------------------------------------------------------
# Escrita
# ----------------------------------------------------------------------
def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def chunk_script_path(script_dir: PathLike, chunk: DocumentChunk) -> Path:
    sub = GLOBALS_DIR if chunk.is_global else TARGETS_DIR
    return Path(script_dir) / sub / f"{chunk.name}.py"


def target_script_source(chunk: DocumentChunk) -> str:
    if chunk.simple:
        body = f"target(\n    {chunk.name!r},\n    {chunk.code.strip()!r},\n)\n"
    else:
        body = chunk.code.rstrip() + "\n"
    return HEADER.format(name=chunk.name) + body


def write_chunk_script(script_dir: PathLike, chunk: DocumentChunk) -> Path:
    """Escreve o script do chunk e remove o script oposto (global/target) de mesmo nome."""
    path = chunk_script_path(script_dir, chunk)
    other = Path(script_dir) / (TARGETS_DIR if chunk.is_global else GLOBALS_DIR) / f"{chunk.name}.py"
    if other.exists():
        other.unlink()
    if chunk.is_global:
        return _write(path, HEADER.format(name=chunk.name) + chunk.code.rstrip() + "\n")
    return _write(path, target_script_source(chunk))


def write_pipeline_script(path: PathLike, script_dir: PathLike) -> Path:
    """(Re)escreve o script do pipeline que aponta para o diretório de scripts."""
    path = Path(path)
    try:
        rel = Path(script_dir).resolve().relative_to(path.parent.resolve()).as_posix()
    except ValueError:
        rel = Path(script_dir).resolve().as_posix()
    text = (
        "# Generated by atlas_targets. Do not edit by hand.\n"
        "from pathlib import Path\n"
        "\n"
        "from atlas_targets.literate import load_script_directory\n"
        "\n"
        f"pipeline = load_script_directory(Path(__file__).parent / {rel!r})\n"
        "pipeline\n"
    )
    return _write(path, text)


# ----------------------------------------------------------------------
# Carregamento
# ----------------------------------------------------------------------
def _scripts(directory: Path) -> List[Path]:
    if not directory.is_dir():
        return []
    return sorted(directory.glob("*.py"))


def load_targets(paths: Iterable[Path], env: Dict[str, Any], graph: Optional[TargetGraph] = None) -> TargetGraph:
    graph = graph if graph is not None else TargetGraph()
    for path in paths:
        ns = definition_namespace(env)
        ns["__file__"] = str(path)
        value = evaluate_command(path.read_text(encoding="utf-8"), ns, name=path.stem)
        graph.extend(collect_targets(value, source=f"script {path.name}"))
    return graph


def load_script_directory(directory: PathLike) -> Pipeline:
    """
    Carrega `<dir>/globals/*.py` e `<dir>/targets/*.py` em um `Pipeline`.

    Raises:
        DuplicateTargetNameError: dois scripts definem o mesmo target.
        InvalidChunkError: script de target sem definição de target.
    """
    root = Path(directory)
    env: Dict[str, Any] = {}
    for path in _scripts(root / GLOBALS_DIR):
        env["__file__"] = str(path)
        evaluate_command(path.read_text(encoding="utf-8"), env, name=path.stem)
    env.pop("__file__", None)

    graph = load_targets(_scripts(root / TARGETS_DIR), env)
    return Pipeline(graph=graph, env=env)


def load_pipeline(script_path: PathLike) -> Pipeline:
    """
    Executa um script de pipeline e retorna o `Pipeline` definido por ele.

    O script pode terminar com um `Pipeline` (script gerado), definir a
    variável `pipeline`, ou terminar com um target/lista de targets escrita
    à mão. Neste último caso o ambiente global é o namespace do script.
    """
    path = Path(script_path)
    ns: Dict[str, Any] = definition_namespace({})
    ns["__file__"] = str(path)
    value = evaluate_command(path.read_text(encoding="utf-8"), ns, name=path.stem)

    if isinstance(value, Pipeline):
        return value
    if value is None and isinstance(ns.get("pipeline"), Pipeline):
        return ns["pipeline"]

    graph = TargetGraph.from_targets(collect_targets(value, source=f"script {path.name}"))
    env = {k: v for k, v in ns.items() if k != "__builtins__"}
    return Pipeline(graph=graph, env=env)
