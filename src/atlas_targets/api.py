# src/atlas_targets/api.py
"""
API pública do Atlas Targets.

Funções de alto nível usadas em scripts, notebooks e documentos:

    make(...)      → carrega o pipeline e executa os targets desatualizados
    outdated(...)  → lista os targets que `make` reconstruiria
    manifest(...)  → tabela do grafo (nome, formato, deps, comando)
    progress(...)  → tabela do estado de cada target no store
    read(name)     → valor armazenado de um target
    load(names)    → vincula valores armazenados em um namespace

O pipeline vem, nesta ordem, de `pipeline=` (objeto `Pipeline`), `script=`
(caminho de um script de pipeline) ou do script configurado em
`literate.pipeline_script` (padrão `_targets.py`) dentro de `root`.

`root` é a raiz do projeto: o diretório do script do pipeline quando
`script=` é informado, ou o diretório atual. Um `store.path` relativo é
resolvido a partir dela, como faz o `LiterateEngine`.
"""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Dict, Iterable, List, MutableMapping, Optional, Union

import pandas as pd

from atlas_targets.core.config.loader import load_config, resolve_store_path
from atlas_targets.core.engine.context import RunContext
from atlas_targets.core.engine.engine import Engine, RunResult
from atlas_targets.literate.scripts import Pipeline, load_pipeline
from atlas_targets.persistence.result_store import ResultStore

PathLike = Union[str, Path]
StoreLike = Union[ResultStore, str, Path]

PROGRESS_COLUMNS = ["name", "status", "format", "seconds", "built_at", "data_hash", "error"]


def _config(config: Optional[Dict[str, Any]], config_path: Optional[PathLike]) -> Dict[str, Any]:
    return load_config(defaults_path=config_path, overrides=config)


def _root(root: Optional[PathLike], script: Optional[PathLike]) -> Path:
    if root is not None:
        return Path(root)
    if script is not None:
        return Path(script).parent
    return Path(".")


def _store(store: Optional[StoreLike], cfg: Dict[str, Any], root: Path) -> ResultStore:
    if isinstance(store, ResultStore):
        return store
    if store is not None:
        return ResultStore(path=store)
    return ResultStore(path=resolve_store_path(cfg, root))


def _pipeline(pipeline: Optional[Pipeline], script: Optional[PathLike], cfg: Dict[str, Any], root: Path) -> Pipeline:
    if pipeline is not None:
        return pipeline
    if script is None:
        script = root / str((cfg.get("literate", {}) or {}).get("pipeline_script", "_targets.py"))
    return load_pipeline(script)


def _engine(
    *,
    script: Optional[PathLike],
    pipeline: Optional[Pipeline],
    config: Optional[Dict[str, Any]],
    config_path: Optional[PathLike],
    store: Optional[StoreLike],
    root: Optional[PathLike],
) -> Engine:
    cfg = _config(config, config_path)
    base = _root(root, script)
    pipe = _pipeline(pipeline, script, cfg, base)
    ctx = RunContext.create(config=cfg, env=pipe.env, store=_store(store, cfg, base))
    return Engine(graph=pipe.graph, ctx=ctx)


def make(
    names: Optional[Iterable[str]] = None,
    *,
    script: Optional[PathLike] = None,
    pipeline: Optional[Pipeline] = None,
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[PathLike] = None,
    store: Optional[StoreLike] = None,
    root: Optional[PathLike] = None,
) -> RunResult:
    """Executa os targets desatualizados (todos, ou `names` e seus upstream)."""
    engine = _engine(script=script, pipeline=pipeline, config=config, config_path=config_path, store=store, root=root)
    return engine.run(names=names)


def outdated(
    names: Optional[Iterable[str]] = None,
    *,
    script: Optional[PathLike] = None,
    pipeline: Optional[Pipeline] = None,
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[PathLike] = None,
    store: Optional[StoreLike] = None,
    root: Optional[PathLike] = None,
) -> List[str]:
    engine = _engine(script=script, pipeline=pipeline, config=config, config_path=config_path, store=store, root=root)
    return engine.outdated(names=names)


def manifest(
    *,
    script: Optional[PathLike] = None,
    pipeline: Optional[Pipeline] = None,
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[PathLike] = None,
    root: Optional[PathLike] = None,
) -> pd.DataFrame:
    cfg = _config(config, config_path)
    return _pipeline(pipeline, script, cfg, _root(root, script)).graph.manifest()


def progress(
    *,
    store: Optional[StoreLike] = None,
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[PathLike] = None,
    root: Optional[PathLike] = None,
) -> pd.DataFrame:
    """Uma linha por target com metadados no store (ordem alfabética)."""
    result_store = _store(store, _config(config, config_path), _root(root, None))
    rows = []
    for name in result_store.names():
        meta = result_store.meta(name)
        if meta is None:
            continue
        rows.append(
            {
                "name": meta.name,
                "status": meta.status,
                "format": meta.format,
                "seconds": meta.seconds,
                "built_at": meta.built_at,
                "data_hash": meta.data_hash,
                "error": (meta.error or {}).get("message"),
            }
        )
    return pd.DataFrame(rows, columns=PROGRESS_COLUMNS)


def read(
    name: str,
    *,
    store: Optional[StoreLike] = None,
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[PathLike] = None,
    root: Optional[PathLike] = None,
) -> Any:
    """Valor armazenado de `name` (sem recalcular).

    Raises:
        TargetNotFoundError: se o target nunca foi construído.
    """
    return _store(store, _config(config, config_path), _root(root, None)).read(name)


def load(
    names: Union[str, Iterable[str]],
    namespace: Optional[MutableMapping[str, Any]] = None,
    *,
    store: Optional[StoreLike] = None,
    config: Optional[Dict[str, Any]] = None,
    config_path: Optional[PathLike] = None,
    root: Optional[PathLike] = None,
) -> List[str]:
    """
    Vincula os valores armazenados de `names` em `namespace`.

    Sem `namespace`, usa os globals de quem chamou (ex.: célula de notebook).
    """
    if namespace is None:
        frame = inspect.currentframe()
        namespace = frame.f_back.f_globals if frame is not None and frame.f_back is not None else {}
    targets = [names] if isinstance(names, str) else list(names)
    return _store(store, _config(config, config_path), _root(root, None)).load(targets, namespace)
