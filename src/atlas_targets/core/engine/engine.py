# src/atlas_targets/core/engine/engine.py
"""
Engine de execução do grafo de targets do Atlas Targets.

Responsabilidades:
- Planejar a run (ordem topológica determinística via `plan_execution`).
- Decidir, target a target, se o valor armazenado ainda é válido.
- Avaliar comandos desatualizados com os valores das dependências vinculados.
- Persistir valores e metadados no `ResultStore`.
- Registrar o ciclo de vida de cada target no Manifest e no log do contexto.

Um target é considerado desatualizado quando:
- não há metadados no store (nunca foi construído);
- a última execução falhou;
- o hash de definição mudou (comando, formato, hash dos dados upstream,
  bindings ou funções globais usadas pelo comando);
- o objeto armazenado sumiu;
- (formato `file`) algum arquivo sumiu ou teve o conteúdo alterado.

Guardrails:
- Exceções dentro de comandos nunca escapam de `run`: viram `ErrorPayload`
  serializável no `TargetResult`, nos metadados e no Manifest.
- Dependentes de um target com falha são SKIPPED.
- Com `engine.fail_fast`, a run para no primeiro erro; os targets restantes
  não aparecem no resultado.
- Com `engine.workers > 1`, targets prontos rodam em paralelo (threads),
  sempre respeitando o DAG.
"""

from __future__ import annotations

import hashlib
import pickle
import threading
import time
import types
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import joblib

from atlas_targets._version import __version__
from atlas_targets.core.config.hashing import canonical_hash, compute_config_hash
from atlas_targets.core.errors import ErrorPayload, engine_execution_error, target_command_error
from atlas_targets.core.exceptions import AtlasTargetsException, MissingOutputFileError
from atlas_targets.core.graph.analyzer import free_names
from atlas_targets.core.graph.planner import plan_execution
from atlas_targets.core.graph.store import TargetGraph
from atlas_targets.core.graph.target import Target, TargetFormat, TargetResult, TargetStatus
from atlas_targets.core.traceability.manifest import (
    RunManifest,
    add_event,
    create_manifest,
    finish_run,
    save_manifest,
    target_failed,
    target_finished,
    target_skipped,
    target_started,
)
from atlas_targets.persistence.result_store import file_paths, hash_files

from .context import RunContext
from .evaluation import evaluate_command

SKIPPED_BY_CONFIG = "skipped by config"
SKIPPED_FAILED_DEPENDENCY = "skipped due to failed dependency"
UP_TO_DATE = "up to date"


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma run (ordem do plano preservada)."""

    run_id: str
    targets: Dict[str, TargetResult] = field(default_factory=dict)
    manifest: Optional[RunManifest] = None

    def _with_status(self, status: TargetStatus) -> List[str]:
        return [n for n, r in self.targets.items() if r.status == status]

    @property
    def built(self) -> List[str]:
        return self._with_status(TargetStatus.BUILT)

    @property
    def skipped(self) -> List[str]:
        return self._with_status(TargetStatus.SKIPPED)

    @property
    def errored(self) -> List[str]:
        return self._with_status(TargetStatus.ERRORED)

    @property
    def ok(self) -> bool:
        return not self.errored

    def counts(self) -> Dict[str, int]:
        out = {s.value: 0 for s in TargetStatus}
        for r in self.targets.values():
            out[r.status.value] += 1
        return out


def _code_digest(code: types.CodeType) -> str:
    h = hashlib.sha256(code.co_code)
    for const in code.co_consts:
        if isinstance(const, types.CodeType):
            h.update(_code_digest(const).encode("utf-8"))
        else:
            h.update(repr(const).encode("utf-8"))
    h.update(repr(code.co_names).encode("utf-8"))
    return h.hexdigest()


def fingerprint(value: Any) -> str:
    """Impressão digital estável de um objeto do ambiente global."""
    if isinstance(value, types.ModuleType):
        return f"module:{value.__name__}:{getattr(value, '__version__', '')}"
    if isinstance(value, types.FunctionType):
        return f"function:{_code_digest(value.__code__)}"
    if isinstance(value, type):
        return f"class:{value.__module__}.{value.__qualname__}"
    try:
        return f"value:{joblib.hash(value)}"
    except (TypeError, AttributeError, pickle.PicklingError):
        return f"opaque:{type(value).__module__}.{type(value).__qualname__}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Engine:
    """Engine canônico do Atlas Targets (planner + executor incremental)."""

    def __init__(self, *, graph: TargetGraph, ctx: RunContext):
        self.graph = graph
        self.ctx = ctx
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Configuração
    # ------------------------------------------------------------------
    def _is_enabled(self, name: str) -> bool:
        targets_cfg = (self.ctx.config or {}).get("targets", {}) or {}
        target_cfg = targets_cfg.get(name, {}) or {}
        return bool(target_cfg.get("enabled", True))

    def _fail_fast(self) -> bool:
        engine_cfg = (self.ctx.config or {}).get("engine", {}) or {}
        return bool(engine_cfg.get("fail_fast", True))

    def _workers(self) -> int:
        engine_cfg = (self.ctx.config or {}).get("engine", {}) or {}
        return max(1, int(engine_cfg.get("workers", 1) or 1))

    # ------------------------------------------------------------------
    # Hash de definição / decisão de atualização
    # ------------------------------------------------------------------
    def _upstream_hash(self, name: str, results: Dict[str, TargetResult]) -> Optional[str]:
        r = results.get(name)
        if r is not None and r.data_hash is not None:
            return r.data_hash
        meta = self.ctx.store.meta(name)
        return meta.data_hash if meta else None

    def definition_hash(self, t: Target, dep_hashes: Dict[str, Optional[str]]) -> str:
        env = self.ctx.env
        used_globals = {
            n: fingerprint(env[n])
            for n in free_names(t.command, name=t.name)
            if n in env and n not in dep_hashes
        }
        return canonical_hash(
            {
                "command": t.command,
                "format": t.format.value,
                "deps": dict(sorted(dep_hashes.items())),
                "bindings": {k: fingerprint(v) for k, v in sorted(t.bindings.items())},
                "globals": used_globals,
            }
        )

    def _outdated_reason(self, t: Target, def_hash: str) -> Optional[str]:
        meta = self.ctx.store.meta(t.name)
        if meta is None:
            return "never built"
        if meta.status == TargetStatus.ERRORED.value:
            return "errored in last run"
        if meta.definition_hash != def_hash:
            return "definition or upstream changed"
        if not self.ctx.store.exists(t.name):
            return "stored value missing"
        if t.format == TargetFormat.FILE:
            if any(not _path_exists(p) for p in meta.files):
                return "output file missing"
            if hash_files(meta.files) != meta.data_hash:
                return "output file changed"
        return None

    def outdated(self, names: Optional[Iterable[str]] = None) -> List[str]:
        """
        Lista (em ordem de plano) os targets que seriam reconstruídos.

        Nada é executado. Um target downstream de um target desatualizado
        também é considerado desatualizado.
        """
        order = plan_execution(self.graph.resolve(), names=names)
        stale: List[str] = []
        for t in order:
            if any(d in stale for d in t.deps):
                stale.append(t.name)
                continue
            dep_hashes = {d: self._upstream_hash(d, {}) for d in t.deps}
            if self._outdated_reason(t, self.definition_hash(t, dep_hashes)) is not None:
                stale.append(t.name)
        return stale

    # ------------------------------------------------------------------
    # Avaliação
    # ------------------------------------------------------------------
    def _namespace(self, t: Target) -> Dict[str, Any]:
        ns: Dict[str, Any] = dict(self.ctx.env)
        for d in t.deps:
            ns[d] = self.ctx.get_value(d)
        ns.update(t.bindings)

        def read(name: str) -> Any:
            return self.ctx.get_value(name)

        def load(names: Any) -> List[str]:
            targets = [names] if isinstance(names, str) else list(names)
            for n in targets:
                ns[n] = self.ctx.get_value(n)
            return targets

        ns.setdefault("read", read)
        ns.setdefault("load", load)
        ns.setdefault("read_raw", read)
        ns.setdefault("load_raw", load)
        return ns

    def _exception_to_error(self, t: Target, exc: Exception) -> ErrorPayload:
        if isinstance(exc, AtlasTargetsException):
            payload = exc.to_payload()
            details = dict(payload.details)
            details.setdefault("target", t.name)
            return ErrorPayload(type=payload.type, message=payload.message, details=details, hint=payload.hint)
        return target_command_error(
            target=t.name,
            exc_type=exc.__class__.__name__,
            exc_message=str(exc),
        )

    def _build(self, t: Target, def_hash: str, manifest: RunManifest) -> TargetResult:
        with self._lock:
            target_started(manifest, target=t.name, fmt=t.format.value, ts=_utcnow())
        self.ctx.log(target=t.name, level="DEBUG", message="target started", format=t.format.value)

        start = time.perf_counter()
        try:
            value = evaluate_command(t.command, self._namespace(t), name=t.name)

            if t.format == TargetFormat.FILE:
                missing = [p for p in file_paths(value) if not _path_exists(p)]
                if missing:
                    raise MissingOutputFileError(
                        f"target '{t.name}' returned paths that do not exist",
                        details={"target": t.name, "missing_paths": missing},
                        hint="Targets de formato 'file' devem retornar caminhos de arquivos existentes.",
                    )

            seconds = time.perf_counter() - start
            meta = self.ctx.store.save(
                t.name,
                value,
                fmt=t.format,
                definition_hash=def_hash,
                deps=t.deps,
                seconds=seconds,
            )
            self.ctx.set_value(t.name, value)

        except Exception as e:
            seconds = time.perf_counter() - start
            error = self._exception_to_error(t, e).to_dict()
            self.ctx.store.save_error(
                t.name,
                fmt=t.format,
                definition_hash=def_hash,
                error=error,
                deps=t.deps,
                seconds=seconds,
            )
            with self._lock:
                target_failed(manifest, target=t.name, ts=_utcnow(), error=error)
            self.ctx.log(target=t.name, level="ERROR", message=error["message"], error_type=error["type"])
            return TargetResult(
                name=t.name,
                status=TargetStatus.ERRORED,
                summary=error["message"],
                seconds=round(seconds, 6),
                warnings=list(self.ctx.warnings.get(t.name, [])),
                error=error,
            )

        result = TargetResult(
            name=t.name,
            status=TargetStatus.BUILT,
            summary="built",
            data_hash=meta.data_hash,
            seconds=meta.seconds,
            warnings=list(self.ctx.warnings.get(t.name, [])),
        )
        with self._lock:
            target_finished(manifest, target=t.name, ts=_utcnow(), result=result.to_dict())
        self.ctx.log(target=t.name, level="INFO", message="built", seconds=result.seconds)
        return result

    def _skip(self, t: Target, reason: str, manifest: RunManifest, data_hash: Optional[str] = None) -> TargetResult:
        with self._lock:
            target_skipped(manifest, target=t.name, ts=_utcnow(), reason=reason)
        self.ctx.log(target=t.name, level="DEBUG" if reason == UP_TO_DATE else "INFO", message=reason)
        return TargetResult(name=t.name, status=TargetStatus.SKIPPED, summary=reason, data_hash=data_hash)

    def _process(self, t: Target, results: Dict[str, TargetResult], manifest: RunManifest) -> TargetResult:
        if not self._is_enabled(t.name):
            return self._skip(t, SKIPPED_BY_CONFIG, manifest)

        failed_upstream = [
            d
            for d in t.deps
            if d in results
            and (
                results[d].status == TargetStatus.ERRORED
                or results[d].summary == SKIPPED_FAILED_DEPENDENCY
            )
        ]
        if failed_upstream:
            return self._skip(t, SKIPPED_FAILED_DEPENDENCY, manifest)

        dep_hashes = {d: self._upstream_hash(d, results) for d in t.deps}
        def_hash = self.definition_hash(t, dep_hashes)
        reason = self._outdated_reason(t, def_hash)
        if reason is None:
            meta = self.ctx.store.meta(t.name)
            return self._skip(t, UP_TO_DATE, manifest, data_hash=meta.data_hash if meta else None)

        self.ctx.log(target=t.name, level="DEBUG", message="outdated", reason=reason)
        return self._build(t, def_hash, manifest)

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def _run_sequential(self, order: List[Target], manifest: RunManifest) -> Dict[str, TargetResult]:
        results: Dict[str, TargetResult] = {}
        for t in order:
            r = self._process(t, results, manifest)
            results[t.name] = r
            if r.status == TargetStatus.ERRORED and self._fail_fast():
                break
        return results

    def _run_parallel(self, order: List[Target], manifest: RunManifest, workers: int) -> Dict[str, TargetResult]:
        results: Dict[str, TargetResult] = {}
        pending: Dict[str, Target] = {t.name: t for t in order}
        running: Dict[Future, str] = {}
        stop = False

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="atlas-targets") as pool:
            while pending or running:
                if not stop:
                    ready = [
                        t for t in order
                        if t.name in pending and all(d in results for d in t.deps)
                    ]
                    for t in ready:
                        del pending[t.name]
                        with self._lock:
                            snapshot = dict(results)
                        running[pool.submit(self._process, t, snapshot, manifest)] = t.name

                if not running:
                    break

                done, _ = wait(list(running), return_when=FIRST_COMPLETED)
                for fut in done:
                    name = running.pop(fut)
                    r = fut.result()
                    with self._lock:
                        results[name] = r
                    if r.status == TargetStatus.ERRORED and self._fail_fast():
                        stop = True

        return {t.name: results[t.name] for t in order if t.name in results}

    def run(self, names: Optional[Iterable[str]] = None) -> RunResult:
        """
        Executa os targets desatualizados (restritos a `names` e upstream).

        Raises:
            DuplicateTargetNameError / UnknownDependencyError /
            CycleDetectedError / CommandSyntaxError: grafo inválido (fatal).
        """
        order = plan_execution(self.graph.resolve(), names=names)

        manifest = create_manifest(
            run_id=self.ctx.run_id,
            started_at=self.ctx.created_at,
            version=__version__,
            config_hash=compute_config_hash(self.ctx.config),
            planned=[t.name for t in order],
        )
        add_event(manifest, event_type="run_started", ts=_utcnow(), payload={"planned": len(order)})
        self.ctx.log(target=None, level="INFO", message="run started", planned=len(order))

        workers = self._workers()
        try:
            if workers > 1 and len(order) > 1:
                results = self._run_parallel(order, manifest, workers)
            else:
                results = self._run_sequential(order, manifest)
        except Exception as e:
            # falha do próprio Engine (store inacessível, bug interno): registrar e propagar
            error = engine_execution_error(exc_type=e.__class__.__name__, exc_message=str(e))
            add_event(manifest, event_type="run_failed", ts=_utcnow(), payload=error.to_dict())
            save_manifest(manifest, self.ctx.store.manifest_path())
            raise

        run_result = RunResult(run_id=self.ctx.run_id, targets=results, manifest=manifest)
        finish_run(manifest, ts=_utcnow(), counts=run_result.counts())
        save_manifest(manifest, self.ctx.store.manifest_path())
        self.ctx.log(target=None, level="INFO", message="run finished", **run_result.counts())
        return run_result


def _path_exists(path: str) -> bool:
    return Path(path).exists()
