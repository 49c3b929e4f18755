# src/atlas_targets/literate/preprocessor.py
"""
Preprocessador de chunks de documentos literários.

Máquina de estados com dois estados, relida a cada chunk:

    INTERACTIVE      → o usuário está percorrendo o documento (notebook/IDE)
    NON_INTERACTIVE  → o documento está sendo renderizado por inteiro

O estado de um chunk é `chunk.interactive` quando informado; caso contrário,
o padrão do documento (`interactive_default`).

Chunk global:
    - sempre executado no ambiente compartilhado (`env`);
    - NON_INTERACTIVE: também escrito em `<script_dir>/globals/<nome>.py`;
    - stand-in: executado apenas no modo interativo e nunca escrito.

Chunk de target:
    - INTERACTIVE: os targets são avaliados imediatamente, em ordem de
      dependência, e vinculados ao `env`; as definições substituem as
      anteriores no grafo interativo;
    - NON_INTERACTIVE: o chunk é escrito em `<script_dir>/targets/<nome>.py`.

Todo chunk não interativo (re)escreve o script do pipeline (`_targets.py`,
ou o caminho dado por `tar_script`).
Nomes de chunk repetidos em uma mesma passada não interativa são inválidos.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from atlas_targets.core.config.loader import load_config, resolve_store_path
from atlas_targets.core.engine.context import RunContext
from atlas_targets.core.engine.evaluation import evaluate_command
from atlas_targets.core.errors import chunk_missing_dependency
from atlas_targets.core.exceptions import DuplicateChunkNameError, MissingInteractiveDependencyError
from atlas_targets.core.graph import Target, TargetGraph, analyze_command, plan_execution, target
from atlas_targets.persistence.result_store import ResultStore

from .chunks import DocumentChunk
from .scripts import collect_targets, definition_namespace, write_chunk_script, write_pipeline_script

PathLike = Union[str, Path]


class LiterateState(str, Enum):
    INTERACTIVE = "interactive"
    NON_INTERACTIVE = "non_interactive"


@dataclass(frozen=True)
class ChunkResult:
    """O que o preprocessador fez com um chunk."""

    name: str
    state: LiterateState
    mode: str
    targets: Tuple[str, ...] = ()
    script: Optional[Path] = None
    executed: bool = False


class LiterateEngine:
    """
    Preprocessador de chunks (máquina de estados INTERACTIVE/NON_INTERACTIVE).

    `env` é o ambiente compartilhado do documento: é mutado in-place
    (ex.: passe `globals()` de um notebook para ver os valores).
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        env: Optional[Dict[str, Any]] = None,
        interactive_default: bool = False,
        *,
        root: PathLike = ".",
        store: Optional[ResultStore] = None,
    ):
        cfg = config if config is not None else load_config()
        self.root = Path(root)
        self.interactive_default = bool(interactive_default)

        literate_cfg = cfg.get("literate", {}) or {}
        self.script_dir = self.root / str(literate_cfg.get("script_dir", "_targets_py"))
        self.pipeline_script = self.root / str(literate_cfg.get("pipeline_script", "_targets.py"))

        store_path = resolve_store_path(cfg, self.root)
        self.ctx = RunContext(
            run_id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            config=cfg,
            store=store or ResultStore(path=store_path),
            env=env if env is not None else {},
        )
        self.graph = TargetGraph()
        self.state = LiterateState.INTERACTIVE if self.interactive_default else LiterateState.NON_INTERACTIVE
        self._seen: Set[str] = set()

    @property
    def env(self) -> Dict[str, Any]:
        return self.ctx.env

    # -----------------------------
    # Estado
    # -----------------------------
    def state_for(self, chunk: DocumentChunk) -> LiterateState:
        interactive = self.interactive_default if chunk.interactive is None else chunk.interactive
        return LiterateState.INTERACTIVE if interactive else LiterateState.NON_INTERACTIVE

    def begin_pass(self) -> None:
        """Inicia uma nova passada (reinicia a detecção de nomes repetidos)."""
        self._seen.clear()

    # -----------------------------
    # Processamento
    # -----------------------------
    def process(self, chunk: DocumentChunk) -> ChunkResult:
        self.state = self.state_for(chunk)
        self.ctx.log(target=chunk.name, level="DEBUG", message="chunk received", state=self.state.value, mode=chunk.mode.value)

        if chunk.is_global:
            return self._process_global(chunk)
        return self._process_target(chunk)

    def process_all(self, chunks: Iterable[DocumentChunk]) -> List[ChunkResult]:
        self.begin_pass()
        return [self.process(c) for c in chunks]

    def _register_name(self, chunk: DocumentChunk) -> None:
        if chunk.name in self._seen:
            raise DuplicateChunkNameError(
                f"Duplicate chunk name: {chunk.name}",
                details={"name": chunk.name},
                hint="Cada chunk do documento precisa de um nome único (tar_name/label).",
            )
        self._seen.add(chunk.name)

    def pipeline_script_for(self, chunk: DocumentChunk) -> Path:
        """Script do pipeline reescrito pelo chunk (`tar_script` ou o padrão)."""
        if chunk.script_path:
            return self.root / chunk.script_path
        return self.pipeline_script

    def _write(self, chunk: DocumentChunk) -> Path:
        self._register_name(chunk)
        script = write_chunk_script(self.script_dir, chunk)
        write_pipeline_script(self.pipeline_script_for(chunk), self.script_dir)
        self.ctx.log(target=chunk.name, level="INFO", message="script written", script=str(script))
        return script

    def _process_global(self, chunk: DocumentChunk) -> ChunkResult:
        if chunk.stand_in:
            if self.state != LiterateState.INTERACTIVE:
                return ChunkResult(name=chunk.name, state=self.state, mode=chunk.mode.value)
            evaluate_command(chunk.code, self.env, name=chunk.name)
            return ChunkResult(name=chunk.name, state=self.state, mode=chunk.mode.value, executed=True)

        evaluate_command(chunk.code, self.env, name=chunk.name)
        script = self._write(chunk) if self.state == LiterateState.NON_INTERACTIVE else None
        return ChunkResult(name=chunk.name, state=self.state, mode=chunk.mode.value, script=script, executed=True)

    def definitions(self, chunk: DocumentChunk) -> List[Target]:
        """Targets declarados pelo chunk (sem avaliar seus comandos)."""
        if chunk.simple:
            return [target(chunk.name, chunk.code)]
        value = evaluate_command(chunk.code, definition_namespace(self.env), name=chunk.name)
        return collect_targets(value, source=f"chunk '{chunk.name}'")

    def _process_target(self, chunk: DocumentChunk) -> ChunkResult:
        defs = self.definitions(chunk)
        names = tuple(t.name for t in defs)

        if self.state == LiterateState.NON_INTERACTIVE:
            script = self._write(chunk)
            return ChunkResult(name=chunk.name, state=self.state, mode=chunk.mode.value, targets=names, script=script)

        for t in defs:
            self.graph.supersede(t)
        for t in self._ordered(defs):
            self.env[t.name] = self._evaluate(t)
            self.ctx.log(target=t.name, level="INFO", message="evaluated interactively")
        return ChunkResult(name=chunk.name, state=self.state, mode=chunk.mode.value, targets=names, executed=True)

    # -----------------------------
    # Avaliação interativa
    # -----------------------------
    def _deps(self, t: Target) -> Tuple[str, ...]:
        known = set(self.graph.names()) | set(self.ctx.store.names())
        inferred = analyze_command(t.command, known - {t.name}, name=t.name)
        return tuple(sorted(set(inferred) | set(t.depends_on)))

    def _ordered(self, defs: List[Target]) -> List[Target]:
        local = {t.name for t in defs}
        scoped = [t.with_deps(d for d in self._deps(t) if d in local) for t in defs]
        return plan_execution(scoped)

    def _available(self, name: str) -> bool:
        return name in self.env or self.ctx.store.exists(name)

    def _value(self, name: str) -> Any:
        if name in self.env:
            return self.env[name]
        return self.ctx.store.read(name)

    def _evaluate(self, t: Target) -> Any:
        deps = self._deps(t)
        missing = [d for d in deps if not self._available(d)]
        if missing:
            payload = chunk_missing_dependency(target=t.name, missing=missing)
            raise MissingInteractiveDependencyError(
                f"target '{t.name}' depends on unavailable targets: {', '.join(missing)}",
                details=payload.details,
                hint=payload.hint,
            )

        ns = dict(self.env)
        for d in deps:
            ns[d] = self._value(d)
        ns.update(t.bindings)

        def load(names: Any) -> List[str]:
            targets = [names] if isinstance(names, str) else list(names)
            for n in targets:
                ns[n] = self._value(n)
            return targets

        ns.setdefault("read", self._value)
        ns.setdefault("read_raw", self._value)
        ns.setdefault("load", load)
        ns.setdefault("load_raw", load)
        return evaluate_command(t.command, ns, name=t.name)
