"""
Contexto de execução compartilhado de uma run.

O `RunContext` reúne tudo o que o Engine precisa para avaliar comandos e
registrar o que aconteceu:
    - identidade da run (run_id, created_at)
    - configuração efetiva
    - `ResultStore` onde os valores são persistidos
    - ambiente global (`env`): funções e objetos definidos por chunks/scripts
      globais, visíveis para todos os comandos
    - cache em memória dos valores construídos ou lidos na run
    - log estruturado de eventos e warnings por target

Invariantes:
    - Eventos sempre incluem `run_id`, `target`, `level` e timestamp UTC
    - Eventos abaixo de `engine.log_level` são descartados
    - Acesso ao cache de valores e ao log é protegido por lock (workers > 1)
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from atlas_targets.core.config.loader import load_config, resolve_store_path
from atlas_targets.persistence.result_store import ResultStore

LOG_LEVELS: Dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}


@dataclass
class RunContext:
    """
    Contexto canônico de uma run do pipeline.

    Decisões arquiteturais:
        - Comandos nunca acessam o store diretamente; o Engine injeta os
          valores de dependências e as funções `read`/`load`
        - O cache de valores evita reler do disco targets já usados na run
    """

    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    store: ResultStore
    env: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _values: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    @classmethod
    def create(
        cls,
        *,
        config: Optional[Dict[str, Any]] = None,
        env: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
        store: Optional[ResultStore] = None,
        root: Union[str, Path] = ".",
    ) -> "RunContext":
        cfg = config if config is not None else load_config()
        store_path = resolve_store_path(cfg, root)
        return cls(
            run_id=run_id or uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            config=cfg,
            store=store or ResultStore(path=store_path),
            env=dict(env or {}),
        )

    # -----------------------------
    # Valores
    # -----------------------------
    def set_value(self, name: str, value: Any) -> None:
        with self._lock:
            self._values[name] = value

    def has_value(self, name: str) -> bool:
        with self._lock:
            return name in self._values

    def get_value(self, name: str) -> Any:
        """Valor de `name`: cache da run ou, na ausência, o store."""
        with self._lock:
            if name in self._values:
                return self._values[name]
        value = self.store.read(name)
        self.set_value(name, value)
        return value

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def _min_level(self) -> int:
        engine_cfg = (self.config or {}).get("engine", {}) or {}
        return LOG_LEVELS.get(str(engine_cfg.get("log_level", "INFO")).upper(), 20)

    def log(self, *, target: Optional[str], level: str, message: str, **extra: Any) -> None:
        if LOG_LEVELS.get(level.upper(), 20) < self._min_level():
            return
        event = {
            "run_id": self.run_id,
            "target": target,
            "level": level.upper(),
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, target: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(target, []).append(message)
