"""
Manifest de run — rastreabilidade das execuções do Atlas Targets.

O Manifest consolida, de forma determinística e auditável:
    - metadados da run (run_id, started_at, finished_at, versão)
    - hash da configuração efetiva
    - estado incremental de cada target tocado pela run
    - Event Log ordenado de eventos explícitos

Eventos canônicos:
    - run_started / run_finished
    - target_started / target_finished / target_skipped / target_failed

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico (`sort_keys`)
    - Nenhum evento é emitido implicitamente: cada mutação é uma chamada
      explícita desta API (o Engine é o único chamador em produção)

Invariantes:
    - `events` é sempre uma lista na ordem de chamada
    - `targets` é sempre um dicionário indexado pelo nome do target
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def _utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    return max(0, int((_utc(end) - _utc(start)).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Registro forense de uma run.

    Campos principais:
        - run: run_id, started_at, finished_at, version
        - inputs: config_hash, targets planejados
        - targets: estado incremental por target
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    targets: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "targets": {k: dict(v) for k, v in self.targets.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            targets={k: dict(v) for k, v in (data.get("targets", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    version: str,
    config_hash: str,
    planned: Optional[List[str]] = None,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    ⚠️ Não emite eventos: o Event Log inicia vazio.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "version": version,
        },
        inputs={
            "config_hash": config_hash,
            "planned": list(planned or []),
        },
        targets={},
        events=[],
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    target: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona um evento explícito ao Event Log (ordem de chamada preservada)."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if target is not None:
        ev["target"] = target
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def target_started(manifest: RunManifest, *, target: str, fmt: str, ts: datetime) -> None:
    manifest.targets.setdefault(target, {})
    manifest.targets[target].update(
        {
            "name": target,
            "format": fmt,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="target_started", ts=ts, target=target, payload={"format": fmt})


def target_finished(manifest: RunManifest, *, target: str, ts: datetime, result: Dict[str, Any]) -> None:
    """
    Registra a conclusão de um target com o dicionário de `TargetResult`.

    A duração é calculada a partir de `started_at` quando disponível.
    """
    s = manifest.targets.setdefault(target, {"name": target})
    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    status = result.get("status", "built")
    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "summary": result.get("summary"),
            "data_hash": result.get("data_hash"),
            "warnings": result.get("warnings", []) or [],
        }
    )
    add_event(
        manifest,
        event_type="target_finished",
        ts=ts,
        target=target,
        payload={"status": status, "duration_ms": s["duration_ms"]},
    )


def target_skipped(manifest: RunManifest, *, target: str, ts: datetime, reason: str) -> None:
    s = manifest.targets.setdefault(target, {"name": target})
    s.update({"status": "skipped", "summary": reason})
    add_event(manifest, event_type="target_skipped", ts=ts, target=target, payload={"reason": reason})


def target_failed(manifest: RunManifest, *, target: str, ts: datetime, error: Dict[str, Any]) -> None:
    s = manifest.targets.setdefault(target, {"name": target})
    s.update(
        {
            "status": "errored",
            "finished_at": _iso(ts),
            "error": dict(error),
        }
    )
    add_event(
        manifest,
        event_type="target_failed",
        ts=ts,
        target=target,
        payload={"type": error.get("type"), "message": error.get("message")},
    )


def finish_run(manifest: RunManifest, *, ts: datetime, counts: Dict[str, int]) -> None:
    manifest.run["finished_at"] = _iso(ts)
    add_event(manifest, event_type="run_finished", ts=ts, payload={"counts": dict(counts)})


def save_manifest(manifest: RunManifest, path: Path) -> None:
    """Persiste o Manifest em JSON (chaves ordenadas, diretórios criados)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True, default=str),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> RunManifest:
    """Restaura um Manifest persistido (propaga erros de I/O e de JSON)."""
    return RunManifest.from_dict(json.loads(path.read_text(encoding="utf-8")))
