"""
Rastreabilidade do Atlas Targets — Manifest de run e Event Log.

API pública:
    - RunManifest     → estrutura do Manifest
    - create_manifest → criação explícita (sem eventos)
    - add_event       → evento explícito no Event Log
    - target_started / target_finished / target_skipped / target_failed
    - finish_run      → fecha a run com contagens por status
    - save_manifest / load_manifest → persistência JSON
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    finish_run,
    load_manifest,
    save_manifest,
    target_failed,
    target_finished,
    target_skipped,
    target_started,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "finish_run",
    "load_manifest",
    "save_manifest",
    "target_failed",
    "target_finished",
    "target_skipped",
    "target_started",
]
