"""Persistência canônica de resultados de targets (v1).

No Atlas Targets, cada target construído é persistido de forma **explícita**
e **rastreável** sob o diretório do store, chaveado pelo nome do target:

- `objects/<name>.joblib` → valor retornado pelo comando (joblib)
- `meta/<name>.json`      → metadados (hashes, status, duração, erro)

Os metadados são a fonte de verdade para decidir se um target está
atualizado: o Engine compara o hash de definição atual com o armazenado e,
para targets de formato `file`, o hash do conteúdo dos arquivos.

Decisões (v1):
- Formato de objetos: joblib (mesmo formato para qualquer valor Python)
- Hash de valores: `joblib.hash` (estável para DataFrames e arrays)
- Hash de arquivos: SHA-256 do conteúdo, em ordem estável de caminhos
- Escrita atômica (arquivo temporário + `os.replace`)

Limites explícitos:
- Não decide se um target está desatualizado
- Não executa comandos
"""

from __future__ import annotations

import hashlib
import json
import os
import shutil
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, MutableMapping, Optional, Union

import joblib

from atlas_targets.core.exceptions import TargetNotFoundError
from atlas_targets.core.graph.target import TargetFormat

PathLike = Union[str, Path]


@dataclass(frozen=True)
class TargetMeta:
    """Metadados persistidos de um target."""

    name: str
    format: str
    status: str
    definition_hash: Optional[str] = None
    data_hash: Optional[str] = None
    deps: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    seconds: float = 0.0
    built_at: Optional[str] = None
    error: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetMeta":
        return cls(
            name=data["name"],
            format=data.get("format", TargetFormat.VALUE.value),
            status=data.get("status", "built"),
            definition_hash=data.get("definition_hash"),
            data_hash=data.get("data_hash"),
            deps=list(data.get("deps", []) or []),
            files=list(data.get("files", []) or []),
            seconds=float(data.get("seconds", 0.0) or 0.0),
            built_at=data.get("built_at"),
            error=data.get("error"),
        )


def file_paths(value: Any) -> List[str]:
    """Normaliza o retorno de um target `file` para uma lista de caminhos."""
    if isinstance(value, (str, Path)):
        return [str(value)]
    if isinstance(value, (list, tuple)) and all(isinstance(v, (str, Path)) for v in value):
        return [str(v) for v in value]
    raise TypeError(
        f"file targets must return a path or a list of paths, got {type(value).__name__}"
    )


def hash_files(paths: Iterable[PathLike]) -> str:
    """SHA-256 combinado do conteúdo dos arquivos (ordem estável)."""
    h = hashlib.sha256()
    for p in sorted(str(x) for x in paths):
        path = Path(p)
        h.update(p.encode("utf-8"))
        if path.is_dir():
            for child in sorted(c for c in path.rglob("*") if c.is_file()):
                h.update(str(child.relative_to(path)).encode("utf-8"))
                h.update(child.read_bytes())
        else:
            with path.open("rb") as f:
                for chunk in iter(lambda: f.read(8192), b""):
                    h.update(chunk)
    return h.hexdigest()


def hash_value(value: Any, fmt: TargetFormat = TargetFormat.VALUE) -> str:
    """Hash do dado de um target, conforme o formato."""
    if fmt == TargetFormat.FILE:
        return hash_files(file_paths(value))
    return joblib.hash(value)


class ResultStore:
    """Store canônica (v1) para valores e metadados de targets."""

    def __init__(self, *, path: PathLike):
        self.root = Path(path)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def object_path(self, name: str) -> Path:
        return self.root / "objects" / f"{name}.joblib"

    def meta_path(self, name: str) -> Path:
        return self.root / "meta" / f"{name}.json"

    def manifest_path(self) -> Path:
        return self.root / "manifest.json"

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def meta(self, name: str) -> Optional[TargetMeta]:
        path = self.meta_path(name)
        if not path.exists():
            return None
        return TargetMeta.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def write_meta(self, meta: TargetMeta) -> None:
        path = self.meta_path(meta.name)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(meta.to_dict(), ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, path)

    def names(self) -> List[str]:
        """Nomes com metadados no store (ordenados)."""
        meta_dir = self.root / "meta"
        if not meta_dir.exists():
            return []
        return sorted(p.stem for p in meta_dir.glob("*.json"))

    # ------------------------------------------------------------------
    # Persist / Load
    # ------------------------------------------------------------------
    def save(
        self,
        name: str,
        value: Any,
        *,
        fmt: TargetFormat,
        definition_hash: str,
        deps: Iterable[str] = (),
        seconds: float = 0.0,
    ) -> TargetMeta:
        """Persiste o valor e os metadados de um target construído com sucesso.

        Returns:
            TargetMeta: metadados gravados.
        """
        files = file_paths(value) if fmt == TargetFormat.FILE else []

        path = self.object_path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".joblib.tmp")
        joblib.dump(value, tmp)
        os.replace(tmp, path)

        meta = TargetMeta(
            name=name,
            format=fmt.value,
            status="built",
            definition_hash=definition_hash,
            data_hash=hash_value(value, fmt),
            deps=sorted(deps),
            files=files,
            seconds=round(float(seconds), 6),
            built_at=datetime.now(timezone.utc).isoformat(),
        )
        self.write_meta(meta)
        return meta

    def save_error(
        self,
        name: str,
        *,
        fmt: TargetFormat,
        definition_hash: Optional[str],
        error: Dict[str, Any],
        deps: Iterable[str] = (),
        seconds: float = 0.0,
    ) -> TargetMeta:
        """Registra a falha de um target. O objeto anterior (se houver) é mantido."""
        previous = self.meta(name)
        meta = TargetMeta(
            name=name,
            format=fmt.value,
            status="errored",
            definition_hash=definition_hash,
            data_hash=previous.data_hash if previous else None,
            deps=sorted(deps),
            files=previous.files if previous else [],
            seconds=round(float(seconds), 6),
            built_at=datetime.now(timezone.utc).isoformat(),
            error=dict(error),
        )
        self.write_meta(meta)
        return meta

    def exists(self, name: str) -> bool:
        return self.object_path(name).exists()

    def read(self, name: str) -> Any:
        """Carrega o valor persistido de `name` sem recalcular."""
        path = self.object_path(name)
        if not path.exists():
            raise TargetNotFoundError(
                f"Target '{name}' has no stored value",
                details={"name": name, "store": str(self.root)},
                hint="Execute make() para construir o target antes de lê-lo.",
            )
        return joblib.load(path)

    def load(self, names: Iterable[str], namespace: MutableMapping[str, Any]) -> List[str]:
        """Carrega `names` em `namespace` (ex.: `globals()` de um notebook)."""
        loaded: List[str] = []
        for n in names:
            namespace[n] = self.read(n)
            loaded.append(n)
        return loaded

    def delete(self, name: str) -> None:
        for p in (self.object_path(name), self.meta_path(name)):
            if p.exists():
                p.unlink()

    def destroy(self) -> None:
        """Remove todo o diretório do store."""
        if self.root.exists():
            shutil.rmtree(self.root)


__all__ = ["ResultStore", "TargetMeta", "file_paths", "hash_files", "hash_value"]
