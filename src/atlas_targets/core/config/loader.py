# src/atlas_targets/core/config/loader.py
"""
Loader de configuração do Atlas Targets.

A configuração efetiva é resolvida em três camadas, da menos para a mais
prioritária:
    1. `DEFAULT_CONFIG` (embutido no pacote)
    2. arquivo de defaults do projeto (opcional; obrigatório se informado)
    3. arquivo local de overrides (opcional; ignorado se não existir)

Responsabilidades do módulo:
    - Carregar arquivos YAML (PyYAML) ou JSON
    - Validar o tipo raiz (dict)
    - Aplicar `deep_merge` camada a camada

Limites explícitos:
    - Não valida semântica de targets
    - Não persiste configuração nem hash
"""

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge

PathLike = Union[str, Path]

DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "fail_fast": True,
        "workers": 1,
        "log_level": "INFO",
    },
    "store": {
        "path": ".atlas_targets",
    },
    "literate": {
        "script_dir": "_targets_py",
        "pipeline_script": "_targets.py",
    },
    "targets": {},
}


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Lê um arquivo de configuração e valida o tipo raiz.

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dict.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: Optional[PathLike] = None,
    local_path: Optional[PathLike] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Resolve a configuração efetiva.

    Args:
        defaults_path: Arquivo de defaults do projeto (opcional).
        local_path: Arquivo local de overrides (opcional, pode não existir).
        overrides: Overrides em memória, aplicados por último (ex.: testes,
            argumentos de `api.make`).

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        DefaultsNotFoundError: Se `defaults_path` for informado e não existir.
        UnsupportedConfigFormatError: Se o formato não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Em conflito de tipos durante o merge.
    """
    effective = deepcopy(DEFAULT_CONFIG)

    if defaults_path is not None:
        effective = deep_merge(effective, _load_file(Path(defaults_path)))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    if overrides:
        effective = deep_merge(effective, overrides)

    return effective


def resolve_store_path(config: Dict[str, Any], root: PathLike = ".") -> Path:
    """
    Caminho do store: `store.path` relativo à raiz do projeto (diretório do
    script do pipeline). Caminhos absolutos são mantidos.
    """
    raw = ((config or {}).get("store") or {}).get("path") or DEFAULT_CONFIG["store"]["path"]
    path = Path(str(raw))
    return path if path.is_absolute() else Path(root) / path
