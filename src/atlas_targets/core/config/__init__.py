# src/atlas_targets/core/config/__init__.py

"""
Camada de configuração do Atlas Targets.

Este pacote carrega, mescla e identifica (hash) a configuração efetiva
usada pelo Engine, pelo ResultStore e pelo preprocessador literário.

A configuração efetiva é sempre resolvida a partir de:
    - defaults embutidos no pacote (`DEFAULT_CONFIG`)
    - um arquivo de defaults do projeto (opcional)
    - um arquivo local de overrides (opcional)

Seções conhecidas (v1):
    - engine   → fail_fast, workers, log_level
    - store    → path do diretório de resultados
    - literate → script_dir e pipeline_script
    - targets  → ajustes por target (ex.: enabled)

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - A mesma entrada sempre produz a mesma configuração final
    - Conflitos de tipo durante o merge são tratados como erro
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import DEFAULT_CONFIG, load_config, resolve_store_path
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "DEFAULT_CONFIG",
    "compute_config_hash",
    "deep_merge",
    "load_config",
    "resolve_store_path",
]
