# src/atlas_targets/core/config/hashing.py
"""
Hashing canônico de estruturas serializáveis.

O mesmo algoritmo é usado para:
    - identificar a configuração efetiva de uma run (Manifest)
    - compor o hash de definição de um target (comando, formato, deps)

Política de hashing (v1):
    - JSON canônico (chaves ordenadas, separadores compactos, UTF-8)
    - SHA-256 em hexadecimal (64 caracteres)
"""

import hashlib
import json
from typing import Any, Dict


def canonical_hash(data: Any) -> str:
    """
    Retorna o SHA-256 da serialização JSON canônica de `data`.

    Valores não serializáveis em JSON são convertidos via `str`, o que
    mantém o hash estável para tipos simples como `Path`.
    """
    canonical_json = json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o hash determinístico da configuração efetiva.

    Invariantes:
        - Configurações estruturalmente equivalentes produzem o mesmo hash
        - A ordem original das chaves não influencia o resultado

    Args:
        config (Dict[str, Any]): Configuração efetiva.

    Returns:
        str: Hash SHA-256 hexadecimal.

    Raises:
        TypeError: Se `config` não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )
    return canonical_hash(config)
