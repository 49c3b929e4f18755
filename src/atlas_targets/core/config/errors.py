# src/atlas_targets/core/config/errors.py
"""
Exceções da camada de configuração do Atlas Targets.

Todas as falhas de carregamento e merge herdam de `ConfigError`, o que
permite ao chamador (API pública, preprocessador literário, testes)
capturar erros de configuração sem confundi-los com falhas de targets.

Invariantes:
    - Nenhuma exceção desta hierarquia representa erro de execução de target
    - Erros de configuração são sempre fatais (sem fallback silencioso)
"""


class ConfigError(Exception):
    """Exceção base para erros de configuração."""


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de defaults do projeto informado explicitamente, mas inexistente.

    Quando nenhum arquivo de defaults é informado, os defaults embutidos
    (`DEFAULT_CONFIG`) são usados e este erro nunca ocorre.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo de configuração não suportada.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo de configuração não é um mapa (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"workers": 1}}
        - override: {"engine": "parallel"}
    """
