"""
Integração com documentos literários.

Componentes:
    - chunks       → `DocumentChunk` e normalização de opções de chunk
    - preprocessor → `LiterateEngine` (estados INTERACTIVE/NON_INTERACTIVE)
    - scripts      → escrita de scripts por chunk e carregamento do pipeline
"""

from .chunks import CHUNK_OPTIONS, ChunkMode, DocumentChunk
from .preprocessor import ChunkResult, LiterateEngine, LiterateState
from .scripts import (
    Pipeline,
    collect_targets,
    definition_namespace,
    load_pipeline,
    load_script_directory,
    write_chunk_script,
    write_pipeline_script,
)

__all__ = [
    "CHUNK_OPTIONS",
    "ChunkMode",
    "ChunkResult",
    "DocumentChunk",
    "LiterateEngine",
    "LiterateState",
    "Pipeline",
    "collect_targets",
    "definition_namespace",
    "load_pipeline",
    "load_script_directory",
    "write_chunk_script",
    "write_pipeline_script",
]
