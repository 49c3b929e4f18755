"""
Targets de relatório do Atlas Targets.

Componentes:
    - renderer → protocolo `Renderer` (parse e renderização externos)
    - targets  → `report_target` e `report_rep`
"""

from .renderer import Renderer
from .targets import report_dependencies, report_rep, report_target

__all__ = ["Renderer", "report_dependencies", "report_rep", "report_target"]
