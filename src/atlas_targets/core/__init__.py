# src/atlas_targets/core/__init__.py
"""
Core do Atlas Targets.

Reúne as responsabilidades essenciais para declarar, planejar, executar e
rastrear um pipeline de targets, sem depender de notebooks ou renderizadores
de documentos.

Componentes principais:
    - config       → resolução de configuração (merge, hashing)
    - graph        → modelo de targets, analisador de dependências, grafo e planner
    - engine       → contexto de execução e execução incremental
    - traceability → Manifest e Event Log da run

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo comportamento é explícito e testado
    - A mesma definição produz o mesmo plano e os mesmos hashes
"""
