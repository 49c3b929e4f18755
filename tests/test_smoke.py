# tests/test_smoke.py
"""
Testes de sanidade estrutural (smoke tests) do Atlas Targets.

Garantem que o pacote importa e expõe a API pública esperada.
Não validam comportamento de domínio.
"""


def test_smoke():
    import atlas_targets

    assert atlas_targets.__version__
    for name in ("make", "read", "load", "outdated", "manifest", "progress", "target"):
        assert hasattr(atlas_targets, name)
