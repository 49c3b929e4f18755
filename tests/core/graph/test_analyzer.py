# tests/core/graph/test_analyzer.py
"""
Testes do analisador estático de dependências.

Os testes asseguram que:
- `read`/`load` com literais, nomes simples e listas literais contam
- formas programáticas (`read_raw`, f-strings, concatenação) não contam
- nomes vinculados no próprio comando não são dependências
- nomes livres coincidentes com targets conhecidos contam
- duplicatas colapsam e o retorno é ordenado
"""

import pytest

try:
    from atlas_targets.core.exceptions import CommandSyntaxError
    from atlas_targets.core.graph.analyzer import analyze_command, free_names
except Exception as e:  # noqa: BLE001
    analyze_command = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing analyzer. Implement:
- src/atlas_targets/core/graph/analyzer.py (analyze_command)
Import error: {_IMPORT_ERR}
""")


def test_literal_read_and_load_are_counted():
    _require_imports()
    assert analyze_command('read("raw") + load("clean")') == ("clean", "raw")


def test_literal_list_in_load():
    _require_imports()
    assert analyze_command('load(["a", "b"])') == ("a", "b")


def test_bare_name_argument_is_counted():
    _require_imports()
    assert analyze_command("read(raw)") == ("raw",)


def test_duplicates_collapse():
    _require_imports()
    assert analyze_command('read("x")\nread("x")\nload("x")') == ("x",)


@pytest.mark.parametrize(
    "command",
    [
        'read_raw("x")',
        'load_raw(["x"])',
        'read(f"{prefix}_x")',
        'read("x" + suffix)',
        'globals()["x"]',
        'read(names[0])',
    ],
)
def test_programmatic_forms_are_excluded(command):
    _require_imports()
    assert analyze_command(command) == ()


def test_locally_bound_name_is_not_a_dependency():
    _require_imports()
    command = 'name = "x"\nread(name)'
    assert analyze_command(command) == ()


def test_free_names_matching_known_targets():
    _require_imports()
    command = "raw.dropna().merge(lookup)"
    assert analyze_command(command, known_names={"raw", "lookup", "other"}) == ("lookup", "raw")
    assert analyze_command(command) == ()


def test_bound_names_shadow_targets():
    """Atribuições, argumentos de lambda e comprehensions escondem targets homônimos."""
    _require_imports()
    command = (
        "raw = 1\n"
        "f = lambda model: model\n"
        "[clean for clean in range(3)]\n"
        "raw + f(2)"
    )
    assert analyze_command(command, known_names={"raw", "model", "clean"}) == ()


def test_self_reference_is_dropped():
    _require_imports()
    assert analyze_command('read("me")', name="me") == ()


def test_free_names():
    _require_imports()
    assert free_names("import math\nx = math.sqrt(y)\nx + z") == ("y", "z")


def test_syntax_error_is_typed():
    _require_imports()
    with pytest.raises(CommandSyntaxError) as exc:
        analyze_command("read(", name="broken")
    assert exc.value.details["target"] == "broken"


def test_reassigned_target_is_still_a_dependency():
    """Ler antes de atribuir mantém a dependência (`raw = raw + 1`)."""
    _require_imports()
    assert analyze_command("raw = raw + 1\nraw", {"raw"}, name="clean") == ("raw",)
    assert analyze_command("raw += 1\nraw", {"raw"}, name="clean") == ("raw",)


def test_name_bound_later_in_command_counts_before_binding():
    _require_imports()
    command = "total = sum(values)\nvalues = []\ntotal"
    assert analyze_command(command, {"values"}) == ("values",)


def test_scoped_bindings_do_not_leak():
    """Argumentos e variáveis de comprehension só valem no próprio escopo."""
    _require_imports()
    command = (
        "f = lambda model: model + 1\n"
        "squares = [clean * clean for clean in range(3)]\n"
        "def fit(data):\n"
        "    return data\n"
        "(model, clean, data)"
    )
    assert analyze_command(command, {"model", "clean", "data"}) == ("clean", "data", "model")


def test_function_body_reads_outer_names():
    _require_imports()
    command = "def scale(x):\n    factor = 2\n    return x * factor * weights\nscale(raw)"
    assert free_names(command) == ("raw", "weights")


def test_comprehension_first_iterable_is_outer_scope():
    _require_imports()
    assert analyze_command("[x for x in x]", {"x"}) == ("x",)
