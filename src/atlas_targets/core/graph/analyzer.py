"""
Analisador estático de dependências de comandos.

Este módulo inspeciona o texto de um comando (via `ast`) e retorna os nomes
de targets referenciados, sem executar nada.

Referências contabilizadas (estaticamente resolvíveis):
    - `read("x")` / `load("x")` com literal string
    - `read(x)` / `load(x)` com nome simples como argumento
    - `load(["x", "y"])` com lista/tupla literal de strings
    - nomes livres que coincidem com nomes de targets conhecidos

Referências excluídas (não resolvíveis sem execução):
    - `read_raw(...)` / `load_raw(...)`
    - f-strings, concatenações ou variáveis contendo o nome
    - acesso via `globals()[...]`, atributos ou subscripts

Invariantes:
    - Referências duplicadas colapsam em uma única dependência
    - Nomes vinculados dentro do próprio comando (atribuições, argumentos de
      lambda/funções, variáveis de comprehension, imports) não são dependências
      no escopo em que são vinculados
    - No nível do comando a ordem conta: `raw = raw + 1` ainda depende de `raw`
    - O retorno é sempre ordenado
"""

from __future__ import annotations

import ast
from typing import Iterable, List, Optional, Set, Tuple, Union

from atlas_targets.core.exceptions import CommandSyntaxError

READ_FUNCTIONS = frozenset({"read", "load"})
RAW_READ_FUNCTIONS = frozenset({"read_raw", "load_raw"})


def parse_command(command: str, *, name: Optional[str] = None) -> ast.Module:
    """Faz o parse do comando como módulo Python, com erro tipado."""
    try:
        return ast.parse(command, mode="exec")
    except SyntaxError as e:
        raise CommandSyntaxError(
            f"invalid command syntax{f' in target {name!r}' if name else ''}: {e.msg}",
            details={"target": name, "line": e.lineno, "offset": e.offset},
            hint="O comando deve ser código Python válido (expressão ou bloco).",
        ) from None


def _static_names(node: ast.AST) -> Tuple[Set[str], Set[str]]:
    """Separa literais string e nomes simples no argumento de read/load."""
    literals: Set[str] = set()
    symbols: Set[str] = set()
    elts = node.elts if isinstance(node, (ast.List, ast.Tuple, ast.Set)) else [node]
    for elt in elts:
        if isinstance(elt, ast.Constant) and isinstance(elt.value, str):
            literals.add(elt.value)
        elif isinstance(elt, ast.Name):
            symbols.add(elt.id)
    return literals, symbols


_NESTED_SCOPES = (
    ast.FunctionDef,
    ast.AsyncFunctionDef,
    ast.ClassDef,
    ast.Lambda,
    ast.ListComp,
    ast.SetComp,
    ast.DictComp,
    ast.GeneratorExp,
)


def _local_names(body: Iterable[ast.AST]) -> Set[str]:
    """Nomes locais de um corpo de função (sem descer em escopos aninhados)."""
    names: Set[str] = set()
    declared: Set[str] = set()
    stack = list(body)
    while stack:
        node = stack.pop()
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
            continue
        if isinstance(node, _NESTED_SCOPES):
            continue
        if isinstance(node, ast.Name) and not isinstance(node.ctx, ast.Load):
            names.add(node.id)
        elif isinstance(node, (ast.Import, ast.ImportFrom)):
            names.update(_import_names(node))
        elif isinstance(node, ast.ExceptHandler) and node.name:
            names.add(node.name)
        elif isinstance(node, (ast.Global, ast.Nonlocal)):
            declared.update(node.names)
        stack.extend(ast.iter_child_nodes(node))
    return names - declared


def _import_names(node: Union[ast.Import, ast.ImportFrom]) -> List[str]:
    if isinstance(node, ast.Import):
        return [(a.asname or a.name).split(".")[0] for a in node.names]
    return [a.asname or a.name for a in node.names]


def _argument_names(args: ast.arguments) -> Set[str]:
    names = {a.arg for a in list(args.posonlyargs) + list(args.args) + list(args.kwonlyargs)}
    if args.vararg is not None:
        names.add(args.vararg.arg)
    if args.kwarg is not None:
        names.add(args.kwarg.arg)
    return names


class _Scope:
    """
    Escopo léxico do comando.

    Em `module`/`class` os nomes são vinculados na ordem de execução: um nome
    lido antes da primeira atribuição continua livre (`raw = raw + 1`).
    Em `function`/`comprehension` os nomes locais são conhecidos de antemão.
    """

    def __init__(self, kind: str, parent: Optional["_Scope"] = None, bound: Iterable[str] = ()):
        self.kind = kind
        self.parent = parent
        self.bound: Set[str] = set(bound)


class _ReferenceCollector(ast.NodeVisitor):
    def __init__(self) -> None:
        self.scope = _Scope("module")
        self.free: Set[str] = set()
        self.read_literals: Set[str] = set()
        self.read_symbols: Set[str] = set()

    @property
    def reads(self) -> Set[str]:
        return self.read_literals | self.read_symbols

    # -----------------------------
    # Escopos
    # -----------------------------
    def _is_bound(self, name: str) -> bool:
        scope: Optional[_Scope] = self.scope
        inner = True
        while scope is not None:
            # corpo de classe não é visível em funções aninhadas
            if name in scope.bound and (inner or scope.kind != "class"):
                return True
            inner = False
            scope = scope.parent
        return False

    def _load(self, name: str) -> None:
        if not self._is_bound(name):
            self.free.add(name)

    def _bind(self, name: str) -> None:
        self.scope.bound.add(name)

    def _enter(self, kind: str, bound: Iterable[str] = ()) -> None:
        self.scope = _Scope(kind, self.scope, bound)

    def _leave(self) -> None:
        self.scope = self.scope.parent or self.scope

    def _visit_all(self, nodes: Iterable[Optional[ast.AST]]) -> None:
        for node in nodes:
            if node is not None:
                self.visit(node)

    # -----------------------------
    # Referências
    # -----------------------------
    def _add_read_arg(self, node: ast.AST) -> None:
        literals, symbols = _static_names(node)
        self.read_literals |= literals
        # read(x) com x vinculado no comando é uma forma programática
        self.read_symbols |= {s for s in symbols if not self._is_bound(s)}

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        if isinstance(func, ast.Name) and func.id in READ_FUNCTIONS:
            if node.args:
                self._add_read_arg(node.args[0])
            for kw in node.keywords:
                if kw.arg in {"name", "names"}:
                    self._add_read_arg(kw.value)
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, ast.Load):
            self._load(node.id)
        else:
            self._bind(node.id)

    # -----------------------------
    # Ordem de avaliação
    # -----------------------------
    def visit_Assign(self, node: ast.Assign) -> None:
        self.visit(node.value)
        self._visit_all(node.targets)

    def visit_AugAssign(self, node: ast.AugAssign) -> None:
        if isinstance(node.target, ast.Name):
            self._load(node.target.id)
        self.visit(node.value)
        self.visit(node.target)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        self._visit_all([node.value, node.annotation, node.target])

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self.visit(node.value)
        scope = self.scope
        while scope.kind == "comprehension" and scope.parent is not None:
            scope = scope.parent
        scope.bound.add(node.target.id)

    def visit_For(self, node: ast.For) -> None:
        self.visit(node.iter)
        self.visit(node.target)
        self._visit_all(node.body + node.orelse)

    visit_AsyncFor = visit_For  # type: ignore[assignment]

    def visit_Import(self, node: ast.Import) -> None:
        for n in _import_names(node):
            self._bind(n)

    visit_ImportFrom = visit_Import  # type: ignore[assignment]

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        self._visit_all([node.type])
        if node.name:
            self._bind(node.name)
        self._visit_all(node.body)

    def visit_Global(self, node: ast.Global) -> None:
        return None

    visit_Nonlocal = visit_Global  # type: ignore[assignment]

    # -----------------------------
    # Escopos aninhados
    # -----------------------------
    def _visit_signature(self, args: ast.arguments) -> None:
        self._visit_all(list(args.defaults) + list(args.kw_defaults))

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self._visit_all(node.decorator_list)
        self._visit_signature(node.args)
        self._bind(node.name)
        self._enter("function", _argument_names(node.args) | _local_names(node.body))
        self._visit_all(node.body)
        self._leave()

    visit_AsyncFunctionDef = visit_FunctionDef  # type: ignore[assignment]

    def visit_Lambda(self, node: ast.Lambda) -> None:
        self._visit_signature(node.args)
        self._enter("function", _argument_names(node.args))
        self.visit(node.body)
        self._leave()

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._visit_all(list(node.decorator_list) + list(node.bases) + [k.value for k in node.keywords])
        self._enter("class")
        self._visit_all(node.body)
        self._leave()
        self._bind(node.name)

    def _visit_comprehension(self, generators: List[ast.comprehension], results: List[ast.AST]) -> None:
        # o iterável do primeiro gerador é avaliado no escopo externo
        self.visit(generators[0].iter)
        self._enter("comprehension")
        for i, gen in enumerate(generators):
            if i:
                self.visit(gen.iter)
            self.visit(gen.target)
            self._visit_all(gen.ifs)
        self._visit_all(results)
        self._leave()

    def visit_ListComp(self, node: ast.ListComp) -> None:
        self._visit_comprehension(node.generators, [node.elt])

    visit_SetComp = visit_ListComp  # type: ignore[assignment]
    visit_GeneratorExp = visit_ListComp  # type: ignore[assignment]

    def visit_DictComp(self, node: ast.DictComp) -> None:
        self._visit_comprehension(node.generators, [node.key, node.value])


def _collect(command: str, name: Optional[str]) -> _ReferenceCollector:
    collector = _ReferenceCollector()
    collector.visit(parse_command(command, name=name))
    return collector


def free_names(command: str, *, name: Optional[str] = None) -> Tuple[str, ...]:
    """Nomes lidos pelo comando e não vinculados dentro dele (ordenados)."""
    c = _collect(command, name)
    return tuple(sorted(c.free))


def analyze_command(
    command: str,
    known_names: Optional[Iterable[str]] = None,
    *,
    name: Optional[str] = None,
) -> Tuple[str, ...]:
    """
    Retorna os nomes de targets referenciados estaticamente por `command`.

    Args:
        command: Texto do comando.
        known_names: Nomes de targets do grafo. Quando informado, nomes livres
            coincidentes também contam como dependência.
        name: Nome do target dono do comando (mensagens de erro e exclusão
            de auto-referência).

    Returns:
        Tuple[str, ...]: Dependências ordenadas e sem duplicatas.

    Raises:
        CommandSyntaxError: Se o comando não for Python válido.
    """
    c = _collect(command, name)
    refs: Set[str] = set(c.reads)

    if known_names is not None:
        known = set(known_names)
        refs |= {n for n in c.free if n in known}

    refs -= READ_FUNCTIONS | RAW_READ_FUNCTIONS
    if name is not None:
        refs.discard(name)
    return tuple(sorted(refs))
