# src/atlas_targets/notebook_ui/renderers.py
"""
Notebook UI Adapter (v1)

Objetivo:
- Exibir em notebooks o estado do pipeline: progresso por target, resultado
  de uma run, tabela do grafo e payloads de erro.
- NÃO altera os objetos recebidos.
- NÃO executa targets nem acessa o store.

Saídas:
- HTML (string) quando possível
- fallback textual sempre preenchido
"""

from __future__ import annotations

import html
import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

STATUS_COLORS = {
    "built": "#2e7d32",
    "skipped": "#757575",
    "errored": "#c62828",
    "outdated": "#ef6c00",
}


@dataclass(frozen=True)
class RenderResult:
    """Resultado de renderização (apenas apresentação)."""
    html: Optional[str]
    text: str

    def _repr_html_(self) -> Optional[str]:
        return self.html


def _escape(s: Any) -> str:
    return html.escape("" if s is None else str(s))


def _as_pretty_json(payload: Any) -> str:
    try:
        return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
    except TypeError:
        return repr(payload)


def _cell(column: str, value: Any) -> str:
    if column == "status" and str(value) in STATUS_COLORS:
        color = STATUS_COLORS[str(value)]
        return f"<td><span style='color:{color}; font-weight:600'>{_escape(value)}</span></td>"
    if isinstance(value, (list, tuple)):
        return f"<td>{_escape(', '.join(str(v) for v in value))}</td>"
    return f"<td>{_escape(value)}</td>"


def render_table_html(
    rows: Sequence[Mapping[str, Any]],
    columns: Optional[Sequence[str]] = None,
    title: Optional[str] = None,
    max_rows: int = 200,
) -> str:
    """Tabela HTML a partir de registros (colunas = união ordenada das chaves)."""
    items = list(rows)[:max_rows]
    heading = f"<h4>{_escape(title)}</h4>" if title else ""
    if not items:
        return f"{heading}<div><em>(empty)</em></div>"

    if columns is None:
        columns = list(dict.fromkeys(k for row in items for k in row.keys()))

    th = "".join(f"<th>{_escape(c)}</th>" for c in columns)
    trs = "".join(
        "<tr>" + "".join(_cell(c, row.get(c)) for c in columns) + "</tr>"
        for row in items
    )
    return f"{heading}<table><thead><tr>{th}</tr></thead><tbody>{trs}</tbody></table>"


def render_frame(frame: pd.DataFrame, title: Optional[str] = None) -> RenderResult:
    """Renderiza um DataFrame (ex.: `api.progress()` ou `api.manifest()`)."""
    records = frame.to_dict(orient="records")
    return RenderResult(
        html=render_table_html(records, columns=[str(c) for c in frame.columns], title=title),
        text=frame.to_string(index=False) if len(frame) else "(empty)",
    )


def render_error(error: Mapping[str, Any]) -> RenderResult:
    """Card de erro para um `ErrorPayload.to_dict()`."""
    details = error.get("details") or {}
    detail_rows = "".join(
        f"<tr><td><code>{_escape(k)}</code></td><td>{_escape(v)}</td></tr>"
        for k, v in sorted(details.items())
    )
    hint = error.get("hint")
    hint_html = f"<div><strong>hint:</strong> {_escape(hint)}</div>" if hint else ""
    card = (
        "<div style='border:1px solid #c62828; border-radius:12px; padding:12px; margin:8px 0;'>"
        f"<h3 style='margin:0 0 6px 0;'>{_escape(error.get('type'))}</h3>"
        f"<div>{_escape(error.get('message'))}</div>"
        f"{hint_html}"
        f"<table><tbody>{detail_rows}</tbody></table>"
        "</div>"
    )
    text = f"[{error.get('type')}] {error.get('message')}"
    if hint:
        text += f"\nhint: {hint}"
    return RenderResult(html=card, text=text)


def render_run_result(run_result: Any) -> RenderResult:
    """
    Resumo de um `RunResult`: contagens por status, tabela de targets e
    um card por target com erro.
    """
    rows: List[dict] = [r.to_dict() for r in run_result.targets.values()]
    counts = run_result.counts()
    summary = " · ".join(f"{k}: {v}" for k, v in counts.items())

    parts = [
        f"<h4>run {_escape(run_result.run_id)}</h4>",
        f"<div>{_escape(summary)}</div>",
        render_table_html(rows, columns=["name", "status", "summary", "seconds"]),
    ]
    parts.extend(render_error(r["error"]).html or "" for r in rows if r.get("error"))

    lines = [f"run {run_result.run_id} ({summary})"]
    lines.extend(f"  {r['name']:<24} {r['status']:<8} {r['summary']}" for r in rows)
    return RenderResult(html="".join(parts), text="\n".join(lines))


def render_payload(payload: Any) -> RenderResult:
    """
    Renderizador genérico:
    - DataFrame -> tabela
    - resultado de run -> resumo
    - dict de erro (type/message) -> card
    - list[dict] -> tabela
    - caso contrário -> JSON pretty
    """
    if isinstance(payload, pd.DataFrame):
        return render_frame(payload)
    if hasattr(payload, "targets") and hasattr(payload, "counts"):
        return render_run_result(payload)
    if isinstance(payload, Mapping) and {"type", "message"} <= set(payload.keys()):
        return render_error(payload)
    if isinstance(payload, Iterable) and not isinstance(payload, (str, bytes, Mapping)):
        items = list(payload)
        if items and all(isinstance(x, Mapping) for x in items):
            return RenderResult(html=render_table_html(items), text=_as_pretty_json(items))
    return RenderResult(html=None, text=_as_pretty_json(payload))
