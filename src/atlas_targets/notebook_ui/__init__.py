from .renderers import (
    RenderResult,
    render_error,
    render_frame,
    render_payload,
    render_run_result,
    render_table_html,
)

__all__ = [
    "RenderResult",
    "render_error",
    "render_frame",
    "render_payload",
    "render_run_result",
    "render_table_html",
]
