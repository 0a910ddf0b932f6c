"""
Single-file HTML report.

A report is an ordered list of ``(title, content)`` sections where content is
a DataFrame, a plotly Figure, a matplotlib Figure or a plain string.
"""
from __future__ import annotations
import base64
import html
import io
from pathlib import Path
from typing import Any, Iterable, Tuple

import pandas as pd
import plotly.graph_objects as go
from matplotlib.figure import Figure

from .config import WorkflowConfig

_STYLE = """
body { font-family: sans-serif; margin: 2em auto; max-width: 1100px; color: #1f2937; }
h1 { border-bottom: 2px solid #cbd5e1; }
table { border-collapse: collapse; font-size: 0.9em; }
th, td { border: 1px solid #cbd5e1; padding: 3px 8px; text-align: right; }
img { max-width: 100%; }
"""


def _matplotlib_html(fig: Figure) -> str:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=120, bbox_inches="tight")
    data = base64.b64encode(buf.getvalue()).decode("ascii")
    return f'<img src="data:image/png;base64,{data}"/>'


def render_section(content: Any) -> str:
    if isinstance(content, pd.DataFrame):
        return content.to_html(float_format=lambda v: f"{v:.4g}", border=0)
    if isinstance(content, pd.Series):
        return content.to_frame().to_html(float_format=lambda v: f"{v:.4g}", border=0)
    if isinstance(content, go.Figure):
        return content.to_html(full_html=False, include_plotlyjs="cdn")
    if isinstance(content, Figure):
        return _matplotlib_html(content)
    return f"<pre>{html.escape(str(content))}</pre>"


def render_report(sections: Iterable[Tuple[str, Any]], config: WorkflowConfig,
                  title: str = "Compositional aggregate stability (CASI)") -> Path:
    """Write the sections into ``config.report_path`` and return the path."""
    parts = [
        "<!DOCTYPE html>",
        f"<html><head><meta charset='utf-8'><title>{html.escape(title)}</title>",
        f"<style>{_STYLE}</style></head><body>",
        f"<h1>{html.escape(title)}</h1>",
    ]
    for heading, content in sections:
        parts.append(f"<h2>{html.escape(heading)}</h2>")
        parts.append(render_section(content))
    parts.append("</body></html>")

    path = Path(config.report_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(parts), encoding="utf-8")
    return path
