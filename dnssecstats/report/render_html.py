from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import List, Optional

from ..core.results import CSV_HEADER, ResultSet


def _esc(s: str) -> str:
    return html.escape(s, quote=True)


def render_report_html(results: ResultSet, source: str = "", created: Optional[str] = None) -> str:
    created = created or datetime.now(timezone.utc).isoformat()

    def row(cells: List[str], tag: str = "td") -> str:
        return "<tr>" + "".join(f"<{tag}>{_esc(c)}</{tag}>" for c in cells) + "</tr>"

    body = "".join(row(r.to_row()) for r in results.records)
    if not body:
        body = f'<tr><td colspan="{len(CSV_HEADER)}"><em>No domains probed.</em></td></tr>'

    # Simple, clean HTML (no external deps)
    html_doc = f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>DNSSEC adoption - {_esc(source or "results")}</title>
  <style>
    body {{ font-family: ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Arial; margin: 24px; line-height: 1.4; }}
    .card {{ border: 1px solid #2a2a2a; border-radius: 14px; padding: 16px; margin-bottom: 16px; }}
    .muted {{ opacity: 0.8; }}
    h1 {{ margin: 0 0 8px 0; }}
    table {{ border-collapse: collapse; width: 100%; font-size: 13px; }}
    th, td {{ border-bottom: 1px solid #ddd; padding: 4px 8px; text-align: left; }}
    .pill {{ display:inline-block; padding: 4px 10px; border-radius: 999px; border:1px solid #444; margin-right: 6px; }}
  </style>
</head>
<body>
  <div class="card">
    <h1>DNSSEC Adoption Report</h1>
    <div class="muted">Source: <strong>{_esc(source or "-")}</strong> · Created: {_esc(created)}</div>
    <div style="margin-top:10px;">
      <span class="pill">Total: {results.total}</span>
      <span class="pill">Supported: {results.supported_count}</span>
      <span class="pill">Rate: {results.support_rate_percent:.2f}%</span>
    </div>
  </div>

  <div class="card">
    <table>
      <thead>{row(CSV_HEADER, "th")}</thead>
      <tbody>{body}</tbody>
    </table>
  </div>
</body>
</html>"""
    return html_doc
