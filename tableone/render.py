"""
Presentation helpers for an assembled table. Both return strings and never write files.
"""

from __future__ import annotations

import html as _html

import pandas as pd

from config import CONFIG


def get_color_palette() -> dict[str, str]:
    return {
        "primary": "#1B7E8F",
        "primary_dark": "#0D4D57",
        "primary_light": "#E0F2F7",
        "text": "#1F2328",
        "text_secondary": "#6B7280",
        "border": "#E5E7EB",
        "background": "#F9FAFB",
        "surface": "#FFFFFF",
    }


def render_text(table: pd.DataFrame, sep: str = "  ") -> str:
    """
    Render the table as fixed-width plain text.

    The label column is left-aligned and every data column right-aligned;
    a dashed rule separates the header from the body.
    """
    headers = [str(c) for c in table.columns]
    body = [[str(v) for v in row] for row in table.itertuples(index=False, name=None)]
    widths = [len(h) for h in headers]
    for row in body:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row, strict=True)]

    def _line(cells: list[str]) -> str:
        parts = [cells[0].ljust(widths[0])]
        parts.extend(cell.rjust(w) for cell, w in zip(cells[1:], widths[1:], strict=True))
        return sep.join(parts).rstrip()

    lines = [_line(headers), sep.join("-" * w for w in widths)]
    lines.extend(_line(row) for row in body)
    return "\n".join(lines)


def render_html(table: pd.DataFrame, title: str | None = None) -> str:
    """
    Render the table as a styled HTML fragment.

    Parameters:
        table (pd.DataFrame): Table returned by `tableone()`.
        title (str | None): Caption; defaults to `CONFIG['tableone.html_title']`.

    Returns:
        str: `<style>` block plus the `<table>` markup, with every cell HTML-escaped.
    """
    colors = get_color_palette()
    title = CONFIG.get("tableone.html_title", "Table 1") if title is None else title
    n_row_label = CONFIG.get("tableone.n_row_label", "n")
    indent = " " * int(CONFIG.get("tableone.level_indent", 4))

    css = f"""
    <style>
        .tableone {{ width: 100%; border-collapse: collapse; font-size: 13px; color: {colors["text"]}; }}
        .tableone caption {{ font-weight: 600; text-align: left; padding: 6px 0; color: {colors["primary_dark"]}; }}
        .tableone th {{ background-color: {colors["primary_dark"]}; color: white; padding: 10px; text-align: center; }}
        .tableone td {{ padding: 8px; border: 1px solid {colors["border"]}; }}
        .tableone tr:nth-child(even) {{ background-color: {colors["primary_light"]}; }}
        .numeric-cell {{ font-family: 'Courier New', monospace; font-size: 12px; text-align: right; }}
        .n-row td {{ font-weight: 600; background-color: {colors["background"]}; }}
        .level-cell {{ padding-left: 24px !important; color: {colors["text_secondary"]}; }}
    </style>
    """

    header = "".join(f"<th>{_html.escape(str(c))}</th>" for c in table.columns)

    rows_html = ""
    for row in table.itertuples(index=False, name=None):
        label, *cells = (str(v) for v in row)
        row_cls = " class='n-row'" if label == n_row_label else ""
        if label.startswith(indent):
            label_td = f"<td class='level-cell'>{_html.escape(label.strip())}</td>"
        else:
            label_td = f"<td><strong>{_html.escape(label)}</strong></td>"
        cell_tds = "".join(f"<td class='numeric-cell'>{_html.escape(c)}</td>" for c in cells)
        rows_html += f"<tr{row_cls}>{label_td}{cell_tds}</tr>\n"

    caption = f"<caption>{_html.escape(title)}</caption>" if title else ""
    return (
        f"{css}\n<table class='tableone'>{caption}\n"
        f"<thead><tr>{header}</tr></thead>\n<tbody>\n{rows_html}</tbody>\n</table>"
    )
