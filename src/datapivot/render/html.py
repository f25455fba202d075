import html

from datapivot.pivot.engine import PivotResult
from datapivot.pivot.headers import row_span_starts
from datapivot.render.common import format_value, value_caption

_STYLE = """
    :root { color-scheme: light; }
    body {
        font-family: Arial, sans-serif;
        margin: 24px;
        background: #f9f9fa;
        color: #222;
    }
    h1 { margin: 0 0 16px 0; font-size: 20px; }
    table.pivot { border-collapse: collapse; background: #fff; }
    .pivot th,
    .pivot td {
        border: 1px solid #ccc;
        padding: 4px 8px;
        font-size: 13px;
    }
    .pivot thead th { background: #f0f0f0; }
    .pivot th.axis-label { color: #666; font-weight: normal; text-align: right; }
    .pivot tbody th { text-align: left; vertical-align: top; background: #fafafa; }
    .pivot td { text-align: right; }
    .legend { display: flex; align-items: center; gap: 12px; margin-top: 10px; font-size: 12px; }
    .legend .entry { display: flex; align-items: center; gap: 4px; }
    .legend .swatch { width: 20px; height: 20px; border: 1px solid #ccc; }
"""


def _attr(name: str, value: object) -> str:
    return f" {name}='{html.escape(str(value), quote=True)}'"


def _span_attr(name: str, span: int) -> str:
    return _attr(name, span) if span > 1 else ""


def _render_head(result: PivotResult) -> str:
    row_depth = len(result.row_fields)
    column_count = max(1, len(result.column_groups))
    rows: list[str] = []

    for level, spans in enumerate(result.column_spans):
        cells = []
        if row_depth:
            cells.append(
                f"<th scope='col' class='axis-label'{_span_attr('colspan', row_depth)}>"
                f"{html.escape(result.column_fields[level])}</th>"
            )
        cells.extend(
            f"<th scope='col'{_span_attr('colspan', span.span)}>{html.escape(span.label)}</th>"
            for span in spans
        )
        rows.append(f"<tr>{''.join(cells)}</tr>")

    label_cells = [
        f"<th scope='col'>{html.escape(field)}</th>" for field in result.row_fields
    ]
    label_cells.append(
        f"<th scope='col' class='value-label'{_span_attr('colspan', column_count)}>"
        f"{html.escape(value_caption(result))}</th>"
    )
    rows.append(f"<tr>{''.join(label_cells)}</tr>")
    return f"<thead>{''.join(rows)}</thead>"


def _render_body(result: PivotResult) -> str:
    starts = row_span_starts(result.row_spans)
    column_keys = result.column_keys
    rows: list[str] = []

    for index, row_key in enumerate(result.row_headers):
        cells = [
            f"<th scope='row'{_span_attr('rowspan', span.span)}>{html.escape(span.label)}</th>"
            for _, span in starts.get(index, [])
        ]
        for column_key in column_keys:
            value = result.value(row_key, column_key)
            color = result.color(row_key, column_key)
            style = _attr("style", f"background-color: {color.css};") if color else ""
            cells.append(f"<td{style}>{html.escape(format_value(value))}</td>")
        rows.append(f"<tr>{''.join(cells)}</tr>")
    return f"<tbody>{''.join(rows)}</tbody>"


def render_legend(result: PivotResult) -> str:
    if not result.legend:
        return ""
    entries = "".join(
        "<div class='entry'>"
        f"<div class='swatch'{_attr('style', f'background-color: {entry.color.css};')}></div>"
        f"<div>{html.escape(entry.label)}</div>"
        "</div>"
        for entry in result.legend
    )
    return f"<div class='legend'><div>Legend:</div>{entries}</div>"


def render_html(result: PivotResult) -> str:
    """Render the pivot as an HTML table fragment, followed by its legend."""
    table = f"<table class='pivot'>{_render_head(result)}{_render_body(result)}</table>"
    return table + render_legend(result)


def render_page(result: PivotResult, title: str = "Pivot Table") -> str:
    """Render a standalone HTML document around ``render_html``."""
    return (
        "<html><head><meta charset='utf-8'>"
        f"<style>{_STYLE}</style>"
        f"<title>{html.escape(title)}</title></head><body>"
        f"<h1>{html.escape(title)}</h1>"
        f"{render_html(result)}"
        "</body></html>"
    )
