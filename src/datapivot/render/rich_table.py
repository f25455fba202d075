from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from datapivot.pivot.engine import PivotResult
from datapivot.pivot.heatmap import Color
from datapivot.render.common import format_value, value_caption


def _contrast(color: Color) -> str:
    luminance = 0.299 * color.r + 0.587 * color.g + 0.114 * color.b
    return "black" if luminance > 140 else "white"


def _column_title(result: PivotResult, index: int) -> str:
    """Stack one token per column level, blank where the parent span continues."""
    key = result.column_groups[index].key
    lines = []
    for level, spans in enumerate(result.column_spans):
        starts = {span.start for span in spans}
        lines.append(key.token(level) if index in starts else "")
    return "\n".join(lines) or value_caption(result)


def render_rich(result: PivotResult, *, title: Optional[str] = None) -> Table:
    """Build a rich Table; merged row labels are printed once per span."""
    table = Table(title=title, show_lines=False, header_style="bold")
    for field in result.row_fields:
        table.add_column(field, style="bold", no_wrap=True)
    for index in range(len(result.column_groups)):
        table.add_column(_column_title(result, index), justify="right")

    starts = [
        {span.start: span for span in spans}
        for spans in result.row_spans
    ]
    for index, row_key in enumerate(result.row_headers):
        labels = [
            level_starts[index].label if index in level_starts else ""
            for level_starts in starts
        ]
        cells = []
        for column_key in result.column_keys:
            text = format_value(result.value(row_key, column_key))
            color = result.color(row_key, column_key)
            if color is None:
                cells.append(Text(text))
            else:
                cells.append(Text(text, style=f"{_contrast(color)} on {color.hex}"))
        table.add_row(*labels, *cells)

    if result.legend:
        caption = Text("Legend: ")
        for entry in result.legend:
            caption.append("  ", style=f"on {entry.color.hex}")
            caption.append(f" {entry.label}  ")
        table.caption = caption
    return table


def print_pivot(result: PivotResult, *, console: Optional[Console] = None, title: Optional[str] = None) -> None:
    (console or Console()).print(render_rich(result, title=title))
