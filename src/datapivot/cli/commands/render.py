import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from datapivot.config.pivot import PivotConfig
from datapivot.domain.record import Record
from datapivot.pivot.engine import build_pivot
from datapivot.render.html import render_page

logger = logging.getLogger(__name__)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def handle(
    *,
    records: Sequence[Record],
    config: PivotConfig,
    fmt: str = "html",
    output: Optional[str] = None,
    title: Optional[str] = None,
) -> None:
    """Render a pivot to HTML or JSON, writing to ``output`` or stdout."""
    result = build_pivot(records, config)
    if fmt == "json":
        text = json.dumps(result.to_dict(), indent=2, ensure_ascii=False) + "\n"
    elif fmt == "html":
        text = render_page(result, title=title or f"Pivot: {config.value}")
    else:
        raise ValueError(f"Unsupported output format: {fmt!r}")

    if output is None:
        sys.stdout.write(text)
        return
    dest = Path(output)
    _ensure_parent(dest)
    with dest.open("w", encoding="utf-8") as fh:
        fh.write(text)
    logger.info(
        "Wrote %s pivot (%d rows x %d columns) to %s",
        fmt,
        len(result.row_headers),
        len(result.column_groups),
        dest,
    )
