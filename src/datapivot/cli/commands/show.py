from typing import Optional, Sequence

from rich.console import Console

from datapivot.config.pivot import PivotConfig
from datapivot.domain.record import Record
from datapivot.pivot.engine import build_pivot
from datapivot.render.rich_table import print_pivot


def handle(
    *,
    records: Sequence[Record],
    config: PivotConfig,
    title: Optional[str] = None,
    console: Optional[Console] = None,
) -> None:
    result = build_pivot(records, config)
    print_pivot(result, console=console, title=title)
