import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, TypeVar

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from datapivot.config.pivot import PivotConfig, load_pivot_config
from datapivot.domain.record import Record
from datapivot.io.readers import iter_records

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _iter_with_progress(
    iterable: Iterable[T],
    *,
    progress_style: str | None,
    label: str,
) -> Iterator[T]:
    style = (progress_style or "auto").lower()
    if style == "off":
        yield from iterable
        return
    bar_kwargs = {
        "desc": label,
        "unit": "rec",
        "dynamic_ncols": True,
        "mininterval": 0.2,
        "leave": False,
    }
    if style in {"auto", "spinner"}:
        bar_kwargs["bar_format"] = "{desc} {n_fmt}{unit}"
    bar = tqdm(iterable, **bar_kwargs)
    try:
        with logging_redirect_tqdm():
            for item in bar:
                yield item
    finally:
        bar.close()


def config_from_args(args: Any) -> PivotConfig:
    """Merge an optional YAML config with CLI flags (flags win)."""
    heatmap = {
        "scope": getattr(args, "heatmap", None),
        "show_legend": getattr(args, "legend", None),
        "legend_steps": getattr(args, "legend_steps", None),
        "low_color": getattr(args, "low_color", None),
        "high_color": getattr(args, "high_color", None),
    }
    overrides: dict[str, Any] = {
        "rows": getattr(args, "rows", None),
        "columns": getattr(args, "columns", None),
        "value": getattr(args, "value", None),
        "aggregation": getattr(args, "aggregation", None),
        "heatmap": heatmap if any(v is not None for v in heatmap.values()) else None,
    }
    config_path = getattr(args, "config", None)
    config = load_pivot_config(Path(config_path) if config_path else None, **overrides)
    logger.debug(
        "Pivot config: rows=%s columns=%s value=%s aggregation=%s heatmap=%s",
        config.rows,
        config.columns,
        config.value,
        config.aggregation.value,
        config.heatmap.scope.value if config.heatmap else "off",
    )
    return config


def records_from_args(args: Any) -> list[Record]:
    path = Path(args.input)
    records = list(
        _iter_with_progress(
            iter_records(
                path,
                format=getattr(args, "input_format", None),
                delimiter=getattr(args, "delimiter", ","),
                encoding=getattr(args, "encoding", "utf-8"),
                array_field=getattr(args, "array_field", None),
            ),
            progress_style=getattr(args, "progress", None),
            label=f"Reading {path.name}",
        )
    )
    logger.info("Loaded %d records from %s", len(records), path)
    return records
