from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from datapivot.pivot.aggregation import AggregationMode
from datapivot.pivot.heatmap import Color, ColorScale, HeatmapScope
from datapivot.utils.load import load_yaml


def _normalize_fields(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if isinstance(value, (list, tuple)):
        fields: list[Any] = []
        for item in value:
            if isinstance(item, str):
                fields.extend(part.strip() for part in item.split(",") if part.strip())
            else:
                fields.append(item)
        return fields
    return value


class HeatmapConfig(BaseModel):
    """Heatmap shading applied to data cells."""

    scope: HeatmapScope = Field(
        default=HeatmapScope.GLOBAL,
        description="global | row | column | none (none behaves as global)",
    )
    show_legend: bool = Field(default=False, description="Append a color legend.")
    legend_steps: int = Field(default=10, ge=1, description="Number of legend buckets.")
    low_color: str = Field(default="#ffffff", description="Color at intensity 0 (#rrggbb).")
    high_color: str = Field(default="#ff0000", description="Color at intensity 1 (#rrggbb).")

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value):
        if value is None:
            return HeatmapScope.GLOBAL
        if isinstance(value, bool):
            return HeatmapScope.GLOBAL if value else HeatmapScope.NONE
        return HeatmapScope.parse(value)

    @field_validator("low_color", "high_color")
    @classmethod
    def _validate_color(cls, value: str) -> str:
        return Color.from_hex(value).hex

    def color_scale(self) -> ColorScale:
        return ColorScale(low=Color.from_hex(self.low_color), high=Color.from_hex(self.high_color))


class PivotConfig(BaseModel):
    """Axes, value field and aggregation for one pivot table."""

    rows: List[str] = Field(default_factory=list, description="Row field list (outer to inner).")
    columns: List[str] = Field(default_factory=list, description="Column field list (outer to inner).")
    value: str = Field(..., min_length=1, description="Field aggregated into cells.")
    aggregation: AggregationMode = Field(
        default=AggregationMode.SUM,
        description="sum | count | countUnique | average | median",
    )
    heatmap: Optional[HeatmapConfig] = None

    @field_validator("rows", "columns", mode="before")
    @classmethod
    def _normalize_axis(cls, value):
        return _normalize_fields(value)

    @field_validator("aggregation", mode="before")
    @classmethod
    def _normalize_aggregation(cls, value):
        if value is None:
            return AggregationMode.SUM
        return AggregationMode.parse(value)


def _enables_heatmap(settings: dict[str, Any]) -> bool:
    return settings.get("scope") is not None or settings.get("show_legend") is True


def merge_config_data(data: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Overlay non-None ``overrides`` on ``data``; heatmap keys merge one level deep.

    A heatmap override only creates a heatmap block when it sets a scope or
    turns the legend on. Other heatmap settings (legend off, steps, colors)
    are applied to an existing block and ignored otherwise.
    """
    merged = dict(data)
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "heatmap" and isinstance(value, dict):
            settings = {k: v for k, v in value.items() if v is not None}
            base = merged.get("heatmap")
            if not isinstance(base, dict):
                if not _enables_heatmap(settings):
                    continue
                base = {}
            merged["heatmap"] = {**base, **settings}
        else:
            merged[key] = value
    return merged


def load_pivot_config(path: Optional[Path] = None, **overrides: Any) -> PivotConfig:
    """Load a pivot YAML file (optional) and apply ``overrides`` on top."""
    data = load_yaml(path) if path is not None else {}
    heatmap = data.get("heatmap")
    if heatmap is None or heatmap is False:
        data.pop("heatmap", None)
    elif heatmap is True:
        data["heatmap"] = {}
    return PivotConfig.model_validate(merge_config_data(data, overrides))
