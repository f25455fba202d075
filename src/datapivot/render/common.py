from datapivot.pivot.engine import PivotResult


def format_value(value) -> str:
    """Format a cell value; integral floats drop their fractional part."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def value_caption(result: PivotResult) -> str:
    return f"{result.aggregation.value}({result.value_field})"
