import argparse
import logging
from typing import Optional, Sequence

from datapivot.cli.commands.render import handle as handle_render
from datapivot.cli.commands.show import handle as handle_show
from datapivot.cli.inputs import config_from_args, records_from_args
from datapivot.pivot.aggregation import AggregationMode
from datapivot.pivot.heatmap import HeatmapScope

logger = logging.getLogger(__name__)


def _pivot_options() -> argparse.ArgumentParser:
    opts = argparse.ArgumentParser(add_help=False)
    opts.add_argument("input", help="records file (csv, json or json-lines)")
    opts.add_argument(
        "--config",
        "-c",
        default=None,
        help="path to a pivot YAML config; flags override its values",
    )
    opts.add_argument(
        "--rows",
        "-r",
        nargs="+",
        default=None,
        help="row fields, outermost first (space or comma separated)",
    )
    opts.add_argument(
        "--columns",
        "-k",
        nargs="+",
        default=None,
        help="column fields, outermost first (space or comma separated)",
    )
    opts.add_argument("--value", "-v", default=None, help="field to aggregate")
    opts.add_argument(
        "--aggregation",
        "-a",
        choices=[mode.value for mode in AggregationMode],
        default=None,
        help="aggregation mode (default: sum)",
    )
    opts.add_argument(
        "--heatmap",
        choices=[scope.value for scope in HeatmapScope],
        default=None,
        help="enable heatmap shading with the given normalisation scope",
    )
    opts.add_argument(
        "--legend",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="append a heatmap legend (implies --heatmap global when unset)",
    )
    opts.add_argument(
        "--legend-steps",
        type=int,
        default=None,
        help="number of legend buckets (default: 10)",
    )
    opts.add_argument("--low-color", default=None, help="heatmap color at the minimum (#rrggbb)")
    opts.add_argument("--high-color", default=None, help="heatmap color at the maximum (#rrggbb)")
    opts.add_argument(
        "--input-format",
        choices=["csv", "json", "json-lines"],
        default=None,
        help="input format (default: inferred from the file suffix)",
    )
    opts.add_argument("--delimiter", default=",", help="csv delimiter (default: ,)")
    opts.add_argument("--encoding", default="utf-8", help="input encoding (default: utf-8)")
    opts.add_argument(
        "--array-field",
        default=None,
        help="json only: key of the top-level object holding the record list",
    )
    opts.add_argument(
        "--progress",
        choices=["auto", "spinner", "bars", "off"],
        default=None,
        help="progress display while reading records",
    )
    opts.add_argument("--title", default=None, help="title for the rendered table")
    return opts


def main(argv: Optional[Sequence[str]] = None) -> None:
    # Common options shared by top-level and subcommands
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="set logging level (default: WARNING)",
    )
    pivot_opts = _pivot_options()

    parser = argparse.ArgumentParser(
        prog="datapivot",
        description="Cross-tabulate records into pivot tables with optional heatmap shading.",
        parents=[common],
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_render = sub.add_parser(
        "render",
        help="render a pivot table to HTML or JSON",
        parents=[common, pivot_opts],
    )
    p_render.add_argument(
        "--format",
        "-f",
        choices=["html", "json"],
        default="html",
        help="output format (default: html)",
    )
    p_render.add_argument(
        "--output",
        "-o",
        default=None,
        help="destination file (default: stdout)",
    )

    sub.add_parser(
        "show",
        help="print a pivot table to the terminal",
        parents=[common, pivot_opts],
    )

    args = parser.parse_args(argv)

    level_name = getattr(args, "log_level", None) or "WARNING"
    logging.basicConfig(level=getattr(logging, level_name), format="%(message)s")

    try:
        config = config_from_args(args)
        records = records_from_args(args)
        if args.cmd == "render":
            handle_render(
                records=records,
                config=config,
                fmt=getattr(args, "format", "html"),
                output=getattr(args, "output", None),
                title=getattr(args, "title", None),
            )
        elif args.cmd == "show":
            handle_show(
                records=records,
                config=config,
                title=getattr(args, "title", None),
            )
    except (FileNotFoundError, KeyError, TypeError, ValueError) as exc:
        logger.error("datapivot %s failed: %s", args.cmd, exc)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
