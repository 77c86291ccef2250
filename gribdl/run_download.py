"""Download the most recent run of a DWD or NOAA model.

Usage:
    # ICON-EU 2 m temperature, first 10 steps
    gribdl dwd icon-eu

    # ICON global, two parameters, 48 h, no regridding
    gribdl dwd icon --param t_2m,tot_prec --max-step 48 --no-regrid

    # GFS 2 m temperature from the combined archive
    gribdl noaa gfs --param TMP --height "2 m above ground" --max-step 24

    # Same via the module
    python -m gribdl.run_download noaa gfs --output /data/gfs
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

import yaml

from gribdl.core.config import configure_logging, standard_argparser
from gribdl.core.errors import ConfigurationError, UnknownModelError
from gribdl.download import DOWNLOADERS, BatchReport
from gribdl.models.registry import PROVIDERS, supported_models

logger = logging.getLogger(__name__)


def build_parser():
    parser = standard_argparser(
        "Download the most recent NWP model run from DWD or NOAA open data",
    )
    parser.add_argument("provider", choices=PROVIDERS, help="Data provider")
    parser.add_argument(
        "model",
        help="Model name ("
        + "; ".join(f"{p}: {'|'.join(supported_models(p))}" for p in PROVIDERS)
        + ")",
    )
    parser.add_argument(
        "--param", default=None,
        help="Comma-separated parameter names (default from config)",
    )
    parser.add_argument(
        "--max-step", type=int, default=None,
        help="Max forecast step in hours (default from config)",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output folder (default from config)",
    )
    parser.add_argument(
        "--height", default=None,
        help="Level string as it appears in the .idx file (NOAA only)",
    )
    parser.add_argument(
        "--no-regrid", action="store_true",
        help="Keep icosahedral DWD grids as published",
    )
    return parser


def make_downloader(args):
    """Build the provider's downloader from config.yaml plus CLI overrides."""
    kwargs = dict(max_step=args.max_step, output_dir=args.output)
    if args.param:
        kwargs["params"] = args.param
    if args.provider == "dwd":
        kwargs["regrid"] = False if args.no_regrid else None
    else:
        kwargs["height"] = args.height
    return DOWNLOADERS[args.provider].from_config(args.model, args.config, **kwargs)


def print_summary(report: BatchReport) -> None:
    print(f"\nFetched {report.model} run {report.run:%Y-%m-%d %HZ}")
    if report.steps:
        print(f"  Steps  : {report.steps[0]} to {report.steps[-1]} ({len(report.steps)} total)")
    print(f"  Files  : {len(report.paths)}")
    print(f"  Failed : {report.failed}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        downloader = make_downloader(args)
        with downloader:
            report = downloader.run()
    except UnknownModelError as e:
        logger.error("[MAIN] Model not found. Available models are: %s", ", ".join(e.supported))
        print(f"Error: unsupported model {e.name!r} for {args.provider}. "
              f"Supported: {', '.join(e.supported)}", file=sys.stderr)
        return 1
    except (ConfigurationError, ValueError, OSError, yaml.YAMLError) as e:
        logger.error("[MAIN] %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_summary(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
