"""Command-line entry point.

  python -m phasespace --csv prices.csv            # fixed embedding
  python -m phasespace --csv prices.csv --auto     # PECUZAL
  python -m phasespace --ticker SPY --start 2020-01-01 --end 2024-09-30 --show
"""

from __future__ import annotations

import argparse
import logging
import os

from .config import AnalysisConfig, load_config
from .errors import PhaseSpaceError

# Flags that override AnalysisConfig fields of the same name
OVERRIDES = ("sample_size", "tau", "dimension", "tmax", "theiler", "seed", "epsilon", "n_jobs", "column")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="phasespace",
        description="Delay-embed price deltas and plot the recurrence matrix.",
    )
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--csv", help="CSV file with open/close columns.")
    src.add_argument("--ticker", help="Download prices with yfinance.")
    p.add_argument("--start", default="2015-01-01", help="Download start date.")
    p.add_argument("--end", default=None, help="Download end date.")

    p.add_argument("--config", help="JSON file with AnalysisConfig fields.")
    p.add_argument("--auto", action="store_true", help="Choose delays automatically (PECUZAL).")
    p.add_argument("--sample-size", type=int)
    p.add_argument("--tau", type=int)
    p.add_argument("--dimension", type=int)
    p.add_argument("--tmax", type=int)
    p.add_argument("--theiler", type=int)
    p.add_argument("--seed", type=int, help="Seed for the tie-breaking jitter.")
    p.add_argument("--epsilon", type=float, help="Recurrence threshold.")
    p.add_argument("--n-jobs", type=int)
    p.add_argument("--column", choices=["deltaO", "deltaC"])

    p.add_argument("--save-dir", help="Write trajectory.png and recurrence.png here.")
    p.add_argument("--show", action="store_true", help="Display the figures.")
    p.add_argument("--wait", action="store_true", help="Wait for Enter before exiting.")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def config_from_args(args) -> AnalysisConfig:
    cfg = load_config(args.config) if args.config else AnalysisConfig()
    for name in OVERRIDES:
        value = getattr(args, name)
        if value is not None:
            setattr(cfg, name, value)
    return cfg.validate()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    from .data import download_prices, load_prices
    from .pipeline import PhaseSpaceAnalysis

    try:
        analysis = PhaseSpaceAnalysis(config_from_args(args))
        if args.csv:
            frame = load_prices(args.csv)
        else:
            frame = download_prices(args.ticker, args.start, args.end)
        result = analysis.run(frame, automatic=args.auto)
    except PhaseSpaceError as e:
        print(f"error: {e}")
        return 1

    if not (args.save_dir or args.show):
        return 0

    import matplotlib

    if not args.show:
        matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from .visualization import save_figure

    traj_fig, rec_fig = analysis.figures(result)
    if args.save_dir:
        for name, fig in (("trajectory.png", traj_fig), ("recurrence.png", rec_fig)):
            path = save_figure(fig, os.path.join(args.save_dir, name))
            print(f" Saved {path}")
    if args.show:
        plt.show(block=not args.wait)
    if args.wait:
        input("Press Enter to exit...")
    plt.close("all")
    return 0
