"""Run the full analysis on a price CSV.

Usage:
  python run_analysis.py raw_Data_2024-09-30.csv [--auto]

This will:
  1) Add open/close delta columns
  2) Embed the open deltas (fixed tau=43, n=3, or PECUZAL with --auto)
  3) Build the recurrence matrix and show both figures

Equivalent to ``python -m phasespace --csv FILE --show --wait``.
"""

import sys

from phasespace.cli import main


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        raise SystemExit(2)
    args = ["--csv", sys.argv[1], "--show", "--wait"] + sys.argv[2:]
    raise SystemExit(main(args))
