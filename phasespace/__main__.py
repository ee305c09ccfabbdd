"""Module entry point.

Allows:
  python -m phasespace
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
