"""Entry point for ``python -m workforce_engine``."""

import sys

from workforce_engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
