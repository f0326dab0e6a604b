"""Entry point for python -m epe."""

import sys

from epe.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
