"""Main entry point for the neurowave CLI when run as a module."""

import sys

from neurowave.cli import main

if __name__ == "__main__":
    sys.exit(main())
