"""Package entry point.

This module enables running the project with:

    python -m envrefresh ...
"""

from __future__ import annotations

import sys

from envrefresh.cli import main

if __name__ == "__main__":
    sys.exit(main())
