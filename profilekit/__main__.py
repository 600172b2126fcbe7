#!/usr/bin/env python3
"""
Main entry point for profilekit when run as a module.

The installed git hook scripts exec ``python -m profilekit hook <name>``.
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main() or 0)
