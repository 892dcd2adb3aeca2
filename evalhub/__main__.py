"""
Entry point for running EvalHub as a module.

Usage:
    python -m evalhub datasets list
    python -m evalhub run my-dataset --predictor my_module:build_chain
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
