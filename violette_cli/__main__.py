"""
Module execution entry point.

Allows running with: python -m violette_cli
"""

import sys
from violette_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
