"""
Entry when running as a module: python -m enhanced_search
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
