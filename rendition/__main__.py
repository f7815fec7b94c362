"""
Main entry point for running the package as a module.

Usage:
    python -m rendition process --source-root photos --manifest scan.json --output public
    python -m rendition report --manifest public/manifest.json
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
