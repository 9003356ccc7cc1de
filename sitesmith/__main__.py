# python
"""
sitesmith.__main__
Entry point for python -m sitesmith
"""
import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
