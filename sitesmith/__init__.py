# python
"""sitesmith package: prompt-built web projects in a virtual file tree."""
__version__ = "0.1"

from sitesmith.env import load_env

load_env()
