# promptfiles/core/discovery/__init__.py
"""
File discovery for promptfiles.

Walks the requested roots in parallel, drops git-ignored files, and flags
files matched by exclude globs or ``.promptignore`` rules as excluded.
"""
from .models import Decision, DiscoveredFile
from .walker import discover

__all__ = ["Decision", "DiscoveredFile", "discover"]
