"""Jobboard package public API."""
from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("jobboard")
except _metadata.PackageNotFoundError:  # fallback when not installed
    __version__ = "0.1.0"

from .jobcrawl.db import JobDB  # re-export
from .jobcrawl.models import JobRecord  # re-export

__all__ = ["__version__","JobDB","JobRecord"]
