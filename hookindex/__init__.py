"""Verified, incrementally maintained index of WordPress hooks, blocks, APIs and docs."""

from .config import ConfigurationError, HookIndexConfig, load_config
from .indexer import Indexer
from .models import IndexStats, Source
from .stores import IndexStore, SearchService

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "HookIndexConfig",
    "IndexStats",
    "IndexStore",
    "Indexer",
    "SearchService",
    "Source",
    "__version__",
    "load_config",
]
