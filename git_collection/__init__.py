"""
Git Collection - commit history ingestion for search indexing

This package mirrors git repositories locally, reads their logs and maps each
commit onto a flat document that a search index can store.
"""

__version__ = "1.0.0"

from .core.config import Config, get_config, set_config, NO_LIMIT
from .core.exceptions import (
    GitCollectionError,
    ConfigurationError,
    SynchronizationError,
    FetchError,
    ParseError,
)
from .core.logger import setup_logger
from .data import (
    CommitLogFetcher,
    CommitLogParser,
    CommitRecord,
    IndexDocument,
    IngestionPipeline,
    ItemIdentifier,
    LogOptions,
    WorkingCopyManager,
    build_document,
    decode_item,
    encode_item,
)

__all__ = [
    "Config",
    "get_config",
    "set_config",
    "NO_LIMIT",
    "GitCollectionError",
    "ConfigurationError",
    "SynchronizationError",
    "FetchError",
    "ParseError",
    "setup_logger",
    "CommitLogFetcher",
    "CommitLogParser",
    "CommitRecord",
    "IndexDocument",
    "IngestionPipeline",
    "ItemIdentifier",
    "LogOptions",
    "WorkingCopyManager",
    "build_document",
    "decode_item",
    "encode_item",
]
