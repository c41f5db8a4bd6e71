"""
Git history collection.
Keeps working copies current, queries their logs and turns commits into documents.
"""

from .wrapper import GitWrapper
from .working_copy import Repository, WorkingCopy, WorkingCopyManager, derive_repository_name
from .log_fetcher import CommitLogFetcher, LogOptions
from .log_parser import CommitLogParser, CommitRecord, parse_date
from .identifier import ItemIdentifier, encode_item, decode_item
from .document import IndexDocument, build_document, format_timestamp
from .queue import CollectionQueue
from .ingest import IngestionPipeline, RunContext, Failure

__all__ = [
    "GitWrapper",
    "Repository",
    "WorkingCopy",
    "WorkingCopyManager",
    "derive_repository_name",
    "CommitLogFetcher",
    "LogOptions",
    "CommitLogParser",
    "CommitRecord",
    "parse_date",
    "ItemIdentifier",
    "encode_item",
    "decode_item",
    "IndexDocument",
    "build_document",
    "format_timestamp",
    "CollectionQueue",
    "IngestionPipeline",
    "RunContext",
    "Failure",
]
