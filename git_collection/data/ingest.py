"""
Main ingestion pipeline and command line entry point.
Coordinates working copies, log queries, parsing and document building.
"""

import argparse
import json
import sys
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, MutableMapping, Optional

from tqdm import tqdm

from .document import IndexDocument, build_document
from .identifier import decode_item, encode_item
from .log_fetcher import CommitLogFetcher, LogOptions
from .log_parser import CommitLogParser, CommitRecord
from .queue import CollectionQueue
from .working_copy import WorkingCopyManager
from .wrapper import GitWrapper
from ..core.config import Config, CollectionConfig, NO_LIMIT, get_config
from ..core.exceptions import (
    ConfigurationError,
    FetchError,
    GitCollectionError,
    ParseError,
    SynchronizationError,
)
from ..core.logger import configure_logging, setup_logger, PerformanceLogger


@dataclass
class Failure:
    """A repository or item that could not be processed."""
    stage: str
    key: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {'stage': self.stage, 'key': self.key, 'error': self.error}


@dataclass
class RunContext:
    """
    State owned by one pipeline run.

    The working copy cache lives here and nowhere else, so it is discarded
    with the run.
    """
    collection: CollectionConfig
    working_copies: WorkingCopyManager
    fetcher: CommitLogFetcher
    parser: CommitLogParser
    failures: List[Failure] = field(default_factory=list)


class IngestionPipeline:
    """
    Pipeline turning repository history into index documents.

    The list phase produces item identifiers, the load phase turns one
    identifier into a commit record and the build phase copies a record into
    a document. Listing and loading share nothing but the identifier string,
    so they may run in different processes with any queue in between.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        git: Optional[GitWrapper] = None,
        require_repositories: bool = True,
    ):
        """
        Initialize the ingestion pipeline.

        Args:
            config: Configuration; defaults to the global configuration
            git: Wrapper used for every git invocation
            require_repositories: Whether at least one repository must be configured

        Raises:
            ConfigurationError: if the configuration cannot drive a run
        """
        self.config = config or get_config()
        self.collection = self.config.collection
        self.logger = setup_logger(f"{__name__}.IngestionPipeline")

        self._validate(require_repositories)

        self.git = git or GitWrapper(self.collection.git_binary, timeout=self.collection.timeout)
        self.parser = CommitLogParser()

    def _validate(self, require_repositories: bool) -> None:
        collection = self.collection

        if require_repositories and not collection.repositories:
            raise ConfigurationError("No repository configured")
        if collection.limit != NO_LIMIT and collection.limit < 1:
            raise ConfigurationError(f"limit must be positive or {NO_LIMIT}, got {collection.limit}")
        if collection.timeout < 1:
            raise ConfigurationError(f"timeout must be positive, got {collection.timeout}")
        if collection.max_workers < 1:
            raise ConfigurationError(f"max_workers must be positive, got {collection.max_workers}")

        data_directory = Path(collection.data_directory)
        try:
            data_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Unusable data directory {data_directory}: {e}") from e

    @contextmanager
    def start_run(self) -> Iterator[RunContext]:
        """Open a run; its working copy cache is cleared when the block exits."""
        context = RunContext(
            collection=self.collection,
            working_copies=WorkingCopyManager(self.collection.data_directory, self.git),
            fetcher=CommitLogFetcher(self.git),
            parser=self.parser,
        )
        try:
            yield context
        finally:
            context.working_copies.clear()

    def list_repository(self, context: RunContext, repository: str) -> List[str]:
        """
        List item identifiers for the most recent commits of one repository.

        Raises:
            SynchronizationError: if the working copy cannot be cloned or pulled
            FetchError: if the log query fails
            ParseError: if the log output is malformed
        """
        path = context.working_copies.resolve(repository)
        text = context.fetcher.fetch_log(path, LogOptions(limit=context.collection.limit), repository=repository)
        hashes = context.parser.parse_batch(text)

        self.logger.info(f"Listed {len(hashes)} commits from {repository}")
        return [encode_item(commit, repository) for commit in hashes]

    def list_items(self, context: RunContext) -> List[str]:
        """
        List item identifiers for every configured repository, in configured order.

        A repository that fails is recorded in `context.failures` and skipped.
        """
        repositories = context.collection.repositories

        with PerformanceLogger(self.logger, f"listing of {len(repositories)} repositories"):
            if context.collection.max_workers > 1 and len(repositories) > 1:
                with ThreadPoolExecutor(max_workers=context.collection.max_workers) as executor:
                    futures = [
                        executor.submit(self._list_or_record, context, repository)
                        for repository in repositories
                    ]
                    results = [future.result() for future in futures]
            else:
                results = [self._list_or_record(context, repository) for repository in repositories]

        return [item for items in results for item in items]

    def _list_or_record(self, context: RunContext, repository: str) -> List[str]:
        try:
            return self.list_repository(context, repository)
        except (SynchronizationError, FetchError, ParseError) as e:
            self.logger.error(f"Skipping repository {repository}: {e}", extra={'repository': repository})
            context.failures.append(Failure(stage='list', key=repository, error=str(e)))
            return []

    def enqueue(self, context: RunContext, queue: CollectionQueue) -> int:
        """List every repository into `queue`; returns the number of items queued."""
        items = self.list_items(context)
        added = queue.extend(items)
        if added < len(items):
            self.logger.warning(f"Queue full, {len(items) - added} items not queued")
        return added

    def load_item(self, context: RunContext, item: str) -> CommitRecord:
        """
        Resolve one item identifier into a full commit record with its patch.

        Raises:
            ParseError: if the identifier or the log entry is malformed; the
                error names the item
            SynchronizationError: if the working copy cannot be cloned or pulled
            FetchError: if the commit cannot be read
        """
        commit, repository = decode_item(item)

        path = context.working_copies.resolve(repository)
        text = context.fetcher.fetch_log(
            path, LogOptions(single_commit=commit, include_patch=True), repository=repository
        )

        try:
            record = context.parser.parse_single(text, repository=repository)
        except ParseError as e:
            raise e.with_item(item) from e

        return record.with_item(item, repository)

    def build_document(
        self,
        document: MutableMapping[str, Any],
        record: CommitRecord,
    ) -> MutableMapping[str, Any]:
        """Copy `record` into `document`, rendering dates as UTC timestamps."""
        return build_document(document, record)

    def load_document(
        self,
        context: RunContext,
        item: str,
        document: Optional[MutableMapping[str, Any]] = None,
    ) -> MutableMapping[str, Any]:
        """Load `item` and build it into `document` (a new `IndexDocument` by default)."""
        record = self.load_item(context, item)
        return self.build_document(document if document is not None else IndexDocument(), record)

    def run(self, show_progress: bool = False) -> Dict[str, Any]:
        """
        List every repository, then load and build each listed item.

        Items that fail are recorded and skipped.

        Returns:
            Summary with the built documents and any failures
        """
        documents = []

        with PerformanceLogger(self.logger, "git collection run"):
            with self.start_run() as context:
                queue = CollectionQueue()
                total = self.enqueue(context, queue)

                for item in tqdm(queue.drain(), total=total, desc="Loading commits", disable=not show_progress):
                    try:
                        documents.append(self.load_document(context, item))
                    except (SynchronizationError, FetchError, ParseError) as e:
                        self.logger.error(f"Failed to load item {item}: {e}", extra={'item': item})
                        context.failures.append(Failure(stage='load', key=item, error=str(e)))

                failures = list(context.failures)

        summary = {
            'repositories': list(self.collection.repositories),
            'total_items': total,
            'total_documents': len(documents),
            'documents': documents,
            'failures': [failure.to_dict() for failure in failures],
            'ingestion_date': datetime.now().isoformat(),
        }

        self.logger.info(
            f"Run complete: {len(documents)} documents, {len(failures)} failures"
        )
        return summary


def _build_config(args: argparse.Namespace) -> Config:
    overrides: Dict[str, Any] = {}
    if args.repository:
        overrides['repositories'] = args.repository
    if args.data_dir:
        overrides['data_directory'] = args.data_dir
    if args.limit is not None:
        overrides['limit'] = args.limit
    if args.timeout is not None:
        overrides['timeout'] = args.timeout
    if args.workers is not None:
        overrides['max_workers'] = args.workers
    if args.git_binary:
        overrides['git_binary'] = args.git_binary

    kwargs: Dict[str, Any] = {'collection': overrides} if overrides else {}
    if args.log_level:
        kwargs['monitoring'] = {'log_level': args.log_level}

    return Config(config_path=args.config, **kwargs)


def _read_items(items: List[str]) -> Iterator[str]:
    for item in items:
        if item == '-':
            for line in sys.stdin:
                line = line.strip()
                if line:
                    yield line
        else:
            yield item


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point for git collection."""
    parser = argparse.ArgumentParser(description="Git history collection for search indexing")
    parser.add_argument("--config", type=str, help="YAML configuration file")
    parser.add_argument("--repository", action="append",
                        help="Repository URL (repeatable)")
    parser.add_argument("--data-dir", type=str,
                        help="Directory holding the working copies")
    parser.add_argument("--limit", type=int,
                        help="Maximum commits listed per repository (-1 for no limit)")
    parser.add_argument("--timeout", type=int,
                        help="Timeout in seconds for each git invocation")
    parser.add_argument("--workers", type=int,
                        help="Repositories listed concurrently")
    parser.add_argument("--git-binary", type=str,
                        help="Path to the git executable")
    parser.add_argument("--log-level", type=str,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("list", help="Print item identifiers, one per line")
    load_parser = subparsers.add_parser("load", help="Print one JSON document per item")
    load_parser.add_argument("items", nargs="+", help="Item identifiers, or - to read them from stdin")
    run_parser = subparsers.add_parser("run", help="List and load every item")
    run_parser.add_argument("--output", type=str, help="Write JSON lines here instead of stdout")
    run_parser.add_argument("--quiet", action="store_true", help="Hide the progress bar")

    args = parser.parse_args(argv)

    try:
        config = _build_config(args)
        configure_logging(
            config.monitoring.log_level,
            log_dir=config.monitoring.log_dir,
            enable_json_logging=config.monitoring.enable_json_logging,
        )
        pipeline = IngestionPipeline(config, require_repositories=args.command != "load")
    except (ConfigurationError, FileNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logger = setup_logger(f"{__name__}.main")

    if args.command == "list":
        with pipeline.start_run() as context:
            for item in pipeline.list_items(context):
                print(item)
            return 1 if context.failures else 0

    if args.command == "load":
        failed = 0
        with pipeline.start_run() as context:
            for item in _read_items(args.items):
                try:
                    document = pipeline.load_document(context, item)
                except GitCollectionError as e:
                    logger.error(f"Failed to load item {item}: {e}", extra={'item': item})
                    failed += 1
                    continue
                print(document.to_json())
        return 1 if failed else 0

    summary = pipeline.run(show_progress=not args.quiet)
    documents = summary.pop('documents')

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            for document in documents:
                f.write(document.to_json() + "\n")
    else:
        for document in documents:
            print(document.to_json())

    print(json.dumps(summary, indent=2), file=sys.stderr)
    return 1 if summary['failures'] else 0


if __name__ == "__main__":
    sys.exit(main())
