"""
Log queries against a working copy.
"""

from pathlib import Path
from typing import List, Optional, Union
from dataclasses import dataclass

from git import GitCommandError, GitCommandNotFound

from .wrapper import GitWrapper
from ..core.config import NO_LIMIT
from ..core.exceptions import FetchError
from ..core.logger import setup_logger, PerformanceLogger


@dataclass(frozen=True)
class LogOptions:
    """Options for a single log query."""
    limit: int = NO_LIMIT
    single_commit: Optional[str] = None
    include_patch: bool = False


class CommitLogFetcher:
    """
    Runs `git log` against a working copy and returns the raw text.
    The output always uses git's medium format so the parser sees one grammar.
    """

    # Overrides every log.* setting that changes the medium format
    BASE_ARGUMENTS = (
        "--pretty=medium",
        "--no-color",
        "--no-decorate",
        "--no-abbrev-commit",
        "--date=default",
        "--no-notes",
        "--no-show-signature",
    )

    def __init__(self, git: GitWrapper):
        self.logger = setup_logger(f"{__name__}.CommitLogFetcher")
        self.git = git

    def build_arguments(self, options: LogOptions) -> List[str]:
        """Translate `options` into `git log` arguments."""
        arguments = list(self.BASE_ARGUMENTS)

        if options.include_patch:
            arguments.extend(["--patch", "--no-ext-diff"])

        if options.single_commit:
            if options.single_commit.startswith("-"):
                raise ValueError(f"Not a commit: {options.single_commit}")
            arguments.extend(["--max-count=1", options.single_commit, "--"])
        elif options.limit != NO_LIMIT:
            if options.limit < 1:
                raise ValueError(f"limit must be positive or NO_LIMIT, got {options.limit}")
            arguments.append(f"--max-count={options.limit}")

        return arguments

    def fetch_log(
        self,
        working_copy: Union[str, Path],
        options: Optional[LogOptions] = None,
        repository: Optional[str] = None,
    ) -> str:
        """
        Fetch log output from the working copy at `working_copy`.

        Args:
            working_copy: Path of the local working copy
            options: Limit, single commit and patch selection
            repository: URL the working copy mirrors, carried by errors

        Returns:
            Raw `git log` output

        Raises:
            FetchError: if git fails, times out or the working copy is unreadable
        """
        options = options or LogOptions()
        arguments = self.build_arguments(options)

        description = f"log of {options.single_commit}" if options.single_commit else "log"
        with PerformanceLogger(self.logger, f"{description} in {working_copy}", level="DEBUG"):
            try:
                return self.git.execute("log", *arguments, cwd=working_copy)
            except (GitCommandError, GitCommandNotFound) as e:
                raise FetchError(
                    f"Failed to fetch {description} from {repository or working_copy}: {e}",
                    repository=repository,
                ) from e
