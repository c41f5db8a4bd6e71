"""
Local working copies of remote repositories.
Clones a repository on first access and pulls it on later runs.
"""

import re
import hashlib
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Union
from dataclasses import dataclass

from git import Repo, GitCommandError, GitCommandNotFound, InvalidGitRepositoryError, NoSuchPathError

from .wrapper import GitWrapper
from ..core.exceptions import SynchronizationError
from ..core.logger import setup_logger, PerformanceLogger


_UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def derive_repository_name(url: str) -> str:
    """
    Derive a filesystem-safe directory name from a repository URL.

    The last path component (without ``.git``) keeps the name readable and a
    short hash of the full URL keeps distinct URLs in distinct directories.
    """
    stripped = url.strip().rstrip('/')
    if stripped.endswith('.git'):
        stripped = stripped[:-len('.git')]

    # Handles https://host/org/project, git@host:org/project and local paths
    project = re.split(r'[/\\:]', stripped)[-1]
    project = _UNSAFE_NAME_CHARS.sub('-', project).strip('-.') or 'repository'

    digest = hashlib.sha1(url.encode('utf-8')).hexdigest()[:10]
    return f"{project}-{digest}"


@dataclass(frozen=True)
class Repository:
    """A remote repository identified by its URL."""
    url: str

    @property
    def name(self) -> str:
        return derive_repository_name(self.url)

    def __str__(self) -> str:
        return self.url


class WorkingCopyState(Enum):
    ABSENT = "absent"
    CLONED = "cloned"


@dataclass
class WorkingCopy:
    """A local mirror bound to one repository."""
    repository: Repository
    path: Path
    state: WorkingCopyState = WorkingCopyState.ABSENT
    synchronized: bool = False

    def exists(self) -> bool:
        """Whether `path` holds a git working tree."""
        try:
            Repo(str(self.path)).close()
        except (InvalidGitRepositoryError, NoSuchPathError):
            return False
        return True


class WorkingCopyManager:
    """
    Maps repository URLs to working copies under a data directory.

    One manager lives for one pipeline run: each repository is cloned or
    pulled at most once while the manager's cache holds it.
    """

    def __init__(self, data_directory: Union[str, Path], git: GitWrapper):
        """
        Initialize the working copy manager.

        Args:
            data_directory: Directory that holds every working copy
            git: Wrapper used to run clone and pull
        """
        self.logger = setup_logger(f"{__name__}.WorkingCopyManager")
        self.data_directory = Path(data_directory)
        self.git = git

        self._working_copies: Dict[str, WorkingCopy] = {}
        self._failures: Dict[str, SynchronizationError] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def path_for(self, repository: Union[str, Repository]) -> Path:
        """Directory the working copy of `repository` lives in."""
        repository = _as_repository(repository)
        return self.data_directory / repository.name

    def resolve(self, repository: Union[str, Repository]) -> Path:
        """
        Ensure the working copy exists and is current, returning its path.

        Raises:
            SynchronizationError: if clone or pull fails
        """
        return self.get(repository).path

    def get(self, repository: Union[str, Repository]) -> WorkingCopy:
        """
        Return the synchronized working copy of `repository`.

        A failed clone or pull is remembered too, so later lookups in the same
        run fail without contacting the remote again.
        """
        repository = _as_repository(repository)

        with self._lock:
            repo_lock = self._locks.setdefault(repository.url, threading.Lock())

        # At most one clone or pull per repository at a time
        with repo_lock:
            working_copy = self._working_copies.get(repository.url)
            if working_copy is not None and working_copy.synchronized:
                return working_copy

            failure = self._failures.get(repository.url)
            if failure is not None:
                raise SynchronizationError(str(failure), repository=repository.url) from failure

            working_copy = WorkingCopy(repository=repository, path=self.path_for(repository))
            try:
                self._synchronize(working_copy)
            except SynchronizationError as e:
                with self._lock:
                    self._failures[repository.url] = e
                raise

            with self._lock:
                self._working_copies[repository.url] = working_copy

        return working_copy

    def clear(self) -> None:
        """Forget every cached working copy; files on disk are kept."""
        with self._lock:
            self._working_copies.clear()
            self._failures.clear()
            self._locks.clear()

    def __contains__(self, repository: Union[str, Repository]) -> bool:
        return _as_repository(repository).url in self._working_copies

    def _synchronize(self, working_copy: WorkingCopy) -> None:
        url = working_copy.repository.url

        if working_copy.exists():
            working_copy.state = WorkingCopyState.CLONED
            self._pull(working_copy)
        else:
            self._clone(working_copy)
            working_copy.state = WorkingCopyState.CLONED

        working_copy.synchronized = True
        self.logger.debug(f"Working copy for {url} ready at {working_copy.path}")

    def _clone(self, working_copy: WorkingCopy) -> None:
        url = working_copy.repository.url
        self.data_directory.mkdir(parents=True, exist_ok=True)

        with PerformanceLogger(self.logger, f"clone of {url}"):
            try:
                self.git.execute("clone", "--quiet", "--", url, str(working_copy.path))
            except (GitCommandError, GitCommandNotFound) as e:
                raise SynchronizationError(f"Failed to clone {url}: {e}", repository=url) from e

    def _pull(self, working_copy: WorkingCopy) -> None:
        url = working_copy.repository.url

        with PerformanceLogger(self.logger, f"pull of {url}"):
            try:
                # Output is not needed, only the exit status
                self.git.execute("pull", "--quiet", "--ff-only", cwd=working_copy.path)
            except (GitCommandError, GitCommandNotFound) as e:
                raise SynchronizationError(f"Failed to pull {url}: {e}", repository=url) from e


def _as_repository(repository: Union[str, Repository]) -> Repository:
    if isinstance(repository, Repository):
        return repository
    return Repository(url=repository)
