"""Shared fixtures for git collection tests."""

import logging
from unittest.mock import MagicMock

import pytest

from git_collection.data.wrapper import GitWrapper
from tests.log_samples import HASHES, batch_log, single_log


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the caller's environment out of configuration tests."""
    for name in (
        "GIT_COLLECTION_REPOSITORY",
        "GIT_COLLECTION_DATA_DIR",
        "GIT_COLLECTION_LIMIT",
        "GIT_COLLECTION_TIMEOUT",
        "GIT_BINARY",
        "LOG_LEVEL",
        "LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams captured by a finished test."""
    yield
    logger = logging.getLogger("git_collection")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def fake_git():
    """A GitWrapper double answering clone, pull and log like git would."""
    git = MagicMock(spec=GitWrapper)

    def execute(command, *args, cwd=None):
        if command in ("clone", "pull"):
            return ""
        if command == "log":
            if "--patch" in args:
                commit = args[args.index("--max-count=1") + 1]
                return single_log(commit)
            limit = len(HASHES)
            for arg in args:
                if arg.startswith("--max-count="):
                    limit = int(arg.split("=", 1)[1])
            return batch_log(HASHES[:limit])
        raise AssertionError(f"unexpected git command: {command}")

    git.execute.side_effect = execute
    return git
