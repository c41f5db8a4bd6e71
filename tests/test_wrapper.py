"""
Tests for GitWrapper - timeout handling and decoding of git output.
"""

from unittest.mock import patch

import pytest
from git import Git, GitCommandError

from git_collection.core.exceptions import ConfigurationError, FetchError
from git_collection.data.log_fetcher import CommitLogFetcher, LogOptions
from git_collection.data.wrapper import GitWrapper


class TestGitWrapper:

    def test_timeout_bounds_every_call(self, tmp_path):
        with patch.object(Git, "execute", return_value=b"") as execute:
            GitWrapper(timeout=5).execute("log", "--max-count=1", cwd=tmp_path)

        args, kwargs = execute.call_args
        assert args[0][1:] == ["log", "--max-count=1"]
        assert kwargs["kill_after_timeout"] == 5

    def test_output_is_read_as_bytes(self, tmp_path):
        with patch.object(Git, "execute", return_value=b"") as execute:
            GitWrapper().execute("log", cwd=tmp_path)

        assert execute.call_args.kwargs["stdout_as_string"] is False

    def test_output_is_decoded_as_utf8(self, tmp_path):
        with patch.object(Git, "execute", return_value="café".encode("utf-8")):
            assert GitWrapper().execute("log", cwd=tmp_path) == "café"

    def test_undecodable_bytes_are_replaced(self, tmp_path):
        with patch.object(Git, "execute", return_value=b"+caf\xe9"):
            output = GitWrapper().execute("log", cwd=tmp_path)

        assert output == "+caf\ufffd"
        output.encode("utf-8")

    def test_expired_log_query_is_a_fetch_error(self, tmp_path):
        timeout = GitCommandError(["git", "log"], -9, 'Timeout: the command "git log" did not complete in 1 secs.')

        with patch.object(Git, "execute", side_effect=timeout):
            with pytest.raises(FetchError, match="Timeout"):
                CommitLogFetcher(GitWrapper(timeout=1)).fetch_log(tmp_path, LogOptions(limit=1))

    def test_unknown_git_binary(self):
        with pytest.raises(ConfigurationError, match="not found"):
            GitWrapper(git_binary="definitely-not-a-git-binary")
