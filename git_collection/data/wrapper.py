"""
Thin wrapper around the git executable.
Every invocation is a blocking child process bounded by a timeout.
"""

import shutil
from pathlib import Path
from typing import Optional, Union

import git
from git import Git

from ..core.exceptions import ConfigurationError
from ..core.logger import setup_logger


OUTPUT_ENCODING = "utf-8"


class GitWrapper:
    """
    Runs git commands through GitPython's command object.

    Errors from git (non-zero exit, missing binary or working directory,
    timeout) surface as `git.GitCommandError` / `git.GitCommandNotFound`;
    callers translate them into their own error types.
    """

    def __init__(self, git_binary: Optional[str] = None, timeout: Optional[int] = 600):
        self.logger = setup_logger(f"{__name__}.GitWrapper")
        self.timeout = timeout

        if git_binary:
            resolved = shutil.which(git_binary)
            if resolved is None:
                raise ConfigurationError(f"Git executable not found: {git_binary}")
            git.refresh(resolved)
            self.logger.info(f"Using git executable: {resolved}")

    def execute(self, command: str, *args: str, cwd: Optional[Union[str, Path]] = None) -> str:
        """
        Run `git <command> <args>` and return its standard output.

        Output is decoded as UTF-8; bytes that are not valid UTF-8 (patches of
        latin-1 files, for instance) become U+FFFD so the text always encodes.

        Args:
            command: Git subcommand, e.g. "clone" or "log"
            args: Arguments passed verbatim after the subcommand
            cwd: Working directory for the child process

        Returns:
            Standard output of the command
        """
        runner = Git(str(cwd) if cwd is not None else None)
        self.logger.debug(f"git {command} {' '.join(args)} (cwd={cwd})")

        options = {'stdout_as_string': False}
        if self.timeout:
            options['kill_after_timeout'] = self.timeout

        output = runner.execute([Git.GIT_PYTHON_GIT_EXECUTABLE, command, *args], **options)
        return output.decode(OUTPUT_ENCODING, errors='replace')
