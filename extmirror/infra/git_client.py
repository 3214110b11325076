"""
Git client infrastructure for extmirror.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Logged with their output for operator diagnosis
- Optionally strict about exit codes
"""

import os
import subprocess
from dataclasses import dataclass
from typing import Optional, List, Dict
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class GitCommandError(Exception):
    """A git command exited non-zero while exit codes are enforced."""

    def __init__(self, command: List[str], returncode: int, output: str = ""):
        super().__init__(f"{' '.join(command)} exited with {returncode}: {output}".strip())
        self.command = command
        self.returncode = returncode
        self.output = output


@dataclass
class GitResult:
    """Outcome of one git invocation."""
    command: List[str]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitClient:
    """
    Abstraction over git commands.

    Exit codes are logged but not enforced unless ``check`` is set, in which
    case a non-zero exit raises GitCommandError.

    Example:
        client = GitClient()
        client.init("/tmp/extmirror/Extension/news")
        client.add_remote("/tmp/extmirror/Extension/news", "git@github.com:o/news.git")
    """

    def __init__(self, timeout: Optional[float] = None, check: bool = False, executable: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (None waits indefinitely)
            check: Raise GitCommandError on non-zero exit
            executable: git binary to invoke
        """
        self.timeout = timeout
        self.check = check
        self.executable = executable

    @classmethod
    def from_config(cls, config: Dict) -> 'GitClient':
        git = config.get('git', {})
        return cls(
            timeout=git.get('timeout_seconds') or None,
            check=bool(git.get('check_exit_codes', False)),
        )

    def _run(
        self,
        args: List[str],
        cwd: str,
        env: Optional[Dict[str, str]] = None
    ) -> GitResult:
        """
        Run a git command.

        Args:
            args: Arguments after the git executable
            cwd: Working directory
            env: Extra environment variables

        Returns:
            GitResult with combined stdout/stderr
        """
        command = [self.executable] + args
        run_env = None
        if env:
            run_env = os.environ.copy()
            run_env.update(env)

        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                env=run_env,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
            output = ((result.stdout or '') + (result.stderr or '')).strip()
            outcome = GitResult(command=command, returncode=result.returncode, output=output)
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(command)}")
            outcome = GitResult(command=command, returncode=-1, output="timed out")
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(command)} - {e}")
            outcome = GitResult(command=command, returncode=-1, output=str(e))

        if outcome.output:
            logger.debug(outcome.output)
        if not outcome.ok:
            logger.warning(f"{' '.join(command)} exited with {outcome.returncode}: {outcome.output}")
            if self.check:
                raise GitCommandError(command, outcome.returncode, outcome.output)

        return outcome

    def init(self, path: str, branch: Optional[str] = None) -> GitResult:
        """Initialize a repository, naming the initial branch if given."""
        args = ["init"]
        if branch:
            args += ["-b", branch]
        return self._run(args, cwd=path)

    def add_remote(self, path: str, url: str, name: str = "origin") -> GitResult:
        return self._run(["remote", "add", name, url], cwd=path)

    def set_identity(self, path: str, name: str, email: str) -> List[GitResult]:
        """Configure user.name and user.email for this repository only."""
        return [
            self._run(["config", "user.name", name], cwd=path),
            self._run(["config", "user.email", email], cwd=path),
        ]

    def pull(self, path: str, remote: str = "origin", branch: Optional[str] = None) -> GitResult:
        """Quietly pull from remote."""
        args = ["pull", "-q", remote]
        if branch:
            args.append(branch)
        return self._run(args, cwd=path)

    def add_all(self, path: str) -> GitResult:
        return self._run(["add", "-A"], cwd=path)

    def commit(self, path: str, message: str, date: Optional[datetime] = None) -> GitResult:
        """
        Commit staged changes.

        ``date`` is used as both author and committer date, so the history
        reflects the original publication time.
        """
        args = ["commit", "-m", message]
        env = None
        if date is not None:
            stamp = date.isoformat()
            args += ["--date", stamp]
            env = {"GIT_COMMITTER_DATE": stamp}
        return self._run(args, cwd=path, env=env)

    def tag(self, path: str, name: str, message: str, date: Optional[datetime] = None) -> GitResult:
        """Create an annotated tag."""
        env = {"GIT_COMMITTER_DATE": date.isoformat()} if date is not None else None
        return self._run(["tag", "-a", "-m", message, name], cwd=path, env=env)

    def push(self, path: str, remote: str = "origin", branch: Optional[str] = None, tags: bool = True) -> GitResult:
        args = ["push"]
        if tags:
            args.append("--tags")
        args.append(remote)
        if branch:
            args.append(branch)
        return self._run(args, cwd=path)
