"""Access to the ambient git state of a working copy."""

import re
import subprocess
from datetime import datetime
from pathlib import Path

from github_review_digest.exceptions import GitCommandError, RepositoryDetectionError
from github_review_digest.utils import get_logger

logger = get_logger(__name__)

# git@github.com:owner/repo.git, https://github.com/owner/repo, ssh://git@github.com/owner/repo.git
_GITHUB_REMOTE = re.compile(
    r"github\.com[:/](?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+?)(?:\.git)?/?$",
)


def parse_repository_slug(remote_url: str) -> tuple[str, str] | None:
    """Extract ``(owner, repo)`` from a GitHub remote URL.

    Args:
    ----
        remote_url: URL as stored in ``remote.<name>.url``

    Returns:
    -------
        Owner and repository name, or None for non-GitHub remotes

    """
    match = _GITHUB_REMOTE.search(remote_url.strip())
    if not match:
        return None
    return match.group("owner"), match.group("repo")


class GitRepository:
    """Thin wrapper around the ``git`` executable for one working copy."""

    def __init__(self, path: str | Path | None = None, git_executable: str = "git") -> None:
        """Initialize the repository wrapper.

        Args:
        ----
            path: Working copy directory, defaults to the current directory
            git_executable: Name or path of the git binary

        """
        self.path = Path(path) if path else None
        self.git_executable = git_executable

    def _run(self, *args: str) -> str:
        """Run a git command and return its stripped stdout."""
        command = [self.git_executable, *args]
        logger.debug("Running %s", " ".join(command))

        try:
            completed = subprocess.run(
                command,
                cwd=str(self.path) if self.path else None,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            msg = f"git executable not found: {self.git_executable}"
            raise GitCommandError(msg, command) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            msg = f"git {' '.join(args)} failed: {stderr or f'exit status {e.returncode}'}"
            raise GitCommandError(msg, command, stderr) from e

        return completed.stdout.strip()

    def head_sha(self) -> str:
        """Full SHA of HEAD."""
        return self._run("rev-parse", "HEAD")

    def resolve_commit(self, ref: str) -> str:
        """Full SHA of the commit a ref points at."""
        return self._run("rev-parse", "--verify", f"{ref}^{{commit}}")

    def commit_timestamp(self, ref: str = "HEAD") -> datetime:
        """Committer date of a commit as an aware datetime."""
        return datetime.fromisoformat(self._run("log", "-1", "--format=%cI", ref))

    def current_branch(self) -> str:
        """Name of the checked out branch.

        Raises
        ------
            GitCommandError: HEAD is detached

        """
        branch = self._run("branch", "--show-current")
        if not branch:
            msg = "HEAD is detached; check out a branch with an open pull request"
            raise GitCommandError(msg, [self.git_executable, "branch", "--show-current"])
        return branch

    def remote_url(self, remote: str = "origin") -> str:
        """Configured URL of a remote."""
        return self._run("config", "--get", f"remote.{remote}.url")

    def repository_slug(self, remote: str = "origin") -> tuple[str, str]:
        """Owner and name of the GitHub repository behind a remote.

        Raises
        ------
            RepositoryDetectionError: The remote is missing or not on GitHub

        """
        try:
            url = self.remote_url(remote)
        except GitCommandError as e:
            raise RepositoryDetectionError from e

        slug = parse_repository_slug(url)
        if slug is None:
            raise RepositoryDetectionError
        return slug
