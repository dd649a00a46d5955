"""Error types raised by the digest tools."""


class DigestError(Exception):
    """Base error for expected failures that are reported to the user.

    ``exit_code`` is the process status the CLI exits with. Detection
    failures (no repository, no pull request) exit 0 so that callers parse
    the printed ``error:`` line instead of treating it as a crash.
    """

    exit_code = 0

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GitCommandError(DigestError):
    """A git command failed or returned unusable output."""

    exit_code = 1

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = command or []
        self.stderr = stderr


class RepositoryDetectionError(DigestError):
    """The origin remote does not point at a GitHub repository."""

    def __init__(self, message: str = "Could not detect repository from git remote") -> None:
        super().__init__(message)


class PullRequestNotFoundError(DigestError):
    """No open pull request exists for the branch."""

    def __init__(self, branch: str) -> None:
        super().__init__(f"No PR found for current branch: {branch}")
        self.branch = branch


class RateLimitExceededError(DigestError):
    """GitHub refused the request because the rate limit is exhausted."""

    exit_code = 1

    def __init__(self, reset_at: int | None = None) -> None:
        super().__init__("GitHub API rate limit exceeded. Wait a few minutes and try again.")
        self.reset_at = reset_at


def format_error(exc: DigestError) -> str:
    """Render an error the way the tools print it on stdout."""
    message = exc.message.replace("\\", "\\\\").replace('"', '\\"')
    return f'error: "{message}"'
