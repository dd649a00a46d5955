"""Contributor lists for release announcement posts."""

import re
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

import requests

from github_review_digest.github.client import GitHubAPIClient
from github_review_digest.utils import get_logger

logger = get_logger(__name__)

_PR_REFERENCE = re.compile(r"\(#(\d+)\)")

CONTRIBUTOR_STYLES = ("bullet", "paragraph")


@dataclass
class Contributor:
    """One contributor, represented by the earliest-listed commit credited to them."""

    author: str
    username: str | None
    date: date
    message: str
    pr_number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


def default_repository(package: str) -> str:
    """Repository of a tidyverse package."""
    return f"tidyverse/{package}"


def extract_pr_number(message: str) -> int | None:
    """First ``(#123)`` pull request reference in a commit message."""
    match = _PR_REFERENCE.search(message or "")
    return int(match.group(1)) if match else None


def _split_repository(repo_full_name: str) -> tuple[str, str]:
    owner, _, name = repo_full_name.partition("/")
    if not owner or not name or "/" in name:
        msg = f"Repository must be given as owner/name, got {repo_full_name!r}"
        raise ValueError(msg)
    return owner, name


def _as_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def format_contributors(contributors: list[Contributor], style: str = "bullet") -> str:
    """Render contributors as GitHub profile links.

    Args:
    ----
        contributors: Contributors to list
        style: "bullet" for one ``- `` line each, "paragraph" for a comma-separated line

    Returns:
    -------
        Markdown text

    """
    if style not in CONTRIBUTOR_STYLES:
        msg = f"Unknown style {style!r}, expected one of: {', '.join(CONTRIBUTOR_STYLES)}"
        raise ValueError(msg)

    links = [f"[@{c.username}](https://github.com/{c.username})" for c in contributors]

    if style == "bullet":
        return "\n".join(f"- {link}" for link in links)
    return ", ".join(links)


class ContributorService:
    """Finds who contributed to a repository within a release window."""

    def __init__(self, github_client: GitHubAPIClient | None = None) -> None:
        """Initialize contributor service.

        Args:
        ----
            github_client: Client for the GitHub API

        """
        self.github_client = github_client or GitHubAPIClient()

    def get_contributors(
        self,
        repo_full_name: str,
        since: date | str,
        until: date | str,
        limit: int = 500,
    ) -> list[Contributor]:
        """Contributors with commits between two dates (inclusive).

        Commits without a linked GitHub account are credited to the author of
        the pull request their message references, when there is one.

        Args:
        ----
            repo_full_name: Repository as ``owner/name``
            since: First day of the window
            until: Last day of the window
            limit: Maximum number of commits to inspect

        Returns:
        -------
            Unique contributors ordered by commit date

        """
        owner, repo = _split_repository(repo_full_name)
        since, until = _as_date(since), _as_date(until)

        logger.info("Fetching commit history from %s...", repo_full_name)
        commits = self.github_client.get_commits(
            owner,
            repo,
            since=f"{since.isoformat()}T00:00:00Z",
            until=f"{until.isoformat()}T23:59:59Z",
            limit=limit,
        )
        logger.info("Found %d commits", len(commits))

        contributors = [self._from_commit(commit) for commit in commits]

        missing = sorted({c.pr_number for c in contributors if c.username is None and c.pr_number is not None})
        if missing:
            logger.info("Fetching PR author information for %d PRs...", len(missing))
            pr_authors = {number: self._pull_request_author(owner, repo, number) for number in missing}
            for contributor in contributors:
                if contributor.username is None and contributor.pr_number is not None:
                    contributor.username = pr_authors.get(contributor.pr_number)

        unique: dict[str, Contributor] = {}
        for contributor in contributors:
            if contributor.username and contributor.username not in unique:
                unique[contributor.username] = contributor

        result = sorted(unique.values(), key=lambda c: c.date)
        logger.info("Found %d unique contributors", len(result))
        return result

    @staticmethod
    def _from_commit(commit: dict[str, Any]) -> Contributor:
        commit_info = commit.get("commit") or {}
        author_info = commit_info.get("author") or {}
        account = commit.get("author") or {}
        message = commit_info.get("message") or ""
        committed = author_info.get("date")

        return Contributor(
            author=author_info.get("name") or "",
            username=account.get("login"),
            date=datetime.fromisoformat(committed.replace("Z", "+00:00")).date() if committed else date.min,
            message=message,
            pr_number=extract_pr_number(message),
        )

    def _pull_request_author(self, owner: str, repo: str, pr_number: int) -> str | None:
        try:
            pull_request = self.github_client.get_pull_request(owner, repo, pr_number)
        except requests.RequestException:
            logger.warning("Could not fetch author of PR #%d", pr_number)
            return None
        return (pull_request.get("user") or {}).get("login")

    def get_first_time_contributors(
        self,
        contributors: list[Contributor],
        repo_full_name: str,
        before: date | str,
    ) -> list[Contributor]:
        """Contributors with no commit in the repository before a date.

        Contributors whose history cannot be fetched are not reported as
        first-time.

        Args:
        ----
            contributors: Contributors of the release
            repo_full_name: Repository as ``owner/name``
            before: Start of the release window

        Returns:
        -------
            The first-time subset, in input order

        """
        owner, repo = _split_repository(repo_full_name)
        cutoff = f"{_as_date(before).isoformat()}T00:00:00Z"

        logger.info("Checking first-time contributors for %s...", repo_full_name)

        first_time = []
        for contributor in contributors:
            try:
                earlier = self.github_client.get_commits(
                    owner,
                    repo,
                    until=cutoff,
                    author=contributor.username,
                    limit=1,
                )
            except requests.RequestException:
                logger.warning("Could not check commit history of %s", contributor.username)
                continue

            if not earlier:
                first_time.append(contributor)

        return first_time

    def get_release_contributors(
        self,
        repo_full_name: str,
        since: date | str,
        until: date | str,
        include_first_time: bool = True,
    ) -> dict[str, list[Contributor]]:
        """Contributors of a release window and the first-time subset.

        Returns
        -------
            Dictionary with ``contributors`` and ``first_time_contributors``

        """
        contributors = self.get_contributors(repo_full_name, since, until)

        first_time = []
        if contributors and include_first_time:
            first_time = self.get_first_time_contributors(contributors, repo_full_name, since)

        return {"contributors": contributors, "first_time_contributors": first_time}

    def generate_section(
        self,
        repo_full_name: str,
        since: date | str,
        until: date | str,
        include_first_time: bool = True,
        style: str = "bullet",
    ) -> str:
        """Build the markdown contributor section of a release post."""
        logger.info("Generating contributor section for %s...", repo_full_name)

        result = self.get_release_contributors(repo_full_name, since, until, include_first_time=include_first_time)
        return render_section(result["contributors"], result["first_time_contributors"], style=style)


def render_section(
    contributors: list[Contributor],
    first_time: list[Contributor] | None = None,
    style: str = "bullet",
) -> str:
    """Render the ``## Contributors`` markdown section.

    Args:
    ----
        contributors: Contributors of the release
        first_time: First-time subset, welcomed in a second list when non-empty
        style: List style passed to :func:`format_contributors`

    Returns:
    -------
        Markdown text

    """
    if not contributors:
        return "## Contributors\n\nNo contributors for this release."

    section = [
        "## Contributors",
        "",
        f"Thank you to the following {len(contributors)} contributors who made this release possible:",
        "",
        format_contributors(contributors, style=style),
    ]

    if first_time:
        section.extend([
            "",
            f"A warm welcome to the {len(first_time)} first-time contributors:",
            "",
            format_contributors(first_time, style=style),
        ])

    return "\n".join(section)
