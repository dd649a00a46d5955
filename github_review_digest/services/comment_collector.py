"""Collect the review comments posted on a pull request since a commit."""

import json
from datetime import datetime
from typing import Any

from github_review_digest.config import Settings, get_settings
from github_review_digest.exceptions import PullRequestNotFoundError
from github_review_digest.git.repository import GitRepository
from github_review_digest.github.client import GitHubAPIClient
from github_review_digest.services import toon
from github_review_digest.services.comment_filter import clean_comment, detect_priority
from github_review_digest.services.digest_cache import DigestCache
from github_review_digest.utils import get_logger

logger = get_logger(__name__)

NO_COMMENTS_MESSAGE = "No actionable comments found since last commit"


def parse_github_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by the GitHub API."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _is_since(value: str | None, since: datetime) -> bool:
    timestamp = parse_github_timestamp(value)
    return timestamp is not None and timestamp >= since


class RecentCommentsCollector:
    """Builds the digest of actionable review feedback newer than a commit."""

    def __init__(
        self,
        github_client: GitHubAPIClient | None = None,
        repository: GitRepository | None = None,
        cache: DigestCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the collector.

        Args:
        ----
            github_client: Client for the GitHub API
            repository: Local working copy the PR is detected from
            cache: Digest cache, created lazily when first needed
            settings: Application settings

        """
        self.settings = settings or get_settings()
        self.github_client = github_client or GitHubAPIClient()
        self.repository = repository or GitRepository()
        self._cache = cache

    @property
    def cache(self) -> DigestCache:
        if self._cache is None:
            self._cache = DigestCache(ttl_seconds=self.settings.cache_ttl_seconds)
        return self._cache

    def collect(self, since_commit: str | None = None, use_cache: bool = True) -> dict[str, Any]:
        """Build the digest for the pull request of the checked out branch.

        Args:
        ----
            since_commit: Commit whose committer date bounds the comments, defaults to HEAD
            use_cache: Read and write the digest cache

        Returns:
        -------
            Digest dictionary

        Raises:
        ------
            RepositoryDetectionError: origin is not a GitHub repository
            PullRequestNotFoundError: the branch has no open pull request

        """
        if since_commit:
            commit_sha = self.repository.resolve_commit(since_commit)
        else:
            commit_sha = self.repository.head_sha()
        commit_timestamp = self.repository.commit_timestamp(commit_sha)

        owner, repo = self.repository.repository_slug()
        branch = self.repository.current_branch()

        pull_request = self.github_client.find_pull_request_for_branch(owner, repo, branch)
        if pull_request is None:
            raise PullRequestNotFoundError(branch)

        return self.collect_for_pull_request(
            owner,
            repo,
            pull_request["number"],
            commit_sha,
            commit_timestamp,
            use_cache=use_cache,
        )

    def collect_for_pull_request(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        commit_sha: str,
        commit_timestamp: datetime,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Build the digest for an explicit pull request and commit.

        Args:
        ----
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number
            commit_sha: Commit the digest is keyed on
            commit_timestamp: Comments older than this are ignored
            use_cache: Read and write the digest cache

        Returns:
        -------
            Digest dictionary

        """
        full_name = f"{owner}/{repo}"

        if use_cache:
            cached = self.cache.get(full_name, pr_number, commit_sha)
            if cached is not None:
                return cached

        logger.info("Fetching comments since %s...", commit_timestamp.isoformat())

        inline_comments = [
            comment
            for comment in self.github_client.get_pull_request_comments(owner, repo, pr_number)
            if _is_since(comment.get("updated_at"), commit_timestamp)
        ]
        reviews = [
            review
            for review in self.github_client.get_pull_request_reviews(owner, repo, pr_number)
            if _is_since(review.get("submitted_at"), commit_timestamp)
        ]
        logger.debug("PR #%d: %d inline comments, %d reviews in range", pr_number, len(inline_comments), len(reviews))

        comments = self._filter_inline_comments(inline_comments)
        filtered_reviews = self._filter_reviews(reviews)
        total = len(comments) + len(filtered_reviews)

        pr_info = {
            "number": pr_number,
            "current_commit": commit_sha,
            "commit_timestamp": commit_timestamp.isoformat(),
        }

        if total == 0:
            return {
                "pr": pr_info,
                "comments_since": 0,
                "message": NO_COMMENTS_MESSAGE,
            }

        result = {
            "pr": {
                **pr_info,
                "comments_since": total,
                "inline_comments": len(comments),
                "top_level_reviews": len(filtered_reviews),
            },
            "comments": comments,
            "reviews": filtered_reviews,
        }

        if use_cache:
            self.cache.put(full_name, pr_number, commit_sha, result)

        return result

    def _clean(self, body: str | None) -> str | None:
        return clean_comment(body, self.settings.max_body_lines, self.settings.max_body_chars)

    def _filter_inline_comments(self, comments: list[dict]) -> list[dict[str, Any]]:
        filtered = []
        for comment in comments:
            body = comment.get("body") or ""
            cleaned = self._clean(body)
            if cleaned is None:
                continue
            filtered.append({
                "path": comment.get("path"),
                "line": comment.get("line"),
                "body": cleaned,
                "priority": detect_priority(body),
            })
        return filtered

    def _filter_reviews(self, reviews: list[dict]) -> list[dict[str, Any]]:
        filtered = []
        for review in reviews:
            cleaned = self._clean(review.get("body"))
            if cleaned is None:
                continue
            filtered.append({"body": cleaned})
        return filtered


def render_digest(result: dict[str, Any], output_format: str = "toon") -> str:
    """Render a digest as TOON (comma-delimited) or indented JSON."""
    if output_format == "json":
        return json.dumps(result, indent=2, ensure_ascii=False)
    if output_format == "toon":
        return toon.encode(result, delimiter=",")
    msg = f"Unknown output format: {output_format}"
    raise ValueError(msg)
