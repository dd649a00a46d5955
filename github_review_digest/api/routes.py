"""FastAPI routes for the GitHub Review Digest."""

from datetime import date
from typing import Annotated, Any, NoReturn

import requests
from fastapi import APIRouter, Depends, HTTPException, Path, Query

from github_review_digest import __version__
from github_review_digest.exceptions import DigestError, PullRequestNotFoundError, RateLimitExceededError
from github_review_digest.github.client import GitHubAPIClient
from github_review_digest.services.comment_collector import RecentCommentsCollector, parse_github_timestamp
from github_review_digest.services.contributors import (
    CONTRIBUTOR_STYLES,
    ContributorService,
    format_contributors,
    render_section,
)
from github_review_digest.services.digest_cache import DigestCache
from github_review_digest.utils import get_logger

logger = get_logger(__name__)
router = APIRouter()


# Dependencies to get services
def get_github_client() -> GitHubAPIClient:
    """Get GitHub API client."""
    return GitHubAPIClient()


def get_collector(
    github_client: Annotated[GitHubAPIClient, Depends(get_github_client)],
) -> RecentCommentsCollector:
    """Get recent comments collector."""
    return RecentCommentsCollector(github_client=github_client)


def get_contributor_service(
    github_client: Annotated[GitHubAPIClient, Depends(get_github_client)],
) -> ContributorService:
    """Get contributor service."""
    return ContributorService(github_client=github_client)


def get_cache() -> DigestCache:
    """Get digest cache."""
    return DigestCache()


def _raise_http_error(exc: Exception) -> NoReturn:
    """Translate a service failure into an HTTP error."""
    if isinstance(exc, RateLimitExceededError):
        raise HTTPException(status_code=429, detail=exc.message) from exc
    if isinstance(exc, PullRequestNotFoundError):
        raise HTTPException(status_code=404, detail=exc.message) from exc
    if isinstance(exc, DigestError):
        raise HTTPException(status_code=400, detail=exc.message) from exc
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        if exc.response.status_code == 404:
            raise HTTPException(status_code=404, detail="Not found on GitHub") from exc
        raise HTTPException(status_code=502, detail=f"GitHub API error: {exc.response.status_code}") from exc
    if isinstance(exc, requests.RequestException):
        raise HTTPException(status_code=502, detail="GitHub API unreachable") from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.exception("Unexpected error")
    raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "message": "GitHub Review Digest API",
        "version": __version__,
        "endpoints": {
            "recent_comments": "/repos/{owner}/{repo}/pulls/{number}/recent-comments",
            "contributors": "/repos/{owner}/{repo}/contributors",
            "cache": "/cache",
        },
    }


@router.get("/repos/{owner}/{repo}/pulls/{number}/recent-comments")
def get_recent_comments(
    owner: str,
    repo: str,
    number: Annotated[int, Path(ge=1)],
    collector: Annotated[RecentCommentsCollector, Depends(get_collector)],
    commit_sha: Annotated[str | None, Query(min_length=7, max_length=40)] = None,
    since: Annotated[str | None, Query(description="ISO 8601 timestamp")] = None,
    use_cache: bool = True,
) -> dict[str, Any]:
    """Actionable review comments posted on a pull request since a commit.

    ``commit_sha`` defaults to the pull request head and ``since`` to that
    commit's committer date.
    """
    try:
        github_client = collector.github_client

        if commit_sha is None:
            commit_sha = github_client.get_pull_request(owner, repo, number)["head"]["sha"]

        if since is None:
            commit = github_client.get_commit(owner, repo, commit_sha)
            commit_timestamp = parse_github_timestamp(commit["commit"]["committer"]["date"])
            commit_sha = commit["sha"]
        else:
            commit_timestamp = parse_github_timestamp(since)
            if commit_timestamp is None or commit_timestamp.tzinfo is None:
                msg = "since must include a timezone offset"
                raise ValueError(msg)

        return collector.collect_for_pull_request(
            owner,
            repo,
            number,
            commit_sha,
            commit_timestamp,
            use_cache=use_cache,
        )

    except HTTPException:
        raise
    except Exception as e:
        _raise_http_error(e)


@router.get("/repos/{owner}/{repo}/contributors")
def get_release_contributors(
    owner: str,
    repo: str,
    since: date,
    until: date,
    service: Annotated[ContributorService, Depends(get_contributor_service)],
    style: Annotated[str, Query(pattern="^(" + "|".join(CONTRIBUTOR_STYLES) + ")$")] = "bullet",
    first_time: bool = True,
) -> dict[str, Any]:
    """Contributors of a release window with the rendered markdown section."""
    if since > until:
        raise HTTPException(status_code=400, detail="since must not be after until")

    try:
        result = service.get_release_contributors(f"{owner}/{repo}", since, until, include_first_time=first_time)
        contributors = result["contributors"]
        first_timers = result["first_time_contributors"]

        return {
            "repository": f"{owner}/{repo}",
            "since": since.isoformat(),
            "until": until.isoformat(),
            "contributors": [c.to_dict() for c in contributors],
            "first_time_contributors": [c.to_dict() for c in first_timers],
            "formatted": format_contributors(contributors, style=style),
            "section": render_section(contributors, first_timers, style=style),
        }

    except HTTPException:
        raise
    except Exception as e:
        _raise_http_error(e)


@router.delete("/cache")
def clear_cache(cache: Annotated[DigestCache, Depends(get_cache)]) -> dict[str, Any]:
    """Drop every cached digest."""
    removed = cache.clear()
    return {"message": "Cache cleared", "removed": removed}
