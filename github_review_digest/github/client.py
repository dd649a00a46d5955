"""GitHub API client for pull request review data and commit history."""

import time
from typing import Any
from urllib.parse import urljoin

import requests

from github_review_digest.config import get_settings
from github_review_digest.exceptions import RateLimitExceededError
from github_review_digest.utils import get_logger

logger = get_logger(__name__)


class GitHubAPIClient:
    """GitHub API client with rate limiting and error handling."""

    def __init__(self, access_token: str | None = None, base_url: str | None = None) -> None:
        """Initialize GitHub API client.

        Args:
        ----
            access_token: GitHub personal access token for authentication
            base_url: API root, defaults to the configured GitHub API URL

        """
        settings = get_settings()
        self.access_token = access_token or settings.github_token
        self.base_url = (base_url or settings.github_api_base_url).rstrip("/") + "/"
        self.timeout = settings.request_timeout
        self.wait_on_rate_limit = settings.wait_on_rate_limit
        self.session = requests.Session()

        self.session.headers.update({
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": f"{settings.app_name.replace(' ', '-')}/{settings.app_version}",
        })
        if self.access_token:
            self.session.headers["Authorization"] = f"token {self.access_token}"
        else:
            logger.warning("No GitHub token provided, using unauthenticated requests")

        # Rate limiting
        self.rate_limit_remaining = None
        self.rate_limit_reset = None
        self.last_request_time = 0.0

        # Request delay to avoid hitting secondary rate limits
        self.request_delay = settings.request_delay

    def _check_rate_limit(self) -> None:
        """Wait for the rate limit window or raise when waiting is disabled."""
        if self.rate_limit_remaining is not None and self.rate_limit_remaining <= 0:
            if not self.wait_on_rate_limit:
                raise RateLimitExceededError(self.rate_limit_reset)
            self._wait_for_reset()

        # Enforce minimum delay between requests
        time_since_last_request = time.time() - self.last_request_time
        if time_since_last_request < self.request_delay:
            time.sleep(self.request_delay - time_since_last_request)

        self.last_request_time = time.time()

    def _wait_for_reset(self) -> None:
        """Sleep until the rate limit window resets."""
        if self.rate_limit_reset:
            wait_time = self.rate_limit_reset - time.time()
            if wait_time > 0:
                logger.info("Rate limit exceeded, waiting %.1f seconds", wait_time)
                time.sleep(wait_time + 1)
        else:
            logger.info("Rate limit exceeded, waiting 60 seconds")
            time.sleep(60)
        self.rate_limit_remaining = None

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        return response.status_code in (403, 429) and "rate limit" in response.text.lower()

    def _update_rate_limit(self, response: requests.Response) -> None:
        if "X-RateLimit-Remaining" in response.headers:
            self.rate_limit_remaining = int(response.headers["X-RateLimit-Remaining"])
        if "X-RateLimit-Reset" in response.headers:
            self.rate_limit_reset = int(response.headers["X-RateLimit-Reset"])

    def _make_request(self, method: str, url: str, **kwargs: Any) -> requests.Response:  # noqa: ANN401
        """Make HTTP request with rate limiting and error handling.

        Args:
        ----
            method: HTTP method (GET, POST, etc.)
            url: Request URL or path relative to the API root
            **kwargs: Additional request parameters

        Returns:
        -------
            requests.Response: Response object

        Raises:
        ------
            RateLimitExceededError: The rate limit is exhausted and waiting is disabled
            requests.RequestException: If request fails

        """
        self._check_rate_limit()

        if not url.startswith(("http://", "https://")):
            url = urljoin(self.base_url, url.lstrip("/"))

        kwargs.setdefault("timeout", self.timeout)
        logger.debug("Making %s request to %s", method, url)

        try:
            response = self.session.request(method, url, **kwargs)
            self._update_rate_limit(response)

            if self._is_rate_limited(response):
                logger.warning("Rate limit exceeded")
                if not self.wait_on_rate_limit:
                    raise RateLimitExceededError(self.rate_limit_reset)
                self._wait_for_reset()
                response = self.session.request(method, url, **kwargs)
                self._update_rate_limit(response)
                if self._is_rate_limited(response):
                    raise RateLimitExceededError(self.rate_limit_reset)

            response.raise_for_status()

            return response

        except requests.RequestException:
            logger.exception("Request failed")
            raise

    def _get_paginated_results(
        self,
        url: str,
        params: dict | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Get all results from paginated endpoint.

        Args:
        ----
            url: API endpoint URL
            params: Query parameters
            limit: Stop after this many results

        Returns:
        -------
            List of all results

        """
        all_results = []
        page = 1
        # GitHub allows at most 100 per page
        per_page = 100 if limit is None else max(1, min(limit, 100))

        while True:
            request_params = params.copy() if params else {}
            request_params.update({
                "page": page,
                "per_page": per_page,
            })

            response = self._make_request("GET", url, params=request_params)
            results = response.json()

            if not results:
                break

            all_results.extend(results)

            if limit is not None and len(all_results) >= limit:
                return all_results[:limit]

            # Fewer results than requested means this was the last page
            if len(results) < per_page:
                break

            page += 1

        return all_results

    def get_repository(self, owner: str, repo: str) -> dict:
        """Get repository information.

        Args:
        ----
            owner: Repository owner
            repo: Repository name

        Returns:
        -------
            Repository dictionary

        """
        response = self._make_request("GET", f"/repos/{owner}/{repo}")
        return response.json()

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> dict:
        """Get a single pull request."""
        response = self._make_request("GET", f"/repos/{owner}/{repo}/pulls/{pr_number}")
        return response.json()

    def find_pull_request_for_branch(self, owner: str, repo: str, branch: str) -> dict | None:
        """Find the open pull request whose head is a branch of this repository.

        Args:
        ----
            owner: Repository owner
            repo: Repository name
            branch: Head branch name

        Returns:
        -------
            Pull request dictionary, or None if the branch has no open PR

        """
        params = {"state": "open", "head": f"{owner}:{branch}", "per_page": 1}
        response = self._make_request("GET", f"/repos/{owner}/{repo}/pulls", params=params)
        pulls = response.json()
        return pulls[0] if pulls else None

    def get_pull_request_comments(self, owner: str, repo: str, pr_number: int) -> list[dict]:
        """Get inline review comments for a pull request.

        Args:
        ----
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
        -------
            List of review comment dictionaries

        """
        return self._get_paginated_results(f"/repos/{owner}/{repo}/pulls/{pr_number}/comments")

    def get_pull_request_reviews(self, owner: str, repo: str, pr_number: int) -> list[dict]:
        """Get submitted reviews (top-level review bodies) for a pull request.

        Args:
        ----
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
        -------
            List of review dictionaries

        """
        return self._get_paginated_results(f"/repos/{owner}/{repo}/pulls/{pr_number}/reviews")

    def get_commit(self, owner: str, repo: str, ref: str) -> dict:
        """Get a single commit by SHA or ref."""
        response = self._make_request("GET", f"/repos/{owner}/{repo}/commits/{ref}")
        return response.json()

    def get_commits(
        self,
        owner: str,
        repo: str,
        since: str | None = None,
        until: str | None = None,
        author: str | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Get commits on the default branch.

        Args:
        ----
            owner: Repository owner
            repo: Repository name
            since: ISO 8601 lower bound on the commit date
            until: ISO 8601 upper bound on the commit date
            author: GitHub login or email to filter by
            limit: Maximum number of commits to return

        Returns:
        -------
            List of commit dictionaries, newest first

        """
        params = {}
        if since:
            params["since"] = since
        if until:
            params["until"] = until
        if author:
            params["author"] = author

        return self._get_paginated_results(f"/repos/{owner}/{repo}/commits", params, limit=limit)

    def get_rate_limit_status(self) -> dict:
        """Get current rate limit status.

        Returns
        -------
            Rate limit status dictionary

        """
        response = self._make_request("GET", "/rate_limit")
        return response.json()

    def test_connection(self) -> bool:
        """Test connection to GitHub API.

        Returns
        -------
            True if connection is successful, False otherwise

        """
        try:
            response = self._make_request("GET", "/rate_limit")
            return response.status_code == 200
        except requests.RequestException:
            logger.exception("Connection test failed")
            return False
