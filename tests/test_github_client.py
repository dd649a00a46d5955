"""Unit tests for GitHub API client."""

import time
from unittest.mock import patch

import pytest
import requests
import responses

from github_review_digest.exceptions import RateLimitExceededError
from github_review_digest.github.client import GitHubAPIClient


class TestGitHubAPIClient:
    """Test GitHub API client."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.client = GitHubAPIClient("test_token")

    @responses.activate
    def test_get_pull_request_comments(self) -> None:
        """Test getting inline review comments."""
        mock_comments = [
            {
                "id": 1,
                "body": "Use `vapply()` here",
                "path": "R/utils.R",
                "line": 10,
                "updated_at": "2025-01-02T10:00:00Z",
                "user": {"login": "coderabbitai[bot]"},
            },
        ]

        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo/pulls/1/comments",
            json=mock_comments,
            status=200,
        )

        comments = self.client.get_pull_request_comments("user", "repo", 1)

        assert len(comments) == 1
        assert comments[0]["path"] == "R/utils.R"
        assert responses.calls[0].request.params == {"page": "1", "per_page": "100"}

    @responses.activate
    def test_get_pull_request_reviews_paginates(self) -> None:
        """Test reviews are read across pages until a short page."""
        first_page = [{"id": i, "body": f"review {i}", "submitted_at": "2025-01-02T10:00:00Z"} for i in range(100)]
        second_page = [{"id": 100, "body": "last", "submitted_at": "2025-01-02T11:00:00Z"}]

        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo/pulls/7/reviews",
            json=first_page,
            status=200,
        )
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo/pulls/7/reviews",
            json=second_page,
            status=200,
        )

        reviews = self.client.get_pull_request_reviews("user", "repo", 7)

        assert len(reviews) == 101
        assert reviews[-1]["body"] == "last"
        assert len(responses.calls) == 2
        assert responses.calls[1].request.params["page"] == "2"

    @responses.activate
    def test_find_pull_request_for_branch(self) -> None:
        """Test finding the open PR of a branch."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo/pulls",
            json=[{"number": 12, "head": {"ref": "feature", "sha": "abc"}}],
            status=200,
        )

        pull_request = self.client.find_pull_request_for_branch("user", "repo", "feature")

        assert pull_request["number"] == 12
        params = responses.calls[0].request.params
        assert params["head"] == "user:feature"
        assert params["state"] == "open"

    @responses.activate
    def test_find_pull_request_for_branch_none(self) -> None:
        """Test a branch without an open PR."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo/pulls",
            json=[],
            status=200,
        )

        assert self.client.find_pull_request_for_branch("user", "repo", "feature") is None

    @responses.activate
    def test_get_commits_with_filters(self) -> None:
        """Test commit queries pass the window and author through."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/tidyverse/dplyr/commits",
            json=[{"sha": "a"}, {"sha": "b"}],
            status=200,
        )

        commits = self.client.get_commits(
            "tidyverse",
            "dplyr",
            since="2025-01-01T00:00:00Z",
            until="2025-06-30T23:59:59Z",
            author="hadley",
        )

        assert [c["sha"] for c in commits] == ["a", "b"]
        params = responses.calls[0].request.params
        assert params["since"] == "2025-01-01T00:00:00Z"
        assert params["until"] == "2025-06-30T23:59:59Z"
        assert params["author"] == "hadley"

    @responses.activate
    def test_get_commits_limit(self) -> None:
        """Test the result limit stops pagination early."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/tidyverse/dplyr/commits",
            json=[{"sha": str(i)} for i in range(100)],
            status=200,
        )

        commits = self.client.get_commits("tidyverse", "dplyr", limit=1)

        assert len(commits) == 1
        assert len(responses.calls) == 1
        assert responses.calls[0].request.params["per_page"] == "1"

    @responses.activate
    def test_page_size_capped_at_maximum(self) -> None:
        """Test large limits still request full pages."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/tidyverse/dplyr/commits",
            json=[{"sha": "a"}],
            status=200,
        )

        self.client.get_commits("tidyverse", "dplyr", limit=500)

        assert responses.calls[0].request.params["per_page"] == "100"

    @responses.activate
    def test_get_pull_request(self) -> None:
        """Test getting a single pull request."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo/pulls/3",
            json={"number": 3, "user": {"login": "author"}},
            status=200,
        )

        assert self.client.get_pull_request("user", "repo", 3)["user"]["login"] == "author"

    @responses.activate
    def test_get_commit(self) -> None:
        """Test getting a single commit."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo/commits/abc1234",
            json={"sha": "abc1234def", "commit": {"committer": {"date": "2025-01-02T10:00:00Z"}}},
            status=200,
        )

        assert self.client.get_commit("user", "repo", "abc1234")["sha"] == "abc1234def"

    @responses.activate
    def test_rate_limit_response_raises(self) -> None:
        """Test a rate limited response fails fast."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo",
            json={"message": "API rate limit exceeded for user."},
            status=403,
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"},
        )

        with pytest.raises(RateLimitExceededError) as exc_info:
            self.client.get_repository("user", "repo")

        assert exc_info.value.reset_at == 1700000000
        assert exc_info.value.exit_code == 1

    @responses.activate
    def test_exhausted_budget_raises_before_request(self) -> None:
        """Test no request is sent once the remaining budget is zero."""
        self.client.rate_limit_remaining = 0

        with pytest.raises(RateLimitExceededError):
            self.client.get_repository("user", "repo")

        assert len(responses.calls) == 0

    @responses.activate
    def test_rate_limit_wait_and_retry(self) -> None:
        """Test waiting for the reset when configured to."""
        self.client.wait_on_rate_limit = True
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo",
            json={"message": "API rate limit exceeded"},
            status=429,
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(int(time.time()) + 5)},
        )
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo",
            json={"id": 1, "name": "repo"},
            status=200,
            headers={"X-RateLimit-Remaining": "4999"},
        )

        with patch("github_review_digest.github.client.time.sleep") as mock_sleep:
            repo = self.client.get_repository("user", "repo")

        assert repo["name"] == "repo"
        assert mock_sleep.called
        assert self.client.rate_limit_remaining == 4999

    @responses.activate
    def test_rate_limit_headers_tracked(self) -> None:
        """Test rate limit headers are recorded."""
        responses.add(
            responses.GET,
            "https://api.github.com/rate_limit",
            json={"resources": {"core": {"limit": 5000, "remaining": 4321, "reset": 1234567890}}},
            status=200,
            headers={"X-RateLimit-Remaining": "4321", "X-RateLimit-Reset": "1234567890"},
        )

        status = self.client.get_rate_limit_status()

        assert status["resources"]["core"]["remaining"] == 4321
        assert self.client.rate_limit_remaining == 4321
        assert self.client.rate_limit_reset == 1234567890

    @responses.activate
    def test_connection_test(self) -> None:
        """Test connection to GitHub API."""
        responses.add(
            responses.GET,
            "https://api.github.com/rate_limit",
            json={"resources": {}},
            status=200,
        )

        assert self.client.test_connection() is True

    @responses.activate
    def test_connection_test_failure(self) -> None:
        """Test connection failure."""
        responses.add(
            responses.GET,
            "https://api.github.com/rate_limit",
            json={"message": "Bad credentials"},
            status=401,
        )

        assert self.client.test_connection() is False

    @responses.activate
    def test_error_handling(self) -> None:
        """Test HTTP errors propagate."""
        responses.add(
            responses.GET,
            "https://api.github.com/repos/user/repo",
            json={"message": "Server Error"},
            status=500,
        )

        with pytest.raises(requests.HTTPError):
            self.client.get_repository("user", "repo")

    def test_initialization_without_token(self) -> None:
        """Test client initialization without token."""
        with patch("github_review_digest.github.client.get_settings") as mock_get_settings:
            mock_get_settings.return_value.github_token = None
            mock_get_settings.return_value.github_api_base_url = "https://api.github.com"
            mock_get_settings.return_value.app_name = "Test App"
            mock_get_settings.return_value.app_version = "1.0.0"
            client = GitHubAPIClient()

        assert client.access_token is None
        assert "Authorization" not in client.session.headers

    def test_initialization_with_token(self) -> None:
        """Test client initialization with token."""
        client = GitHubAPIClient("test_token")
        assert client.access_token == "test_token"
        assert client.session.headers["Authorization"] == "token test_token"

    def test_custom_base_url(self) -> None:
        """Test GitHub Enterprise style API roots."""
        client = GitHubAPIClient("test_token", base_url="https://github.example.com/api/v3")
        assert client.base_url == "https://github.example.com/api/v3/"

    @responses.activate
    def test_custom_base_url_requests(self) -> None:
        """Test paths are joined below a nested API root."""
        client = GitHubAPIClient("test_token", base_url="https://github.example.com/api/v3")
        responses.add(
            responses.GET,
            "https://github.example.com/api/v3/repos/user/repo",
            json={"id": 1},
            status=200,
        )

        assert client.get_repository("user", "repo") == {"id": 1}
