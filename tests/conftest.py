"""Test configuration and fixtures."""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

_cache_dir = Path(tempfile.mkdtemp(prefix="github-review-digest-tests-"))

# Set environment variables immediately when this module is imported
# This ensures they're available before any other modules try to load Settings
test_env_vars = {
    "GITHUB_TOKEN": "test_github_token_123",
    "GITHUB_API_BASE_URL": "https://api.github.com",
    "GITHUB_REQUEST_DELAY": "0",
    "WAIT_ON_RATE_LIMIT": "false",
    "APP_NAME": "GitHub Review Digest Test",
    "APP_VERSION": "1.0.0-test",
    "DEBUG": "false",
    "HOST": "127.0.0.1",
    "PORT": "8000",
    "LOG_LEVEL": "DEBUG",
    "DIGEST_CACHE_DIR": str(_cache_dir),
    "DATABASE_URL": f"sqlite:///{_cache_dir / 'digests.db'}",
    "CACHE_TTL_SECONDS": "120",
    "MAX_BODY_LINES": "30",
    "MAX_BODY_CHARS": "2500",
}

for key, value in test_env_vars.items():
    os.environ[key] = value


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """Set up test environment variables."""
    yield

    for key in test_env_vars:
        os.environ.pop(key, None)


@pytest.fixture
def session_factory(tmp_path: Path) -> Generator[sessionmaker, None, None]:
    """Session factory bound to a throwaway SQLite cache database."""
    from github_review_digest.models import CachedDigest  # noqa: F401
    from github_review_digest.utils.database import Base

    engine = create_engine(f"sqlite:///{tmp_path / 'cache.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def digest_cache(session_factory: sessionmaker):
    """Digest cache backed by the throwaway database."""
    from github_review_digest.services.digest_cache import DigestCache

    return DigestCache(session_factory=session_factory, ttl_seconds=120)


@pytest.fixture
def coderabbit_body() -> str:
    """Inline review comment in the shape review bots post."""
    return (
        "_⚠️ Potential issue_ | _🟠 Major_\n"
        "\n"
        "**Guard against a missing `path` argument.**\n"
        "\n"
        "`read_config()` dereferences `path` before checking it.\n"
        "\n"
        "<details>\n"
        "<summary>🔎 Proposed fix</summary>\n"
        "\n"
        "```diff\n"
        "-  cfg <- yaml::read_yaml(path)\n"
        "+  if (is.null(path)) cli::cli_abort(\"{.arg path} is required.\")\n"
        "```\n"
        "</details>\n"
        "\n"
        "<details>\n"
        "<summary>🤖 Prompt for AI Agents</summary>\n"
        "\n"
        "```\n"
        "In R/config.R around lines 10 - 12, add a NULL check.\n"
        "```\n"
        "</details>\n"
        "\n"
        "<!-- fingerprinting:phantom:medusa:falcon -->\n"
        "\n"
        "<!-- This is an auto-generated comment by CodeRabbit -->"
    )
