"""Short-lived cache of recent-comments digests keyed by pull request and commit."""

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import sessionmaker

from github_review_digest.config import get_settings
from github_review_digest.models import CachedDigest
from github_review_digest.utils import get_logger
from github_review_digest.utils.database import get_session_local

logger = get_logger(__name__)


class DigestCache:
    """Read-through cache for digests, valid for ``ttl_seconds`` after writing."""

    def __init__(self, session_factory: sessionmaker | None = None, ttl_seconds: int | None = None) -> None:
        """Initialize the cache.

        Args:
        ----
            session_factory: SQLAlchemy session factory, defaults to the cache database
            ttl_seconds: Entry lifetime, defaults to the configured TTL

        """
        self.session_factory = session_factory or get_session_local()
        self.ttl_seconds = get_settings().cache_ttl_seconds if ttl_seconds is None else ttl_seconds

    def _query(self, session, repository: str, pr_number: int, commit_sha: str):
        return (
            session.query(CachedDigest)
            .filter(
                CachedDigest.repository == repository,
                CachedDigest.pr_number == pr_number,
                CachedDigest.commit_sha == commit_sha,
            )
            .first()
        )

    def get(self, repository: str, pr_number: int, commit_sha: str) -> dict[str, Any] | None:
        """Return a fresh cached digest, or None.

        Args:
        ----
            repository: ``owner/name`` of the repository
            pr_number: Pull request number
            commit_sha: Commit the digest was computed against

        Returns:
        -------
            Cached payload, or None when missing or expired

        """
        with self.session_factory() as session:
            entry = self._query(session, repository, pr_number, commit_sha)
            if entry is None:
                return None

            if entry.age_seconds() >= self.ttl_seconds:
                logger.debug("Cache entry for PR #%d at %s expired", pr_number, commit_sha[:7])
                session.delete(entry)
                session.commit()
                return None

            logger.info("Using cached digest for PR #%d at %s", pr_number, commit_sha[:7])
            return entry.data

    def put(self, repository: str, pr_number: int, commit_sha: str, payload: dict[str, Any]) -> None:
        """Store a digest, replacing any existing entry for the same key."""
        with self.session_factory() as session:
            entry = self._query(session, repository, pr_number, commit_sha)
            if entry is None:
                entry = CachedDigest(repository=repository, pr_number=pr_number, commit_sha=commit_sha)
                session.add(entry)

            entry.payload = json.dumps(payload)
            entry.created_at = datetime.now(UTC)
            session.commit()

    def clear(self) -> int:
        """Delete every entry and return how many were removed."""
        with self.session_factory() as session:
            removed = session.query(CachedDigest).delete()
            session.commit()

        logger.info("Removed %d cached digests", removed)
        return removed
