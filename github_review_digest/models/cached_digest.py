"""Cached Digest data model."""

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, UniqueConstraint

from github_review_digest.utils.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CachedDigest(Base):
    """A rendered recent-comments digest for one pull request at one commit."""

    __tablename__ = "cached_digests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    repository = Column(String(255), nullable=False)
    pr_number = Column(Integer, nullable=False)
    commit_sha = Column(String(64), nullable=False)
    payload = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("repository", "pr_number", "commit_sha", name="uq_cached_digests_key"),
        Index("idx_cached_digests_created", "created_at"),
    )

    def __repr__(self) -> str:
        """Return a string representation of the CachedDigest object."""
        return f"<CachedDigest(repository='{self.repository}', pr={self.pr_number}, commit='{self.commit_sha[:7]}')>"

    @property
    def data(self) -> dict[str, Any]:
        """Decoded payload."""
        return json.loads(self.payload)

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds since the entry was written."""
        now = now or _utcnow()
        created_at = self.created_at
        # SQLite drops tzinfo on the way back
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return (now - created_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "repository": self.repository,
            "pr_number": self.pr_number,
            "commit_sha": self.commit_sha,
            "payload": self.data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
