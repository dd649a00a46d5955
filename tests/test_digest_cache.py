"""Unit tests for the digest cache."""

from datetime import UTC, datetime, timedelta

from github_review_digest.models import CachedDigest
from github_review_digest.services.digest_cache import DigestCache

PAYLOAD = {
    "pr": {"number": 5, "current_commit": "abc1234", "comments_since": 1},
    "comments": [{"path": "R/a.R", "line": 3, "body": "Fix", "priority": "normal"}],
    "reviews": [],
}


class TestDigestCache:
    """Test cache reads, writes and expiry."""

    def test_miss(self, digest_cache: DigestCache) -> None:
        """Test an unknown key returns None."""
        assert digest_cache.get("user/repo", 5, "abc1234") is None

    def test_put_then_get(self, digest_cache: DigestCache) -> None:
        """Test a stored payload is returned while fresh."""
        digest_cache.put("user/repo", 5, "abc1234", PAYLOAD)

        assert digest_cache.get("user/repo", 5, "abc1234") == PAYLOAD

    def test_key_includes_commit_and_repository(self, digest_cache: DigestCache) -> None:
        """Test entries for other commits or repositories are separate."""
        digest_cache.put("user/repo", 5, "abc1234", PAYLOAD)

        assert digest_cache.get("user/repo", 5, "def5678") is None
        assert digest_cache.get("other/repo", 5, "abc1234") is None
        assert digest_cache.get("user/repo", 6, "abc1234") is None

    def test_put_replaces_existing(self, digest_cache: DigestCache, session_factory) -> None:
        """Test writing the same key twice keeps one entry."""
        digest_cache.put("user/repo", 5, "abc1234", PAYLOAD)
        digest_cache.put("user/repo", 5, "abc1234", {"pr": {"number": 5}})

        assert digest_cache.get("user/repo", 5, "abc1234") == {"pr": {"number": 5}}
        with session_factory() as session:
            assert session.query(CachedDigest).count() == 1

    def test_expired_entry_is_removed(self, digest_cache: DigestCache, session_factory) -> None:
        """Test entries older than the TTL are dropped on read."""
        digest_cache.put("user/repo", 5, "abc1234", PAYLOAD)
        with session_factory() as session:
            entry = session.query(CachedDigest).one()
            entry.created_at = datetime.now(UTC) - timedelta(seconds=121)
            session.commit()

        assert digest_cache.get("user/repo", 5, "abc1234") is None
        with session_factory() as session:
            assert session.query(CachedDigest).count() == 0

    def test_zero_ttl_never_hits(self, session_factory) -> None:
        """Test a zero TTL disables reuse."""
        cache = DigestCache(session_factory=session_factory, ttl_seconds=0)
        cache.put("user/repo", 5, "abc1234", PAYLOAD)

        assert cache.get("user/repo", 5, "abc1234") is None

    def test_clear(self, digest_cache: DigestCache) -> None:
        """Test clearing removes every entry."""
        digest_cache.put("user/repo", 5, "abc1234", PAYLOAD)
        digest_cache.put("user/repo", 6, "abc1234", PAYLOAD)

        assert digest_cache.clear() == 2
        assert digest_cache.get("user/repo", 5, "abc1234") is None


class TestCachedDigest:
    """Test the cache model."""

    def test_age_of_naive_timestamp(self) -> None:
        """Test timestamps read back without tzinfo are treated as UTC."""
        now = datetime(2025, 1, 1, 12, 0, 30, tzinfo=UTC)
        entry = CachedDigest(
            repository="user/repo",
            pr_number=1,
            commit_sha="abc1234",
            payload="{}",
            created_at=datetime(2025, 1, 1, 12, 0, 0),
        )

        assert entry.age_seconds(now) == 30

    def test_to_dict(self) -> None:
        """Test dictionary conversion decodes the payload."""
        entry = CachedDigest(
            repository="user/repo",
            pr_number=1,
            commit_sha="abc1234",
            payload='{"comments_since": 0}',
            created_at=datetime(2025, 1, 1, tzinfo=UTC),
        )

        data = entry.to_dict()

        assert data["payload"] == {"comments_since": 0}
        assert data["created_at"] == "2025-01-01T00:00:00+00:00"
        assert "abc1234" in repr(entry)
