from booster.core.dedup import Deduplicator, fingerprint
from booster.core.models import FinishedRecord, RewriteStatus


class TestFingerprint:

    def test_deterministic(self):
        assert fingerprint("Title", "https://e.com/a") == fingerprint("Title", "https://e.com/a")

    def test_case_and_whitespace_insensitive(self):
        assert fingerprint("  Title ", " https://e.com/a") == fingerprint("title", "HTTPS://E.COM/A")

    def test_distinct_inputs(self):
        assert fingerprint("Title", "https://e.com/a") != fingerprint("Title", "https://e.com/b")
        assert fingerprint("One", "https://e.com/a") != fingerprint("Two", "https://e.com/a")

    def test_md5_hex(self):
        value = fingerprint("Title", "")
        assert len(value) == 32
        int(value, 16)


class TestDeduplicator:

    def test_checks_store(self, store):
        dedup = Deduplicator(store)
        content_hash = fingerprint("Stored", "https://e.com/stored")
        assert not dedup.is_duplicate(content_hash)

        store.save(FinishedRecord(
            title="Stored", content="body", url="https://e.com/stored", image=None,
            category="News", provider="wire", post_type="post", published_at=None,
            content_hash=content_hash, rewrite_status=RewriteStatus.SKIPPED, trend_score=0,
        ))
        assert dedup.is_duplicate(content_hash)
