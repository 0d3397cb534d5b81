import pytest

from booster.core.errors import PersistenceConflict
from booster.core.models import FinishedRecord, RewriteStatus


def make_record(content_hash="abc", image=None, url="https://e.com/a", category="News"):
    return FinishedRecord(
        title="Title", content="<p>Body</p>", url=url, image=image, category=category,
        provider="wire", post_type="post", published_at="2024-05-01",
        content_hash=content_hash, rewrite_status=RewriteStatus.SUCCESS, trend_score=40,
        tags=("space", "🔥 Trending"), keywords=("space",),
    )


class TestSQLiteStore:

    def test_save_and_read(self, store):
        record_id = store.save(make_record())
        stored = store.get_record(record_id)
        assert stored["title"] == "Title"
        assert stored["category"] == "News"
        assert stored["rewrite_status"] == "success"
        assert stored["tags"] == ["space", "🔥 Trending"]
        assert stored["keywords"] == ["space"]
        assert stored["status"] == "draft"
        assert store.exists_by_fingerprint("abc")
        assert not store.exists_by_fingerprint("other")
        assert store.count() == 1

    def test_duplicate_hash_conflicts(self, store):
        store.save(make_record())
        with pytest.raises(PersistenceConflict) as excinfo:
            store.save(make_record())
        assert excinfo.value.content_hash == "abc"
        assert store.count() == 1

    def test_category_created_once(self, store):
        first = store.create_category_if_missing("Crypto")
        assert store.create_category_if_missing(" Crypto ") == first
        assert store.create_category_if_missing("News") != first
        assert store.create_category_if_missing("") is None

    def test_records_missing_image(self, store):
        with_image = store.save(make_record("h1", image="https://cdn/x.jpg"))
        missing = store.save(make_record("h2"))
        store.save(make_record("h3", url=""))

        rows = store.records_missing_image()
        assert [row["id"] for row in rows] == [missing]

        assert store.update_image(missing, "https://cdn/y.jpg")
        assert store.records_missing_image() == []
        assert store.get_record(with_image)["image"] == "https://cdn/x.jpg"

    def test_missing_record(self, store):
        assert store.get_record(999) is None
        assert not store.update_image(999, "https://cdn/y.jpg")
