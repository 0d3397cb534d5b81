from booster.core.record import LooseRecord, find_record_list, is_record_list


class TestLooseRecord:

    def test_nested_path(self):
        record = LooseRecord({"source": {"name": "Reuters"}})
        assert record.get_string("source.name") == "Reuters"
        assert record.get_string("source.id", "none") == "none"

    def test_list_index_path(self):
        record = LooseRecord({"media": [{"url": "https://cdn.example.com/a.jpg"}]})
        assert record.get_string("media.0.url") == "https://cdn.example.com/a.jpg"
        assert record.get_string("media.3.url") == ""

    def test_first_non_empty_candidate_wins(self):
        record = LooseRecord({"content": "  ", "body": None, "fullText": "Full text"})
        assert record.get_string(["content", "body", "fullText"]) == "Full text"

    def test_scalars_are_coerced(self):
        record = LooseRecord({"price": 42.5, "count": 0, "active": True})
        assert record.get_string("price") == "42.5"
        assert record.get_string("count") == "0"
        assert record.get_string("active") == "true"

    def test_structures_fall_back_to_default(self):
        record = LooseRecord({"title": {"text": "nested"}, "tags": ["a"]})
        assert record.get_string("title", "fallback") == "fallback"
        assert record.get_string("tags") == ""

    def test_get_optional(self):
        record = LooseRecord({"image": "", "icon": "https://example.com/i.png"})
        assert record.get_optional("image") is None
        assert record.get_optional(["image", "icon"]) == "https://example.com/i.png"

    def test_non_mapping_is_empty(self):
        record = LooseRecord(["not", "a", "record"])
        assert not record
        assert record.get_string("anything", "d") == "d"
        assert record.get_list("anything") is None


class TestFindRecordList:

    def test_root_list(self):
        assert find_record_list([{"a": 1}]) == [{"a": 1}]

    def test_top_level_value(self):
        assert find_record_list({"meta": {}, "entries": [{"a": 1}]}) == [{"a": 1}]

    def test_one_level_down(self):
        response = {"payload": {"results": [{"a": 1}, {"a": 2}]}}
        assert find_record_list(response) == [{"a": 1}, {"a": 2}]

    def test_deeper_nesting_not_searched(self):
        response = {"payload": {"inner": {"results": [{"a": 1}]}}}
        assert find_record_list(response) == []

    def test_lists_of_scalars_ignored(self):
        assert find_record_list({"ids": [1, 2, 3]}) == []
        assert not is_record_list([])
        assert not is_record_list(["a"])

    def test_non_container(self):
        assert find_record_list("text") == []
        assert find_record_list(None) == []
