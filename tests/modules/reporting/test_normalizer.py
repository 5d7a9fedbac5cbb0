"""Tests for raw collection normalization."""

from src.modules.reporting.normalizer import full_name, index_by_id, is_identifier, name_lookup


class TestIndexById:
    def test_index(self):
        records = [{"id": 1, "name": "Piano"}, {"id": "s1", "name": "Clara"}]
        assert index_by_id(records) == {1: records[0], "s1": records[1]}

    def test_malformed_input(self):
        assert index_by_id(None) == {}
        assert index_by_id({"data": []}) == {}
        assert index_by_id("users") == {}

    def test_skips_unusable_items(self):
        records = [{"id": 1}, {"name": "no id"}, "text", {"id": None}, {"id": ["x"]}]
        assert list(index_by_id(records)) == [1]

    def test_skips_bool_and_float_ids(self):
        records = [{"id": True, "name": "bool"}, {"id": 2.0, "name": "float"}, {"id": 1}]
        assert index_by_id(records) == {1: {"id": 1}}

    def test_duplicate_ids_last_wins(self):
        records = [{"id": 1, "name": "old"}, {"id": 1, "name": "new"}]
        assert index_by_id(records)[1]["name"] == "new"

    def test_custom_key(self):
        records = [{"instruments_id": 3}]
        assert index_by_id(records, key="instruments_id") == {3: records[0]}


class TestNameLookup:
    def test_names(self):
        assert name_lookup([{"id": 1, "name": "Piano"}, {"id": 2}]) == {1: "Piano", 2: None}


class TestFullName:
    def test_full_name(self):
        assert full_name({"first_name": "Anna", "last_name": "Keys"}) == "Anna Keys"
        assert full_name({"first_name": "Anna", "last_name": None}) == "Anna"
        assert full_name({"first_name": "", "last_name": ""}) is None
        assert full_name(None) is None

    def test_non_string_parts_are_skipped(self):
        assert full_name({"first_name": 5, "last_name": "Keys"}) == "Keys"
        assert full_name({"first_name": ["Anna"], "last_name": {"x": 1}}) is None
        assert full_name({"first_name": "  Anna ", "last_name": " "}) == "Anna"


class TestIsIdentifier:
    def test_identifiers(self):
        assert is_identifier(1)
        assert is_identifier(0)
        assert is_identifier("s1")

    def test_non_identifiers(self):
        for value in (None, "", True, False, 1.0, ["x"], {"id": 1}):
            assert not is_identifier(value)
