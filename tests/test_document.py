"""Tests for the locale document model."""

import json

import pytest

from ltranslate.document import LocaleDocument, merge_overlay
from ltranslate.errors import ValidationError


class TestParse:
    """Test cases for LocaleDocument.parse."""

    def test_parse_keeps_key_order(self):
        doc = LocaleDocument.parse(b'{"b": "2", "a": "1", "c": "3"}')

        assert doc.keys() == ["b", "a", "c"]
        assert doc["a"] == "1"

    def test_parse_accepts_text(self):
        doc = LocaleDocument.parse('{"title": "Überschrift"}')
        assert doc.get("title") == "Überschrift"

    def test_parse_utf8_bom(self):
        doc = LocaleDocument.parse(b'\xef\xbb\xbf{"a": "1"}')
        assert doc.keys() == ["a"]

    def test_parse_empty_object(self):
        assert len(LocaleDocument.parse(b"{}")) == 0

    @pytest.mark.parametrize("raw", [b"[]", b'"text"', b"42", b"null"])
    def test_rejects_non_object_top_level(self, raw):
        with pytest.raises(ValidationError, match="JSON object"):
            LocaleDocument.parse(raw)

    @pytest.mark.parametrize(
        "value, type_name",
        [
            ("1", "number"),
            ("true", "boolean"),
            ("null", "null"),
            ('["a"]', "array"),
            ('{"nested": "x"}', "object"),
        ],
    )
    def test_rejects_non_string_values(self, value, type_name):
        raw = f'{{"ok": "fine", "bad": {value}}}'

        with pytest.raises(ValidationError) as excinfo:
            LocaleDocument.parse(raw)

        assert "'bad'" in str(excinfo.value)
        assert type_name in str(excinfo.value)

    def test_rejects_empty_key(self):
        with pytest.raises(ValidationError, match="empty"):
            LocaleDocument.parse(b'{"": "value"}')

    def test_rejects_invalid_json(self):
        with pytest.raises(ValidationError, match="failed to parse"):
            LocaleDocument.parse(b'{"a": "1",}', source="en.json")

    def test_rejects_invalid_utf8(self):
        with pytest.raises(ValidationError, match="UTF-8"):
            LocaleDocument.parse(b'{"a": "\xff"}')

    def test_duplicate_keys_keep_last_value(self, caplog):
        doc = LocaleDocument.parse(b'{"a": "first", "b": "2", "a": "second"}')

        assert doc["a"] == "second"
        assert doc.keys() == ["b", "a"]
        assert "Duplicate keys" in caplog.text

    def test_error_mentions_source(self):
        with pytest.raises(ValidationError, match="de.json"):
            LocaleDocument.parse(b"[]", source="de.json")


class TestSerialize:
    """Test cases for LocaleDocument.serialize."""

    def test_round_trip(self):
        raw = '{"z": "Zed", "a": "  spaced  ", "emoji": "😀 {name}", "quote": "say \\"hi\\"\\n"}'
        doc = LocaleDocument.parse(raw)

        again = LocaleDocument.parse(doc.serialize())

        assert again.items() == doc.items()
        assert list(json.loads(doc.serialize())) == ["z", "a", "emoji", "quote"]

    def test_non_ascii_written_verbatim(self):
        doc = LocaleDocument({"title": "Überschrift"})
        assert "Überschrift".encode("utf-8") in doc.serialize()

    def test_trailing_newline(self):
        assert LocaleDocument({"a": "1"}).serialize().endswith(b"}\n")


class TestMutation:
    """Test cases for get/set/remove."""

    def test_set_and_get(self):
        doc = LocaleDocument()
        doc.set("a", "1")

        assert doc.get("a") == "1"
        assert doc.get("missing") is None
        assert doc.get("missing", "fallback") == "fallback"
        assert "a" in doc

    def test_set_rejects_non_string(self):
        doc = LocaleDocument()

        with pytest.raises(ValidationError):
            doc.set("a", 1)
        with pytest.raises(ValidationError):
            doc.set("", "value")

    def test_remove(self):
        doc = LocaleDocument({"a": "1", "b": "2"})

        assert doc.remove("a") == "1"
        assert doc.remove("a") is None
        assert doc.keys() == ["b"]

    def test_constructor_validates(self):
        with pytest.raises(ValidationError):
            LocaleDocument({"a": None})

    def test_equality(self):
        assert LocaleDocument({"a": "1"}) == LocaleDocument([("a", "1")])
        assert LocaleDocument({"a": "1"}) != LocaleDocument({"a": "2"})


class TestMergeOverlay:
    """Test cases for merge_overlay and ordered_like."""

    def test_changes_override_and_append(self):
        base = LocaleDocument({"a": "1", "b": "2"})

        merged = merge_overlay(base, {"b": "two", "c": "3"})

        assert merged.items() == [("a", "1"), ("b", "two"), ("c", "3")]
        assert base.items() == [("a", "1"), ("b", "2")]

    def test_removed_keys_dropped(self):
        base = LocaleDocument({"a": "1", "b": "2", "c": "3"})

        merged = base.merge_overlay({}, removed=["b", "not-there"])

        assert merged.keys() == ["a", "c"]

    def test_untouched_values_identical(self):
        base = LocaleDocument({"a": "Hallo ", "b": "Welt"})

        merged = base.merge_overlay(LocaleDocument({"c": "neu"}))

        assert merged["a"] == "Hallo "
        assert merged["b"] == "Welt"

    def test_ordered_like(self):
        doc = LocaleDocument({"c": "3", "extra": "x", "a": "1"})
        reference = LocaleDocument({"a": "A", "b": "B", "c": "C"})

        assert doc.ordered_like(reference).keys() == ["a", "c", "extra"]


class TestFiles:
    """Test cases for loading and writing locale files."""

    def test_write_and_load(self, tmp_path):
        path = tmp_path / "nested" / "de.json"
        doc = LocaleDocument({"a": "eins"})

        doc.write(path)

        assert LocaleDocument.load(path) == doc
        assert [p.name for p in path.parent.iterdir()] == ["de.json"]

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LocaleDocument.load(tmp_path / "missing.json")
