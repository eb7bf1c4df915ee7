"""Tests for the unit model: manifests and edit records."""

import pytest

from unit_editor.units.errors import ManifestError
from unit_editor.units.models import (
    HEADER_ID, SHARED_ID, EditRecord, Manifest, UnitKind, clean_block,
    records_to_json,
)


class TestUnitKind:
    def test_sentinel_ids(self):
        assert UnitKind.for_id(HEADER_ID) is UnitKind.HEADER
        assert UnitKind.for_id(SHARED_ID) is UnitKind.SHARED_DECLS

    def test_anything_else_is_a_function(self):
        assert UnitKind.for_id("handleRequest") is UnitKind.FUNCTION
        assert UnitKind.for_id("Server.Name") is UnitKind.FUNCTION


class TestManifest:
    def test_rejects_duplicates(self):
        with pytest.raises(ManifestError):
            Manifest(("imports", "f1", "f1"))

    def test_rejects_empty_ids(self):
        with pytest.raises(ManifestError):
            Manifest(("imports", ""))

    def test_container_protocol(self):
        m = Manifest(["imports", "varsandstructs", "f1"])
        assert isinstance(m.ids, tuple)
        assert len(m) == 3
        assert "f1" in m
        assert "f2" not in m
        assert list(m) == ["imports", "varsandstructs", "f1"]
        assert m.index("f1") == 2

    def test_insert_before(self):
        m = Manifest(("imports", "varsandstructs", "f1", "f2"))
        assert m.with_inserted("f3", before="f2").ids == (
            "imports", "varsandstructs", "f1", "f3", "f2")

    def test_insert_after(self):
        m = Manifest(("imports", "varsandstructs", "f1", "f2"))
        assert m.with_inserted("f3", after="f1").ids == (
            "imports", "varsandstructs", "f1", "f3", "f2")

    def test_insert_with_unknown_anchor_appends(self):
        m = Manifest(("imports", "f1"))
        assert m.with_inserted("f2", before="nope").ids == ("imports", "f1", "f2")

    def test_insert_moves_existing_id(self):
        m = Manifest(("imports", "f1", "f2"))
        assert m.with_inserted("f2", before="f1").ids == ("imports", "f2", "f1")

    def test_values_are_not_mutated(self):
        m = Manifest(("imports", "f1"))
        m.without("f1")
        m.with_inserted("f2")
        assert m.ids == ("imports", "f1")

    def test_json_round_trip(self):
        m = Manifest(("imports", "varsandstructs", "main"))
        assert Manifest.from_json(m.to_json()) == m

    def test_from_json_rejects_non_list(self):
        with pytest.raises(ManifestError):
            Manifest.from_json('{"ids": []}')

    def test_from_json_rejects_bad_json(self):
        with pytest.raises(ManifestError):
            Manifest.from_json("[imports")


class TestEditRecord:
    def test_from_dict_wire_names(self):
        rec = EditRecord.from_dict({
            "filepath": "editor/main/f3.gopart",
            "content": "func f3() {}",
            "insert-before": "f2",
        })
        assert rec.path == "editor/main/f3.gopart"
        assert rec.content == "func f3() {}"
        assert rec.insert_before == "f2"
        assert rec.insert_after is None
        assert rec.delete is False

    def test_delete_record(self):
        rec = EditRecord.from_dict({"filepath": "editor/main/f1.gopart", "delete": True})
        assert rec.delete is True
        assert rec.content is None

    def test_missing_filepath(self):
        with pytest.raises(ValueError):
            EditRecord.from_dict({"content": "x"})

    def test_non_bool_delete(self):
        with pytest.raises(ValueError):
            EditRecord.from_dict({"filepath": "a", "delete": "yes"})

    def test_non_string_content(self):
        with pytest.raises(ValueError):
            EditRecord.from_dict({"filepath": "a", "content": 42})

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            EditRecord.from_dict(["filepath", "a"])

    def test_to_dict_omits_empty_fields(self):
        assert EditRecord("a", content="x").to_dict() == {"filepath": "a", "content": "x"}
        assert EditRecord("a", delete=True).to_dict() == {"filepath": "a", "delete": True}

    def test_records_to_json(self):
        text = records_to_json([EditRecord("a", content="x", insert_after="b")])
        assert text == '[{"filepath": "a", "content": "x", "insert-after": "b"}]'


class TestCleanBlock:
    def test_strips_blank_edges_and_trailing_space(self):
        assert clean_block("\n\n  \nfunc f() {   \n}\n\n") == "func f() {\n}"

    def test_keeps_inner_blank_lines(self):
        assert clean_block("a\n\nb") == "a\n\nb"
