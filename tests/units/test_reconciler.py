"""Tests for landing unit edits and keeping manifest order."""

import pytest

from unit_editor.units.decomposer import Decomposition
from unit_editor.units.models import EditRecord, Manifest, Unit, UnitKind
from unit_editor.units.reconciler import ManifestReconciler
from unit_editor.units.store import UnitStore

BASE_IDS = ("imports", "varsandstructs", "f1", "f2")


@pytest.fixture
def store(tmp_path):
    store = UnitStore(str(tmp_path / "editor"))
    units = [Unit(id=i, kind=UnitKind.for_id(i), content=f"// {i}") for i in BASE_IDS]
    store.save(Decomposition("main", units, Manifest(BASE_IDS)))
    return store


@pytest.fixture
def reconciler(store):
    return ManifestReconciler(store)


def _record(store, unit_id, **kwargs):
    return EditRecord(store.unit_path("main", unit_id), **kwargs)


class TestInsertion:
    def test_insert_before(self, store, reconciler):
        reconciler.reconcile(_record(store, "f3", content="func f3() {}", insert_before="f2"))
        assert store.read_manifest("main").ids == (
            "imports", "varsandstructs", "f1", "f3", "f2")
        assert store.get("main", "f3").content == "func f3() {}"

    def test_insert_after(self, store, reconciler):
        reconciler.reconcile(_record(store, "f3", content="func f3() {}", insert_after="f1"))
        assert store.read_manifest("main").ids == (
            "imports", "varsandstructs", "f1", "f3", "f2")

    def test_before_wins_over_after(self, store, reconciler):
        reconciler.reconcile(_record(store, "f3", content="func f3() {}",
                                     insert_before="f1", insert_after="f2"))
        assert store.read_manifest("main").ids == (
            "imports", "varsandstructs", "f3", "f1", "f2")

    def test_directive_in_content(self, store, reconciler):
        landed = reconciler.reconcile(
            _record(store, "f3", content="// insert-before: f1.gopart\nfunc f3() {}"))
        assert store.read_manifest("main").ids == (
            "imports", "varsandstructs", "f3", "f1", "f2")
        assert store.get("main", "f3").content == "func f3() {}"
        assert landed.insert_before == "f1"
        assert landed.content == "func f3() {}"

    def test_no_hint_appends(self, store, reconciler):
        reconciler.reconcile(_record(store, "f3", content="func f3() {}"))
        assert store.read_manifest("main").ids == BASE_IDS + ("f3",)

    def test_unknown_target_appends(self, store, reconciler):
        reconciler.reconcile(_record(store, "f3", content="func f3() {}",
                                     insert_before="ghost"))
        assert store.read_manifest("main").ids == BASE_IDS + ("f3",)


class TestExistingUnits:
    def test_update_keeps_position(self, store, reconciler):
        reconciler.reconcile(_record(store, "f1", content="func f1() { return }"))
        assert store.read_manifest("main").ids == BASE_IDS
        assert store.get("main", "f1").content == "func f1() { return }"

    def test_hint_relocates(self, store, reconciler):
        reconciler.reconcile(_record(store, "f2", content="func f2() {}", insert_before="f1"))
        assert store.read_manifest("main").ids == (
            "imports", "varsandstructs", "f2", "f1")

    def test_self_reference_ignored(self, store, reconciler):
        reconciler.reconcile(_record(store, "f1", content="func f1() {}", insert_after="f1"))
        assert store.read_manifest("main").ids == BASE_IDS

    def test_repeat_is_idempotent(self, store, reconciler):
        rec = _record(store, "f3", content="func f3() {}", insert_before="f2")
        reconciler.reconcile(rec)
        reconciler.reconcile(rec)
        assert store.read_manifest("main").ids == (
            "imports", "varsandstructs", "f1", "f3", "f2")


class TestDeletion:
    def test_delete_removes_id_and_unit(self, store, reconciler):
        reconciler.reconcile(_record(store, "f1", delete=True))
        assert store.read_manifest("main").ids == ("imports", "varsandstructs", "f2")
        assert store.get("main", "f1") is None

    def test_repeat_delete_is_noop(self, store, reconciler):
        reconciler.reconcile(_record(store, "f1", delete=True))
        reconciler.reconcile(_record(store, "f1", delete=True))
        assert store.read_manifest("main").ids == ("imports", "varsandstructs", "f2")


class TestOtherRecords:
    def test_non_unit_path_unchanged(self, store, reconciler):
        rec = EditRecord("Makefile", content="build:\n\tgo build")
        assert reconciler.reconcile(rec) is rec
        assert store.read_manifest("main").ids == BASE_IDS

    def test_new_container(self, store, reconciler):
        reconciler.reconcile(EditRecord(store.unit_path("util", "Helper"),
                                        content="func Helper() {}"))
        assert store.read_manifest("util").ids == ("Helper",)

    def test_record_without_content_skipped(self, store, reconciler):
        reconciler.reconcile(_record(store, "f3"))
        assert not store.has("main", "f3")
        assert "f3" not in store.read_manifest("main")


class TestManifestIntegrity:
    def test_every_id_resolves_after_a_batch(self, store, reconciler):
        batch = [
            _record(store, "f3", content="func f3() {}", insert_before="f2"),
            _record(store, "f1", delete=True),
            _record(store, "f4", content="// insert-after: f3\nfunc f4() {}"),
            _record(store, "f2", content="func f2() {}", insert_before="imports"),
            _record(store, "ghost", delete=True),
        ]
        for rec in batch:
            reconciler.reconcile(rec)

        manifest = store.read_manifest("main")
        assert len(set(manifest.ids)) == len(manifest)
        assert all(store.has("main", i) for i in manifest)
        assert manifest.ids == ("f2", "imports", "varsandstructs", "f3", "f4")
