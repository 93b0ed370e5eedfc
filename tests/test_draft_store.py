"""Tests for file-backed draft storage."""

import json

import pytest

from paperwriter.core.schemas_draft import DRAFT_SCHEMA_VERSION, Draft
from paperwriter.db.draft_store import (
    DraftStore,
    InvalidDraftIdError,
    calculate_completion,
    create_empty_draft,
    export_draft_to_json,
    import_draft_from_json,
)


@pytest.fixture
def store(tmp_path) -> DraftStore:
    return DraftStore(tmp_path)


def _write_raw(store: DraftStore, draft_id: str, data: dict) -> None:
    (store.drafts_dir / f"{draft_id}.json").write_text(json.dumps(data))


class TestDraftStore:
    def test_save_and_load_round_trip(self, store, paper_draft):
        paper_draft.layers.comprehension["scope"] = "global"
        store.save(paper_draft)

        loaded = store.load(paper_draft.id)

        assert loaded is not None
        assert loaded.country == "Brazil"
        assert loaded.layers.comprehension == {"scope": "global"}

    def test_saved_json_uses_camel_case(self, store, paper_draft):
        paper_draft.layers.idea_formation["hookIdea"] = "idea"
        store.save(paper_draft)

        raw = json.loads((store.drafts_dir / f"{paper_draft.id}.json").read_text())
        assert raw["version"] == DRAFT_SCHEMA_VERSION
        assert raw["layers"]["ideaFormation"] == {"hookIdea": "idea"}
        assert "importedBookmarks" in raw

    def test_save_updates_timestamp(self, store, paper_draft):
        before = paper_draft.updated_at
        store.save(paper_draft)
        assert paper_draft.updated_at >= before

    def test_index_is_most_recent_first(self, store):
        first, second = create_empty_draft(), create_empty_draft()
        store.save(first)
        store.save(second)
        store.save(first)

        assert store.get_draft_ids() == [second.id, first.id]

    def test_load_missing(self, store):
        assert store.load("draft-nope") is None

    def test_load_rejects_legacy_version(self, store):
        _write_raw(store, "draft-1-old", {"id": "draft-1-old", "layers": {"comprehension": {}}})
        _write_raw(store, "draft-2-v1", {"id": "draft-2-v1", "version": 1, "layers": {}})

        assert store.load("draft-1-old") is None
        assert store.load("draft-2-v1") is None

    def test_delete_clears_current(self, store, paper_draft):
        store.save(paper_draft)
        store.set_current_draft_id(paper_draft.id)

        store.delete(paper_draft.id)

        assert store.load(paper_draft.id) is None
        assert store.get_draft_ids() == []
        assert store.get_current_draft_id() is None

    @pytest.mark.parametrize("draft_id", ["../../victim", "draft-1-a/../../victim", "draft-1-a\n", ""])
    def test_ids_outside_the_store_are_refused(self, tmp_path, draft_id):
        victim = tmp_path / "victim.json"
        victim.write_text("{}")
        nested = DraftStore(tmp_path / "store")

        with pytest.raises(InvalidDraftIdError):
            nested.delete(draft_id)
        with pytest.raises(InvalidDraftIdError):
            nested.save(Draft(id=draft_id))
        assert nested.load(draft_id) is None
        assert victim.read_text() == "{}"

    def test_current_draft_id(self, store):
        assert store.get_current_draft_id() is None
        store.set_current_draft_id("draft-1")
        assert store.get_current_draft_id() == "draft-1"
        store.set_current_draft_id(None)
        assert store.get_current_draft_id() is None

    def test_list_summaries(self, store, paper_draft):
        untitled = create_empty_draft()
        store.save(paper_draft)
        store.save(untitled)

        summaries = store.list_summaries()

        assert [s.id for s in summaries] == [untitled.id, paper_draft.id]
        assert summaries[0].country == "Untitled"
        assert summaries[1].completion_percentage == 0

    def test_cleanup_legacy_drafts(self, store, paper_draft):
        store.save(paper_draft)
        _write_raw(store, "legacy", {"id": "legacy", "version": 1})
        store._save_draft_ids(["legacy", paper_draft.id])
        store.set_current_draft_id("legacy")

        removed = store.cleanup_legacy_drafts()

        assert removed == 1
        assert store.get_draft_ids() == [paper_draft.id]
        assert store.get_current_draft_id() is None
        assert store.load(paper_draft.id) is not None


class TestImportExport:
    def test_export_then_import_gets_new_id(self, paper_draft):
        paper_draft.layers.comprehension["origin"] = "1992 Rio summit"

        imported = import_draft_from_json(export_draft_to_json(paper_draft))

        assert imported is not None
        assert imported.id != paper_draft.id
        assert imported.layers.comprehension == {"origin": "1992 Rio summit"}

    def test_import_bare_draft(self, paper_draft):
        raw = json.dumps(paper_draft.model_dump(mode="json", by_alias=True))
        imported = import_draft_from_json(raw)
        assert imported is not None
        assert imported.topic == "Climate Finance"
        assert imported.id != paper_draft.id

    @pytest.mark.parametrize("raw", ["not json", "[]", '{"hello": "world"}', '{"version": 2, "data": {"layers": 5}}'])
    def test_import_invalid(self, raw):
        assert import_draft_from_json(raw) is None


class TestCompletion:
    def test_empty_draft(self):
        assert calculate_completion(Draft()) == 0

    def test_partial(self):
        draft = Draft()
        # 59 countable items: 24 + 10 + 24 fields and the final paper
        draft.layers.comprehension.update({"scope": "x", "origin": "y", "timeline": "   "})
        draft.layers.final_paper = "# Paper"
        assert calculate_completion(draft) == round(3 / 59 * 100)
