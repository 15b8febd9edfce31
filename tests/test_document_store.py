"""
Tests for the JSON folder document store.

The store must never fail a read: missing, empty, corrupt or wrongly
shaped documents all come back as the caller's default.
"""

import json
import re

import pytest

from finance_tracker.services.storage import (
    USE_DEFAULT,
    DocumentNameError,
    JsonDocumentStore,
    StorageWriteError,
    parse_document,
)


class TestParseDocument:
    """Tests for the parse-or-default helper."""

    def test_valid_json(self):
        assert parse_document('[{"id": "a"}]') == [{"id": "a"}]

    def test_empty_text_uses_default(self):
        assert parse_document("   ") is USE_DEFAULT

    def test_invalid_json_uses_default(self):
        assert parse_document("{not json") is USE_DEFAULT


class TestRead:
    """Tests for fail-open reads."""

    @pytest.mark.asyncio
    async def test_missing_document_returns_default(self, store):
        assert await store.read("goals.json", []) == []

    @pytest.mark.asyncio
    async def test_default_is_copied(self, store):
        default = {"items": []}
        value = await store.read("settings.json", default)
        value["items"].append(1)
        assert default == {"items": []}

    @pytest.mark.asyncio
    async def test_corrupt_document_returns_default(self, store, data_root):
        data_root.mkdir(parents=True)
        (data_root / "goals.json").write_text("[{broken", encoding="utf-8")
        assert await store.read("goals.json", []) == []

    @pytest.mark.asyncio
    async def test_wrong_shape_returns_default(self, store, data_root):
        data_root.mkdir(parents=True)
        (data_root / "goals.json").write_text('{"not": "a list"}', encoding="utf-8")
        assert await store.read("goals.json", []) == []

    @pytest.mark.asyncio
    async def test_read_creates_folder_layout(self, store, data_root):
        await store.read("settings.json", None)
        assert (data_root / "data").is_dir()

    @pytest.mark.asyncio
    async def test_rejects_names_outside_root(self, store):
        with pytest.raises(DocumentNameError):
            await store.read("../outside.json", [])
        with pytest.raises(DocumentNameError):
            await store.read("/etc/passwd", [])


class TestWrite:
    """Tests for atomic writes."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, store, data_root):
        await store.write("data/2025-03.json", [{"id": "a", "description": "Pão"}])

        assert await store.read("data/2025-03.json", []) == [{"id": "a", "description": "Pão"}]
        raw = (data_root / "data" / "2025-03.json").read_text(encoding="utf-8")
        assert "Pão" in raw
        assert json.loads(raw) == [{"id": "a", "description": "Pão"}]

    @pytest.mark.asyncio
    async def test_write_uses_configured_indent(self, data_root):
        store = JsonDocumentStore(data_root, indent=4)
        await store.write("goals.json", [{"id": "a"}])
        raw = (data_root / "goals.json").read_text(encoding="utf-8")
        assert '\n        "id"' in raw

    @pytest.mark.asyncio
    async def test_write_leaves_no_temp_files(self, store, data_root):
        await store.write("goals.json", [])
        await store.write("goals.json", [{"id": "a"}])
        assert sorted(p.name for p in data_root.iterdir() if p.is_file()) == ["goals.json"]

    @pytest.mark.asyncio
    async def test_unserializable_value_raises(self, store):
        with pytest.raises(StorageWriteError):
            await store.write("goals.json", [object()])

    @pytest.mark.asyncio
    async def test_non_finite_numbers_are_not_written(self, store, data_root):
        with pytest.raises(StorageWriteError):
            await store.write("goals.json", [{"currentAmount": float("nan")}])
        assert not (data_root / "goals.json").exists()

    @pytest.mark.asyncio
    async def test_unwritable_root_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonDocumentStore(blocker / "finance-data")
        with pytest.raises(StorageWriteError):
            await store.write("goals.json", [])


class TestFolderOperations:
    """Tests for listing, renaming and clearing."""

    @pytest.mark.asyncio
    async def test_list_documents_filters_and_sorts(self, store):
        for name in ("2025-02.json", "2024-12.json", "notes.txt", "2025-01.json.bak"):
            await store.write(f"data/{name}", [])

        names = await store.list_documents("data", re.compile(r"^\d{4}-\d{2}\.json$"))

        assert names == ["2024-12.json", "2025-02.json"]

    @pytest.mark.asyncio
    async def test_list_missing_folder_is_empty(self, data_root):
        store = JsonDocumentStore(data_root)
        assert await store.list_documents("nowhere", re.compile(".*")) == []

    @pytest.mark.asyncio
    async def test_rename(self, store):
        await store.write("transactions.json", [])
        await store.rename("transactions.json", "transactions.json.migrated")

        assert not await store.exists("transactions.json")
        assert await store.exists("transactions.json.migrated")

    @pytest.mark.asyncio
    async def test_clear_removes_everything_and_recreates_layout(self, store, data_root):
        await store.write("goals.json", [])
        await store.write("data/2025-03.json", [])

        removed = await store.clear()

        assert removed == 2
        assert (data_root / "data").is_dir()
        assert list((data_root / "data").iterdir()) == []
        assert not await store.exists("goals.json")
