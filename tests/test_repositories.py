"""
Tests for the JSON-file repositories.
"""

import json
from unittest.mock import patch

import pytest

from content_chat.domain.entities import Bot, UploadRecord
from content_chat.domain.exceptions import PersistenceException
from content_chat.repositories.bot_repository import JsonBotRepository
from content_chat.repositories.json_store import JsonFileStore
from content_chat.repositories.upload_history_repository import JsonUploadHistoryRepository


def make_bot(bot_id="bot-1", name="Guide"):
    return Bot(id=bot_id, name=name, system_prompt="prompt", start_message="hi")


def make_record(record_id, bot_id=None):
    return UploadRecord(
        id=record_id,
        file_name=f"{record_id}.xlsx",
        content_type="tour",
        total_entries=2,
        successful=2,
        failed=0,
        published=False,
        bot_id=bot_id,
    )


class TestJsonFileStore:
    """Test the JSON file store."""

    def test_missing_file_loads_empty(self, tmp_path):
        assert JsonFileStore(tmp_path / "nested" / "data.json").load() == []
        assert (tmp_path / "nested").is_dir()

    def test_save_and_load(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")

        store.save([{"id": "1", "name": "Café"}])

        assert store.load() == [{"id": "1", "name": "Café"}]
        assert "Café" in (tmp_path / "data.json").read_text(encoding="utf-8")

    def test_corrupt_file_loads_empty(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")

        assert JsonFileStore(path).load() == []

    def test_non_list_loads_empty(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('{"id": "1"}', encoding="utf-8")

        assert JsonFileStore(path).load() == []

    def test_non_dict_items_dropped(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('[{"id": "1"}, 2, "x", null]', encoding="utf-8")

        assert JsonFileStore(path).load() == [{"id": "1"}]

    def test_unserializable_records_raise(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")
        store.save([{"id": "1"}])

        with pytest.raises(PersistenceException):
            store.save([{"id": object()}])

        # the previous content survives and no temp file is left behind
        assert store.load() == [{"id": "1"}]
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]


class TestJsonBotRepository:
    """Test bot persistence."""

    @pytest.mark.asyncio
    async def test_add_and_get(self, bot_repository):
        bot = await bot_repository.add(make_bot())

        assert await bot_repository.get("bot-1") is bot
        assert await bot_repository.get("missing") is None

    @pytest.mark.asyncio
    async def test_list_keeps_insertion_order(self, bot_repository):
        await bot_repository.add(make_bot("b"))
        await bot_repository.add(make_bot("a"))

        assert [bot.id for bot in await bot_repository.list_all()] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        store = JsonFileStore(tmp_path / "bots.json")
        await JsonBotRepository(store).add(make_bot(name="Persisted"))

        reloaded = JsonBotRepository(JsonFileStore(tmp_path / "bots.json"))

        bot = await reloaded.get("bot-1")
        assert bot.name == "Persisted"
        assert bot.is_active is True

    @pytest.mark.asyncio
    async def test_unknown_stored_keys_are_ignored(self, tmp_path):
        path = tmp_path / "bots.json"
        data = make_bot().to_dict()
        data["legacy_field"] = 1
        path.write_text(json.dumps([data]), encoding="utf-8")

        repository = JsonBotRepository(JsonFileStore(path))

        assert (await repository.get("bot-1")).name == "Guide"

    @pytest.mark.asyncio
    async def test_replace(self, bot_repository):
        await bot_repository.add(make_bot())

        replaced = await bot_repository.replace(make_bot(name="Renamed"))

        assert replaced.name == "Renamed"
        assert (await bot_repository.get("bot-1")).name == "Renamed"
        assert await bot_repository.replace(make_bot("missing")) is None

    @pytest.mark.asyncio
    async def test_delete(self, bot_repository):
        await bot_repository.add(make_bot())

        assert await bot_repository.delete("bot-1") is True
        assert await bot_repository.delete("bot-1") is False
        assert await bot_repository.list_all() == []

    @pytest.mark.asyncio
    async def test_failed_add_leaves_state_unchanged(self, bot_repository):
        with patch.object(
            bot_repository.store, "save", side_effect=PersistenceException("bots.json", "disk full")
        ):
            with pytest.raises(PersistenceException):
                await bot_repository.add(make_bot())

        assert await bot_repository.get("bot-1") is None
        assert await bot_repository.list_all() == []

    @pytest.mark.asyncio
    async def test_failed_replace_keeps_previous_bot(self, bot_repository):
        await bot_repository.add(make_bot())

        with patch.object(
            bot_repository.store, "save", side_effect=PersistenceException("bots.json", "disk full")
        ):
            with pytest.raises(PersistenceException):
                await bot_repository.replace(make_bot(name="Renamed"))

        assert (await bot_repository.get("bot-1")).name == "Guide"

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_bot(self, bot_repository):
        await bot_repository.add(make_bot())

        with patch.object(
            bot_repository.store, "save", side_effect=PersistenceException("bots.json", "disk full")
        ):
            with pytest.raises(PersistenceException):
                await bot_repository.delete("bot-1")

        assert (await bot_repository.get("bot-1")).name == "Guide"
        assert len(await bot_repository.list_all()) == 1


class TestJsonUploadHistoryRepository:
    """Test upload history persistence."""

    @pytest.mark.asyncio
    async def test_newest_first(self, upload_history_repository):
        await upload_history_repository.add(make_record("first"))
        await upload_history_repository.add(make_record("second"))

        records = await upload_history_repository.list_recent()

        assert [record.id for record in records] == ["second", "first"]

    @pytest.mark.asyncio
    async def test_filter_and_limit(self, upload_history_repository):
        for index in range(4):
            await upload_history_repository.add(make_record(f"r{index}", bot_id="bot-1"))
        await upload_history_repository.add(make_record("other", bot_id="bot-2"))

        records = await upload_history_repository.list_recent(bot_id="bot-1", limit=2)

        assert [record.id for record in records] == ["r3", "r2"]

    @pytest.mark.asyncio
    async def test_failed_add_leaves_history_unchanged(self, upload_history_repository):
        await upload_history_repository.add(make_record("kept"))

        with patch.object(
            upload_history_repository.store,
            "save",
            side_effect=PersistenceException("history.json", "disk full"),
        ):
            with pytest.raises(PersistenceException):
                await upload_history_repository.add(make_record("lost"))

        records = await upload_history_repository.list_recent()
        assert [record.id for record in records] == ["kept"]

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        store = JsonFileStore(tmp_path / "history.json")
        await JsonUploadHistoryRepository(store).add(make_record("kept"))

        reloaded = JsonUploadHistoryRepository(JsonFileStore(tmp_path / "history.json"))

        records = await reloaded.list_recent()
        assert records[0].id == "kept"
        assert records[0].source == "spreadsheet"
