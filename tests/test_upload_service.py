"""
Tests for UploadService and spreadsheet helpers.

Spreadsheets are written to tmp_path with pandas (openpyxl engine).
"""

import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pandas as pd
import pytest

from content_chat.domain.entities import BulkCreateResult
from content_chat.domain.exceptions import IngestionException, ValidationException
from content_chat.services.content_service import ContentService
from content_chat.services.upload_service import (
    UploadService,
    read_sheet,
    rows_to_entries,
    suggest_column_mapping,
    write_template,
)


@pytest.fixture
def mock_content_service():
    service = MagicMock(spec=ContentService)

    async def bulk_create(entries, content_type, publish):
        return BulkCreateResult(
            successful=[
                {"uid": f"u{i}", "title": entry["title"], "published": publish}
                for i, entry in enumerate(entries)
            ]
        )

    service.bulk_create_entries = AsyncMock(side_effect=bulk_create)
    return service


@pytest.fixture
def upload_service(mock_content_service, upload_history_repository, tmp_path):
    return UploadService(
        mock_content_service, upload_history_repository, temp_dir=tmp_path / "temp"
    )


@pytest.fixture
def tours_xlsx(tmp_path):
    path = tmp_path / "tours.xlsx"
    pd.DataFrame(
        [
            {"Name": "Louvre Visit", "Details": "Art and history", "Price": 40},
            {"Name": "Seine Cruise", "Details": None, "Price": 25},
        ]
    ).to_excel(path, sheet_name="Tours", index=False, engine="openpyxl")
    return path


@pytest.fixture
def tours_csv(tmp_path):
    path = tmp_path / "tours.csv"
    path.write_text(
        "title,description,duration\n"
        "Paris Tour,See the Eiffel Tower,3 days\n"
        "\n"
        "Rome Tour,,2 days\n",
        encoding="utf-8",
    )
    return path


class TestReadSheet:
    """Test spreadsheet parsing."""

    def test_xlsx(self, tours_xlsx):
        sheet = read_sheet(tours_xlsx)

        assert sheet.sheet_name == "Tours"
        assert sheet.columns == ["Name", "Details", "Price"]
        assert sheet.rows == [
            {"Name": "Louvre Visit", "Details": "Art and history", "Price": 40},
            {"Name": "Seine Cruise", "Price": 25},
        ]

    def test_csv_skips_blank_rows_and_empty_cells(self, tours_csv):
        sheet = read_sheet(tours_csv)

        assert sheet.sheet_name == "tours"
        assert sheet.columns == ["title", "description", "duration"]
        assert sheet.rows == [
            {"title": "Paris Tour", "description": "See the Eiffel Tower", "duration": "3 days"},
            {"title": "Rome Tour", "duration": "2 days"},
        ]

    def test_empty_csv(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")

        sheet = read_sheet(path)

        assert sheet.rows == []
        assert sheet.columns == []

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"definitely not a workbook")

        with pytest.raises(IngestionException) as exc_info:
            read_sheet(path)

        assert exc_info.value.details["source"] == "broken.xlsx"


class TestColumnMapping:
    def test_hints(self):
        mapping = suggest_column_mapping(["id", "Tour Name", "Summary Text"])

        assert mapping == {
            "title_column": "Tour Name",
            "description_column": "Summary Text",
            "available_columns": ["id", "Tour Name", "Summary Text"],
        }

    def test_positional_fallback(self):
        mapping = suggest_column_mapping(["a", "b", "c"])

        assert mapping["title_column"] == "a"
        assert mapping["description_column"] == "b"

    def test_single_column(self):
        mapping = suggest_column_mapping(["a"])

        assert mapping["title_column"] == "a"
        assert mapping["description_column"] is None


class TestRowsToEntries:
    def test_configured_columns(self):
        entries = rows_to_entries(
            [{"Name": " Louvre ", "Details": "Art", "Price": 40, "City": "Paris"}],
            title_column="Name",
            description_column="Details",
        )

        assert entries == [
            {
                "title": "Louvre",
                "description": "Art",
                "additional_fields": {"price": 40, "city": "Paris"},
            }
        ]

    def test_fallback_columns(self):
        entries = rows_to_entries([{"NAME": "Seine Cruise", "desc": "Boat"}])

        assert entries[0]["title"] == "Seine Cruise"
        assert entries[0]["description"] == "Boat"
        assert entries[0]["additional_fields"] == {"name": "Seine Cruise", "desc": "Boat"}

    def test_numeric_title_is_text(self):
        assert rows_to_entries([{"title": 2024}])[0]["title"] == "2024"

    def test_missing_title(self):
        with pytest.raises(ValidationException) as exc_info:
            rows_to_entries([{"description": "orphan"}])

        assert "Missing title in row" in exc_info.value.message


class TestProcessSpreadsheet:
    """Test spreadsheet ingestion."""

    @pytest.mark.asyncio
    async def test_xlsx_with_mapping(self, upload_service, mock_content_service, tours_xlsx):
        result = await upload_service.process_spreadsheet(
            tours_xlsx,
            content_type="tour",
            publish=True,
            title_column="Name",
            description_column="Details",
            bot_id="bot-1",
            file_name="my tours.xlsx",
        )

        assert result["total_processed"] == 2
        assert [item["title"] for item in result["successful"]] == ["Louvre Visit", "Seine Cruise"]
        assert result["failed"] == []
        assert result["published"] is True

        entries, content_type, publish = mock_content_service.bulk_create_entries.await_args.args
        assert entries[1] == {
            "title": "Seine Cruise",
            "description": "",
            "additional_fields": {"price": 25},
        }
        assert (content_type, publish) == ("tour", True)

        history = await upload_service.get_upload_history(bot_id="bot-1")
        assert len(history) == 1
        assert history[0]["id"] == result["upload_id"]
        assert history[0]["file_name"] == "my tours.xlsx"
        assert history[0]["title_column"] == "Name"
        assert history[0]["successful"] == 2

    @pytest.mark.asyncio
    async def test_csv(self, upload_service, tours_csv):
        result = await upload_service.process_spreadsheet(tours_csv)

        assert result["total_processed"] == 2
        history = await upload_service.get_upload_history()
        assert history[0]["file_name"] == "tours.csv"
        assert history[0]["source"] == "spreadsheet"

    @pytest.mark.asyncio
    async def test_empty_sheet(self, upload_service, mock_content_service, tmp_path):
        path = tmp_path / "empty.xlsx"
        pd.DataFrame({"title": []}).to_excel(path, index=False, engine="openpyxl")

        with pytest.raises(IngestionException) as exc_info:
            await upload_service.process_spreadsheet(path)

        assert exc_info.value.details["reason"] == "No data found in the Excel file"
        mock_content_service.bulk_create_entries.assert_not_called()

    @pytest.mark.asyncio
    async def test_row_without_title_aborts(self, upload_service, mock_content_service, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("title,description\nOk,fine\n,no title\n", encoding="utf-8")

        with pytest.raises(ValidationException):
            await upload_service.process_spreadsheet(path)

        mock_content_service.bulk_create_entries.assert_not_called()
        assert await upload_service.get_upload_history() == []


class TestProcessJsonData:
    """Test JSON ingestion."""

    @pytest.mark.asyncio
    async def test_creates_entries(self, upload_service, mock_content_service):
        result = await upload_service.process_json_data(
            [
                {"title": " Lisbon ", "description": "Trams", "additional_fields": {"price": 10}},
                {"title": "Porto"},
            ],
            content_type="tour",
            bot_id="bot-2",
        )

        assert result["total_processed"] == 2
        entries = mock_content_service.bulk_create_entries.await_args.args[0]
        assert entries == [
            {"title": "Lisbon", "description": "Trams", "additional_fields": {"price": 10}},
            {"title": "Porto", "description": "", "additional_fields": {}},
        ]
        history = await upload_service.get_upload_history()
        assert history[0]["file_name"] == "JSON Data"
        assert history[0]["source"] == "json"
        assert history[0]["bot_id"] == "bot-2"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [[], {}, "text", None])
    async def test_rejects_non_list(self, upload_service, data):
        with pytest.raises(ValidationException):
            await upload_service.process_json_data(data)

    @pytest.mark.asyncio
    async def test_rejects_missing_title(self, upload_service, mock_content_service):
        with pytest.raises(ValidationException) as exc_info:
            await upload_service.process_json_data([{"title": "Ok"}, {"description": "x"}])

        assert exc_info.value.details["reason"] == "Missing or invalid title at index 1"
        mock_content_service.bulk_create_entries.assert_not_called()


class TestPreviewAndValidate:
    @pytest.mark.asyncio
    async def test_preview(self, upload_service, tours_xlsx):
        preview = await upload_service.preview_spreadsheet(tours_xlsx)

        assert preview["columns"] == ["Name", "Details", "Price"]
        assert preview["total_rows"] == 2
        assert preview["sheet_name"] == "Tours"
        assert preview["suggested_mapping"]["title_column"] == "Name"
        assert preview["suggested_mapping"]["description_column"] == "Details"

    @pytest.mark.asyncio
    async def test_preview_is_capped(self, upload_service, tmp_path):
        path = tmp_path / "many.csv"
        path.write_text("title\n" + "".join(f"Row {i}\n" for i in range(15)), encoding="utf-8")

        preview = await upload_service.preview_spreadsheet(path)

        assert len(preview["preview"]) == 10
        assert preview["total_rows"] == 15

    @pytest.mark.asyncio
    async def test_validate_valid_file(self, upload_service, tours_csv):
        validation = await upload_service.validate_spreadsheet(tours_csv)

        assert validation == {
            "is_valid": True,
            "errors": [],
            "warnings": [],
            "row_count": 2,
            "columns": ["title", "description", "duration"],
        }

    @pytest.mark.asyncio
    async def test_validate_warnings(self, upload_service, tmp_path):
        path = tmp_path / "odd.csv"
        path.write_text("heading_text,notes\nA,x\n,y\n", encoding="utf-8")

        validation = await upload_service.validate_spreadsheet(path)

        assert validation["is_valid"] is True
        assert validation["warnings"] == [
            "No title column detected. Please specify the title column during upload.",
            "1 rows have empty titles",
        ]

    @pytest.mark.asyncio
    async def test_validate_empty_file(self, upload_service, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")

        validation = await upload_service.validate_spreadsheet(path)

        assert validation["is_valid"] is False
        assert validation["errors"] == ["File contains no data"]

    @pytest.mark.asyncio
    async def test_validate_unreadable_file(self, upload_service, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"garbage")

        validation = await upload_service.validate_spreadsheet(path)

        assert validation["is_valid"] is False
        assert validation["errors"][0].startswith("Failed to validate file:")


class TestGenerateTemplate:
    @pytest.mark.asyncio
    async def test_tour_template(self, upload_service, tmp_path):
        path = await upload_service.generate_template("tour")

        assert path.parent == tmp_path / "temp"
        assert path.name.startswith("tour_template_")
        frame = pd.read_excel(path, sheet_name="Data", engine="openpyxl")
        assert list(frame.columns) == ["title", "description", "duration", "price", "category"]
        assert frame["title"].tolist() == ["Amazing Paris Tour", "Italian Countryside Experience"]

    @pytest.mark.asyncio
    async def test_unknown_type_uses_default_rows(self, upload_service):
        path = await upload_service.generate_template("../recipes")

        assert path.name.startswith("___recipes_template_")
        frame = pd.read_excel(path, engine="openpyxl")
        assert frame["title"].tolist() == ["Sample Title 1", "Sample Title 2"]


class TestBlockingWorkOffloaded:
    """Spreadsheet parsing and writing run in worker threads."""

    @pytest.fixture
    def reader_threads(self):
        threads = []

        def recording_read_sheet(path):
            threads.append(threading.get_ident())
            return read_sheet(path)

        with patch(
            "content_chat.services.upload_service.read_sheet", side_effect=recording_read_sheet
        ):
            yield threads

    @pytest.mark.asyncio
    async def test_process_spreadsheet(self, upload_service, tours_csv, reader_threads):
        await upload_service.process_spreadsheet(tours_csv)

        assert reader_threads and threading.get_ident() not in reader_threads

    @pytest.mark.asyncio
    async def test_preview_and_validate(self, upload_service, tours_csv, reader_threads):
        await upload_service.preview_spreadsheet(tours_csv)
        await upload_service.validate_spreadsheet(tours_csv)

        assert len(reader_threads) == 2
        assert threading.get_ident() not in reader_threads

    @pytest.mark.asyncio
    async def test_generate_template(self, upload_service):
        threads = []

        def recording_write_template(temp_dir, content_type):
            threads.append(threading.get_ident())
            return write_template(temp_dir, content_type)

        with patch(
            "content_chat.services.upload_service.write_template",
            side_effect=recording_write_template,
        ):
            path = await upload_service.generate_template("tour")

        assert path.exists()
        assert threads and threading.get_ident() not in threads
