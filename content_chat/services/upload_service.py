"""
Upload service layer.

Turns spreadsheets (xlsx, xls, csv) and JSON payloads into content entries,
creates them in the content store and keeps an upload history.
"""

import asyncio
import json
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import uuid4

import pandas as pd
import structlog

from ..domain.entities import UploadRecord
from ..domain.exceptions import IngestionException, ValidationException
from ..repositories.upload_history_repository import IUploadHistoryRepository
from .content_service import ContentService

logger = structlog.get_logger(__name__)

PREVIEW_ROWS = 10
CSV_SUFFIXES = {".csv"}

TITLE_FALLBACKS = ("title", "Title", "NAME", "name")
DESCRIPTION_FALLBACKS = ("description", "Description", "DESC", "desc")

TITLE_HINTS = ("title", "name", "heading", "subject", "topic")
DESCRIPTION_HINTS = ("description", "desc", "content", "details", "info", "summary")
TITLE_COLUMN_NAMES = ("title", "name", "heading")

TEMPLATE_ROWS: Dict[str, List[Dict[str, str]]] = {
    "tour": [
        {
            "title": "Amazing Paris Tour",
            "description": (
                "Explore the beautiful city of Paris with our guided tour including "
                "Eiffel Tower, Louvre Museum, and Seine River cruise."
            ),
            "duration": "3 days",
            "price": "$299",
            "category": "City Tour",
        },
        {
            "title": "Italian Countryside Experience",
            "description": (
                "Discover the charm of Italian countryside with wine tasting, local "
                "cuisine, and historic villages."
            ),
            "duration": "5 days",
            "price": "$599",
            "category": "Cultural Tour",
        },
    ],
    "product": [
        {
            "title": "Wireless Headphones",
            "description": (
                "High-quality wireless headphones with noise cancellation and "
                "20-hour battery life."
            ),
            "price": "$199",
            "category": "Electronics",
            "brand": "TechBrand",
        },
        {
            "title": "Smart Watch",
            "description": (
                "Advanced smartwatch with health monitoring, GPS, and smartphone integration."
            ),
            "price": "$299",
            "category": "Wearables",
            "brand": "SmartTech",
        },
    ],
    "default": [
        {
            "title": "Sample Title 1",
            "description": "This is a sample description for the first item.",
            "category": "Sample Category",
            "tags": "sample, example",
        },
        {
            "title": "Sample Title 2",
            "description": "This is a sample description for the second item.",
            "category": "Sample Category",
            "tags": "sample, example",
        },
    ],
}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _first_present(row: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


@dataclass
class SheetData:
    """Rows of the first sheet of a spreadsheet."""

    rows: List[Dict[str, Any]]
    columns: List[str]
    sheet_name: str


def read_sheet(path: Union[str, Path]) -> SheetData:
    """
    Read the first sheet of a spreadsheet.

    Cells that are empty are left out of their row, so every row holds
    only the columns it has values for. Fully empty rows are skipped.
    CSV files report their file stem as sheet name.

    Raises:
        IngestionException: If the file cannot be parsed
    """
    path = Path(path)
    try:
        if path.suffix.lower() in CSV_SUFFIXES:
            frame = pd.read_csv(path)
            sheet_name = path.stem
        else:
            with pd.ExcelFile(path) as workbook:
                sheet_name = str(workbook.sheet_names[0])
                frame = workbook.parse(sheet_name)
    except pd.errors.EmptyDataError:
        return SheetData(rows=[], columns=[], sheet_name=path.stem)
    except Exception as e:
        logger.error("Spreadsheet read failed", path=str(path), error=str(e))
        raise IngestionException(path.name, str(e)) from e

    frame.columns = [str(column) for column in frame.columns]
    # Round-trip through JSON to get plain Python values (NaN -> None, dates -> ISO)
    records = json.loads(frame.to_json(orient="records", date_format="iso"))
    rows = [
        {key: value for key, value in record.items() if value is not None}
        for record in records
    ]
    return SheetData(
        rows=[row for row in rows if row],
        columns=list(frame.columns),
        sheet_name=sheet_name,
    )


def suggest_column_mapping(columns: List[str]) -> Dict[str, Any]:
    """
    Guess title and description columns from their names.

    The first column whose lower-cased name contains a hint wins; without
    a match the first and second columns are suggested.
    """

    def find(hints: Tuple[str, ...], fallback_index: int) -> Optional[str]:
        for column in columns:
            lowered = column.lower()
            if any(hint in lowered for hint in hints):
                return column
        return columns[fallback_index] if len(columns) > fallback_index else None

    return {
        "title_column": find(TITLE_HINTS, 0),
        "description_column": find(DESCRIPTION_HINTS, 1),
        "available_columns": list(columns),
    }


def rows_to_entries(
    rows: List[Dict[str, Any]],
    title_column: str = "title",
    description_column: str = "description",
) -> List[Dict[str, Any]]:
    """
    Map spreadsheet rows to entry payloads.

    Every column other than the title and description ones becomes an
    additional field with a lower-cased name.

    Raises:
        ValidationException: If a row has no title
    """
    excluded = {title_column, description_column, "title", "description"}
    entries = []

    for row in rows:
        title = _as_text(
            _first_present(row, (title_column,)) or _first_present(row, TITLE_FALLBACKS)
        ).strip()
        description = _as_text(
            _first_present(row, (description_column,))
            or _first_present(row, DESCRIPTION_FALLBACKS)
        ).strip()

        if not title:
            raise ValidationException(
                "title", row, f"Missing title in row: {json.dumps(row, default=str)}"
            )

        additional_fields = {
            key.lower(): value for key, value in row.items() if key not in excluded
        }
        entries.append(
            {"title": title, "description": description, "additional_fields": additional_fields}
        )

    return entries


def write_template(temp_dir: Path, content_type: str) -> Path:
    """Write the sample rows for a content type to a new .xlsx file in temp_dir."""
    rows = TEMPLATE_ROWS.get(content_type, TEMPLATE_ROWS["default"])
    safe_name = re.sub(r"[^A-Za-z0-9_-]", "_", content_type) or "default"

    temp_dir.mkdir(parents=True, exist_ok=True)
    path = temp_dir / f"{safe_name}_template_{int(time.time() * 1000)}.xlsx"
    pd.DataFrame(rows).to_excel(path, sheet_name="Data", index=False, engine="openpyxl")

    logger.debug("Template generated", content_type=content_type, path=str(path))
    return path


class UploadService:
    """
    Content ingestion service.

    Attributes:
        content_service: Used for bulk creation in the content store
        history: Upload history persistence
        temp_dir: Directory for generated templates
    """

    def __init__(
        self,
        content_service: ContentService,
        history: IUploadHistoryRepository,
        temp_dir: Union[str, Path] = "./temp",
    ):
        self.content_service = content_service
        self.history = history
        self.temp_dir = Path(temp_dir)

    async def process_spreadsheet(
        self,
        file_path: Union[str, Path],
        content_type: str = "tour",
        publish: bool = False,
        title_column: str = "title",
        description_column: str = "description",
        bot_id: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create one entry per spreadsheet row.

        Args:
            file_path: Spreadsheet on disk
            content_type: Target content type
            publish: Publish entries after creation
            title_column: Column holding entry titles
            description_column: Column holding entry descriptions
            bot_id: Bot the upload belongs to, for history filtering
            file_name: Name recorded in history (defaults to the file's name)

        Returns:
            upload_id, total_processed, successful, failed and published

        Raises:
            IngestionException: If the file is unreadable or empty
            ValidationException: If a row has no title
        """
        file_path = Path(file_path)
        sheet = await asyncio.to_thread(read_sheet, file_path)
        if not sheet.rows:
            raise IngestionException(
                file_name or file_path.name, "No data found in the Excel file"
            )

        entries = rows_to_entries(sheet.rows, title_column, description_column)
        return await self._ingest(
            entries,
            content_type=content_type,
            publish=publish,
            bot_id=bot_id,
            file_name=file_name or file_path.name,
            title_column=title_column,
            description_column=description_column,
            source="spreadsheet",
        )

    async def process_json_data(
        self,
        data: Any,
        content_type: str = "tour",
        publish: bool = False,
        bot_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create entries from a list of {title, description, additional_fields} items.

        Raises:
            ValidationException: If data is not a non-empty list or an item lacks a title
        """
        if not isinstance(data, list) or not data:
            raise ValidationException("data", type(data).__name__, "Expected non-empty array")

        entries = []
        for index, item in enumerate(data):
            title = item.get("title") if isinstance(item, dict) else None
            if not title or not isinstance(title, str):
                raise ValidationException(
                    "title", title, f"Missing or invalid title at index {index}"
                )
            entries.append(
                {
                    "title": title.strip(),
                    "description": _as_text(item.get("description")).strip(),
                    "additional_fields": item.get("additional_fields") or {},
                }
            )

        return await self._ingest(
            entries,
            content_type=content_type,
            publish=publish,
            bot_id=bot_id,
            file_name="JSON Data",
            source="json",
        )

    async def _ingest(
        self,
        entries: List[Dict[str, Any]],
        content_type: str,
        publish: bool,
        bot_id: Optional[str],
        file_name: str,
        source: str,
        title_column: Optional[str] = None,
        description_column: Optional[str] = None,
    ) -> Dict[str, Any]:
        result = await self.content_service.bulk_create_entries(entries, content_type, publish)

        record = UploadRecord(
            id=str(uuid4()),
            file_name=file_name,
            content_type=content_type,
            total_entries=len(entries),
            successful=len(result.successful),
            failed=len(result.failed),
            published=publish,
            bot_id=bot_id,
            title_column=title_column,
            description_column=description_column,
            source=source,
        )
        await self.history.add(record)

        logger.info(
            "Upload processed",
            upload_id=record.id,
            source=source,
            content_type=content_type,
            total=record.total_entries,
            successful=record.successful,
            failed=record.failed,
        )
        return {
            "upload_id": record.id,
            "total_processed": len(entries),
            "successful": result.successful,
            "failed": result.failed,
            "published": publish,
        }

    async def preview_spreadsheet(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Columns, first rows and a suggested column mapping of a spreadsheet.

        Raises:
            IngestionException: If the file cannot be parsed
        """
        sheet = await asyncio.to_thread(read_sheet, file_path)
        return {
            "columns": sheet.columns,
            "preview": sheet.rows[:PREVIEW_ROWS],
            "total_rows": len(sheet.rows),
            "sheet_name": sheet.sheet_name,
            "suggested_mapping": suggest_column_mapping(sheet.columns),
        }

    async def validate_spreadsheet(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Check a spreadsheet before upload.

        Never raises: unreadable files are reported as invalid.
        """
        try:
            sheet = await asyncio.to_thread(read_sheet, file_path)
        except IngestionException as e:
            return {
                "is_valid": False,
                "errors": [f"Failed to validate file: {e.details.get('reason')}"],
                "warnings": [],
                "row_count": 0,
                "columns": [],
            }

        rows, columns = sheet.rows, sheet.columns
        validation: Dict[str, Any] = {
            "is_valid": True,
            "errors": [],
            "warnings": [],
            "row_count": len(rows),
            "columns": columns,
        }

        if not rows:
            validation["is_valid"] = False
            validation["errors"].append("File contains no data")
            return validation

        if not any(column.lower() in TITLE_COLUMN_NAMES for column in columns):
            validation["warnings"].append(
                "No title column detected. Please specify the title column during upload."
            )

        # Title is assumed to be the first column of the sheet
        first_column = columns[0]
        empty_titles = sum(1 for row in rows if not _as_text(row.get(first_column)).strip())
        if empty_titles:
            validation["warnings"].append(f"{empty_titles} rows have empty titles")

        return validation

    async def get_upload_history(
        self, bot_id: Optional[str] = None, limit: int = 10
    ) -> List[Dict[str, Any]]:
        """Most recent uploads first."""
        records = await self.history.list_recent(bot_id=bot_id, limit=limit)
        return [record.to_dict() for record in records]

    async def generate_template(self, content_type: str = "tour") -> Path:
        """
        Write a sample spreadsheet for a content type.

        Returns:
            Path of the generated .xlsx file inside the temp directory
        """
        return await asyncio.to_thread(write_template, self.temp_dir, content_type)
