"""
Excel Import Service - Framework-agnostic spreadsheet import.

Turns the first sheet of an uploaded workbook into Category records and
inserts them as one batch. The sheet must have a header row with a
"Category" column and, optionally, a "Subcategory" column:

    | Category | Subcategory |
    |----------|-------------|
    | Fruit    | Apple       |
    | Fruit    | Banana      |
    | Veg      | Carrot      |
"""

import io
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import openpyxl
from sqlalchemy.orm import Session

from backend.models.schema import Category, generate_id
from services.category_service import CategoryService
from services.exceptions import UnexpectedError, ValidationError
from services.storage_service import (
    DEFAULT_ALLOWED_EXTENSIONS, DEFAULT_MAX_FILE_SIZE_MB, StorageService,
    validate_file_extension, validate_file_size
)

logger = logging.getLogger(__name__)

CATEGORY_COLUMN = 'Category'
SUBCATEGORY_COLUMN = 'Subcategory'


def cell_text(value: Any) -> str:
    """Convert a cell value to trimmed text; empty cells become ''."""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class SpreadsheetImporter:
    """Parse workbook bytes into de-duplicated Category records."""

    def parse_rows(self, content: bytes) -> List[Dict[str, str]]:
        """
        Read the first sheet into a list of row dictionaries.

        The first non-empty row provides the headers. Blank rows are
        skipped. Keys are the canonical column names for the recognised
        headers and the raw header text for everything else.

        Raises:
            UnexpectedError: If the bytes are not a readable workbook
            ValidationError: If there is no Category column
        """
        try:
            raw_rows = self._read_first_sheet(content)
        except Exception as e:
            logger.error(f"Could not read workbook: {e}")
            raise UnexpectedError("Failed to parse spreadsheet", details={'message': str(e)})

        headers: Optional[List[str]] = None
        rows = []

        for texts in raw_rows:
            if not any(texts):
                continue

            if headers is None:
                headers = [self._canonical_header(t) for t in texts]
                if CATEGORY_COLUMN not in headers:
                    raise ValidationError(
                        f"Spreadsheet must have a '{CATEGORY_COLUMN}' column",
                        details={'headers': texts}
                    )
                continue

            rows.append({
                header: text
                for header, text in zip(headers, texts)
                if header
            })

        logger.info(f"Parsed {len(rows)} data rows")
        return rows

    @staticmethod
    def _read_first_sheet(content: bytes) -> List[List[str]]:
        """Load the workbook and return the first sheet as rows of cell text."""
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        try:
            worksheet = workbook.worksheets[0]
            logger.info(f"Parsing sheet: {worksheet.title}")
            return [
                [cell_text(v) for v in values]
                for values in worksheet.iter_rows(values_only=True)
            ]
        finally:
            workbook.close()

    @staticmethod
    def _canonical_header(text: str) -> str:
        """Map recognised header text to its canonical column name."""
        for column in (CATEGORY_COLUMN, SUBCATEGORY_COLUMN):
            if text.lower() == column.lower():
                return column
        return text

    def build_categories(self, rows: List[Dict[str, str]]) -> List[Category]:
        """
        Build categories from parsed rows in file order.

        The first row naming a category creates it; each row with a
        subcategory appends a new subcategory to that category, repeated
        names included. Rows without a category name are skipped.
        """
        categories: Dict[str, Category] = {}

        for row in rows:
            category_name = row.get(CATEGORY_COLUMN, '')
            if not category_name:
                continue

            category = categories.get(category_name)
            if category is None:
                category = Category(id=generate_id(), name=category_name, subcategories=[])
                categories[category_name] = category

            subcategory_name = row.get(SUBCATEGORY_COLUMN, '')
            if subcategory_name:
                # Reassign so the JSON column sees a new list
                category.subcategories = category.subcategories + [
                    {'id': generate_id(), 'name': subcategory_name}
                ]

        logger.info(f"Built {len(categories)} categories from {len(rows)} rows")
        return list(categories.values())

    def parse(self, content: bytes) -> List[Category]:
        """Parse workbook bytes straight into Category records."""
        return self.build_categories(self.parse_rows(content))


class CategoryImportService:
    """
    Spreadsheet import workflow.

    Validates the upload, parses it, stamps source-file metadata and
    inserts the resulting categories in a single transaction.
    """

    def __init__(
        self,
        db_session: Session,
        storage: Optional[StorageService] = None,
        progress_callback: Optional[Callable[[str, float, str], None]] = None,
        allowed_extensions: Optional[List[str]] = None,
        max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB
    ):
        """
        Initialize import service.

        Args:
            db_session: SQLAlchemy database session
            storage: Optional storage for the uploaded file; when omitted the
                     imported categories carry no excel_file metadata
            progress_callback: Optional callback for progress updates
                              Signature: callback(stage: str, percent: float, message: str)
            allowed_extensions: Accepted filename extensions
            max_file_size_mb: Upload size limit
        """
        self.session = db_session
        self.storage = storage
        self.progress_callback = progress_callback or (lambda *args: None)
        self.allowed_extensions = allowed_extensions or DEFAULT_ALLOWED_EXTENSIONS
        self.max_file_size_mb = max_file_size_mb

        self.importer = SpreadsheetImporter()
        self.category_service = CategoryService(db_session)

    def _emit_progress(self, stage: str, percent: float, message: str):
        """Emit progress update via callback."""
        self.progress_callback(stage, percent, message)
        logger.info(f"Progress: {stage} ({percent:.1f}%) - {message}")

    def import_file(self, content: bytes, filename: str) -> List[Category]:
        """
        Main import workflow.

        Args:
            content: Uploaded workbook bytes
            filename: Original filename

        Returns:
            Created categories in file order

        Raises:
            ValidationError: Bad extension, missing Category column
            FileTooLargeError: Upload exceeds the size limit
            DuplicateNameError: A name already exists; nothing is stored
            UnexpectedError: Unreadable workbook or store failure
        """
        logger.info(f"Starting import of {filename} ({len(content)} bytes)")

        self._emit_progress('validating', 5, 'Checking upload...')
        validate_file_extension(filename, self.allowed_extensions)
        validate_file_size(len(content), self.max_file_size_mb)

        self._emit_progress('parsing', 20, 'Parsing spreadsheet...')
        categories = self.importer.parse(content)

        stored_path = None
        if self.storage and categories:
            stored_path = self.storage.path_for(content, filename)
            excel_file = {
                'name': filename,
                'path': stored_path,
                'uploadedAt': datetime.utcnow().isoformat()
            }
            for category in categories:
                category.excel_file = dict(excel_file)

        self._emit_progress('insertion', 60, f"Inserting {len(categories)} categories...")
        self.category_service.bulk_create(categories)

        if stored_path:
            self._emit_progress('storing', 90, 'Storing uploaded file...')
            self.storage.store_bytes(content, filename)

        self._emit_progress('complete', 100, 'Import complete')
        logger.info(f"Imported {len(categories)} categories from {filename}")

        return categories
