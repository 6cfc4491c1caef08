"""
Tests for spreadsheet import functionality.

Tests cover row parsing, category building and the transactional
import workflow.
"""

import io
import zipfile
from pathlib import Path

import pytest

from backend.models.schema import Category
from services.category_service import CategoryService
from services.excel_import_service import (
    CategoryImportService, SpreadsheetImporter, cell_text
)
from services.exceptions import (
    DuplicateNameError, FileTooLargeError, UnexpectedError, ValidationError
)
from services.storage_service import StorageService


class TestCellText:
    """Test cell value conversion."""

    def test_values(self):
        """Test cell values convert to trimmed text."""
        assert cell_text(None) == ''
        assert cell_text('  Fruit ') == 'Fruit'
        assert cell_text(42) == '42'
        assert cell_text(3.0) == '3'
        assert cell_text(2.5) == '2.5'


class TestParseRows:
    """Test reading rows from workbook bytes."""

    def test_rows_keyed_by_header(self, make_workbook, sample_rows):
        """Test rows are keyed by header text."""
        rows = SpreadsheetImporter().parse_rows(make_workbook(sample_rows))

        assert rows == [
            {'Category': 'Fruit', 'Subcategory': 'Apple'},
            {'Category': 'Fruit', 'Subcategory': 'Banana'},
            {'Category': 'Veg', 'Subcategory': 'Carrot'},
        ]

    def test_headers_are_case_insensitive(self, make_workbook):
        """Test headers match regardless of case."""
        rows = SpreadsheetImporter().parse_rows(make_workbook([
            (' category ', 'SUBCATEGORY'),
            ('Fruit', 'Apple'),
        ]))

        assert rows == [{'Category': 'Fruit', 'Subcategory': 'Apple'}]

    def test_blank_rows_skipped(self, make_workbook):
        """Test blank rows are ignored."""
        rows = SpreadsheetImporter().parse_rows(make_workbook([
            (None, None),
            ('Category', 'Subcategory'),
            (None, None),
            ('Fruit', 'Apple'),
        ]))

        assert rows == [{'Category': 'Fruit', 'Subcategory': 'Apple'}]

    def test_only_first_sheet_is_read(self, make_workbook, sample_rows):
        """Test later sheets are ignored."""
        content = make_workbook(
            sample_rows,
            extra_sheet_rows=[('Category', 'Subcategory'), ('Meat', 'Beef')]
        )

        rows = SpreadsheetImporter().parse_rows(content)

        assert 'Meat' not in {row['Category'] for row in rows}

    def test_missing_category_column(self, make_workbook):
        """Test a header without Category is rejected."""
        with pytest.raises(ValidationError):
            SpreadsheetImporter().parse_rows(make_workbook([
                ('Name', 'Subcategory'),
                ('Fruit', 'Apple'),
            ]))

    def test_empty_sheet(self, make_workbook):
        """Test an empty sheet yields no rows."""
        assert SpreadsheetImporter().parse_rows(make_workbook([])) == []

    def test_invalid_workbook(self):
        """Test non-workbook bytes raise UnexpectedError."""
        with pytest.raises(UnexpectedError):
            SpreadsheetImporter().parse_rows(b'not a spreadsheet')

    def test_corrupt_sheet_xml(self, make_workbook, sample_rows):
        """Test a valid archive with broken sheet XML raises UnexpectedError."""
        source = io.BytesIO(make_workbook(sample_rows))
        target = io.BytesIO()
        with zipfile.ZipFile(source) as zin, zipfile.ZipFile(target, 'w') as zout:
            for item in zin.infolist():
                data = zin.read(item.filename)
                if item.filename == 'xl/worksheets/sheet1.xml':
                    data = b'<worksheet><sheetData><row r="1"><c'
                zout.writestr(item, data)

        with pytest.raises(UnexpectedError) as exc_info:
            SpreadsheetImporter().parse_rows(target.getvalue())

        assert exc_info.value.message == 'Failed to parse spreadsheet'


class TestBuildCategories:
    """Test building categories from rows."""

    def test_groups_by_category_in_file_order(self, make_workbook, sample_rows):
        """Test rows group into categories in file order."""
        categories = SpreadsheetImporter().parse(make_workbook(sample_rows))

        assert [c.name for c in categories] == ['Fruit', 'Veg']
        assert [s['name'] for s in categories[0].subcategories] == ['Apple', 'Banana']
        assert [s['name'] for s in categories[1].subcategories] == ['Carrot']

    def test_fresh_unique_ids(self, make_workbook, sample_rows):
        """Test every record gets a fresh id."""
        categories = SpreadsheetImporter().parse(make_workbook(sample_rows))

        ids = [c.id for c in categories]
        sub_ids = [s['id'] for c in categories for s in c.subcategories]
        assert len(set(ids)) == 2
        assert len(set(sub_ids)) == 3

    def test_row_without_category_is_skipped(self):
        """Test rows without a category are skipped."""
        categories = SpreadsheetImporter().build_categories([
            {'Category': '', 'Subcategory': 'Orphan'},
            {'Category': 'Fruit', 'Subcategory': 'Apple'},
        ])

        assert [c.name for c in categories] == ['Fruit']
        assert [s['name'] for s in categories[0].subcategories] == ['Apple']

    def test_category_without_subcategory(self):
        """Test a category row with no subcategory."""
        categories = SpreadsheetImporter().build_categories([
            {'Category': 'Fruit'},
            {'Category': 'Fruit', 'Subcategory': ''},
            {'Category': 'Veg', 'Subcategory': 'Carrot'},
        ])

        assert [c.name for c in categories] == ['Fruit', 'Veg']
        assert categories[0].subcategories == []

    def test_duplicate_subcategory_names_are_kept(self):
        """Test repeated subcategory names are kept."""
        categories = SpreadsheetImporter().build_categories([
            {'Category': 'Fruit', 'Subcategory': 'Apple'},
            {'Category': 'Fruit', 'Subcategory': 'Apple'},
        ])

        subs = categories[0].subcategories
        assert [s['name'] for s in subs] == ['Apple', 'Apple']
        assert subs[0]['id'] != subs[1]['id']


class TestImportService:
    """Test the full import workflow."""

    def test_import_persists_categories(self, session, make_workbook, sample_rows):
        """Test import stores the parsed categories."""
        service = CategoryImportService(session)

        imported = service.import_file(make_workbook(sample_rows), 'categories.xlsx')

        assert [c.name for c in imported] == ['Fruit', 'Veg']
        stored = {c.name: c for c in CategoryService(session).list_categories()}
        assert set(stored) == {'Fruit', 'Veg'}
        assert len(stored['Fruit'].subcategories) == 2
        assert stored['Fruit'].excel_file is None

    def test_import_with_storage_records_source_file(self, session, make_workbook,
                                                     sample_rows, tmp_path):
        """Test import records and stores the source file."""
        storage = StorageService(str(tmp_path / 'uploads'))
        content = make_workbook(sample_rows)

        imported = CategoryImportService(session, storage=storage)\
            .import_file(content, 'categories.xlsx')

        excel_file = imported[0].excel_file
        assert excel_file['name'] == 'categories.xlsx'
        assert excel_file['uploadedAt']
        assert Path(excel_file['path']).read_bytes() == content

    def test_collision_imports_nothing(self, session, make_workbook, sample_rows, tmp_path):
        """Test a name collision stores nothing."""
        CategoryService(session).create_category('Veg')
        storage = StorageService(str(tmp_path / 'uploads'))

        with pytest.raises(DuplicateNameError) as exc_info:
            CategoryImportService(session, storage=storage)\
                .import_file(make_workbook(sample_rows), 'categories.xlsx')

        assert exc_info.value.names == ['Veg']
        assert [c.name for c in session.query(Category).all()] == ['Veg']
        assert not (tmp_path / 'uploads').exists()

    def test_rejects_extension(self, session, make_workbook, sample_rows):
        """Test non-Excel filenames are rejected."""
        with pytest.raises(ValidationError):
            CategoryImportService(session).import_file(make_workbook(sample_rows), 'categories.csv')

    def test_rejects_large_file(self, session):
        """Test oversized uploads are rejected."""
        service = CategoryImportService(session, max_file_size_mb=1)

        with pytest.raises(FileTooLargeError):
            service.import_file(b'x' * (2 * 1024 * 1024), 'big.xlsx')

    def test_progress_callback(self, session, make_workbook, sample_rows):
        """Test progress stages are reported."""
        stages = []
        service = CategoryImportService(
            session,
            progress_callback=lambda stage, percent, message: stages.append((stage, percent))
        )

        service.import_file(make_workbook(sample_rows), 'categories.xlsx')

        assert stages[0][0] == 'validating'
        assert stages[-1] == ('complete', 100)
