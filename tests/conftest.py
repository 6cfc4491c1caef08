"""
Pytest configuration and fixtures for category manager tests.
"""

import io
import json
import os
import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

from api.config import Settings
from api.main import create_app
from backend.models.schema import Base

# Load environment
load_dotenv()

# Test database URL (in-memory SQLite unless overridden)
TEST_DATABASE_URL = os.getenv('TEST_DATABASE_URL', 'sqlite://')


@pytest.fixture
def engine():
    """Create a fresh test database engine."""
    if TEST_DATABASE_URL.startswith('sqlite'):
        eng = create_engine(
            TEST_DATABASE_URL,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool
        )
    else:
        eng = create_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session(engine):
    """Create a new database session for a test."""
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    sess = Session()

    yield sess

    sess.close()


@pytest.fixture
def regions_dir(tmp_path):
    """Directory with two region files."""
    path = tmp_path / 'regions'
    path.mkdir()
    (path / 'north.json').write_text(json.dumps({
        'region': 'North', 'cities': ['Aberdeen', 'Inverness']
    }))
    (path / 'south.json').write_text(json.dumps({
        'region': 'South', 'cities': ['Brighton']
    }))
    return path


@pytest.fixture
def test_settings(tmp_path, regions_dir):
    """Settings pointing at temporary storage."""
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        UPLOADS_DIR=str(tmp_path / 'uploads'),
        REGIONS_DATA_DIR=str(regions_dir),
        MAX_FILE_SIZE_MB=1
    )


@pytest.fixture
def client(test_settings, engine):
    """FastAPI test client with the lifespan running."""
    app = create_app(test_settings, engine=engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_workbook():
    """Build .xlsx bytes from rows; the first row is the header."""
    def _make(rows, extra_sheet_rows=None):
        wb = Workbook()
        ws = wb.active
        ws.title = 'Categories'
        for row in rows:
            ws.append(list(row))
        if extra_sheet_rows:
            other = wb.create_sheet('Other')
            for row in extra_sheet_rows:
                other.append(list(row))
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def sample_rows():
    """The canonical three-row import."""
    return [
        ('Category', 'Subcategory'),
        ('Fruit', 'Apple'),
        ('Fruit', 'Banana'),
        ('Veg', 'Carrot'),
    ]
