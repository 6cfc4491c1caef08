"""
Categories router - CRUD and spreadsheet import over one resource path.

All operations share `/categories`; the record to update or delete is
named in the JSON body as `categoryId`. A multipart POST carrying a
`file` field imports a spreadsheet instead of creating one category.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from api.config import Settings
from api.dependencies import get_category_service, get_db, get_settings, get_storage
from api.schemas.category_schema import (
    CategoryCreateRequest, CategoryDeleteRequest, CategoryDeleteResponse,
    CategoryResponse, CategoryUpdateRequest
)
from api.schemas.common import ErrorResponse, parse_body
from services.category_service import CategoryService
from services.excel_import_service import CategoryImportService
from services.exceptions import ValidationError
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix='/categories',
    tags=['categories'],
    responses={
        400: {'model': ErrorResponse, 'description': 'Missing or invalid input'},
        500: {'model': ErrorResponse, 'description': 'Unexpected failure'},
    }
)


async def read_json(request: Request) -> Any:
    """Decode the request body as JSON."""
    try:
        return await request.json()
    except ValueError as e:
        logger.warning(f"JSON parsing error: {e}")
        raise ValidationError("Invalid JSON", details={'message': str(e)})


def require_field(body: Any, field: str, message: str):
    """Reject bodies that lack a required top-level field."""
    if isinstance(body, dict) and not body.get(field):
        raise ValidationError(message, details={'field': field})


@router.get('', response_model=List[CategoryResponse])
async def list_categories(
    service: CategoryService = Depends(get_category_service)
):
    """
    List all categories, newest first.

    **Example:**
    ```bash
    curl http://localhost:8000/api/categories
    ```
    """
    categories = service.list_categories()
    return [CategoryResponse.from_category(category) for category in categories]


@router.post(
    '',
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {'description': 'Created category, or array of imported categories'},
        409: {'model': ErrorResponse, 'description': 'Category name already exists'},
        413: {'model': ErrorResponse, 'description': 'Uploaded file too large'},
    }
)
async def create_category(
    request: Request,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    settings: Settings = Depends(get_settings)
):
    """
    Create a category, or import categories from a spreadsheet.

    **JSON body** creates one category:
    ```bash
    curl -X POST http://localhost:8000/api/categories \\
         -H 'Content-Type: application/json' \\
         -d '{"name": "Fruit", "subcategories": [{"name": "Apple"}]}'
    ```

    **Multipart body** with a `file` field imports the first sheet of an
    .xlsx workbook (columns `Category`, `Subcategory`) and returns the
    array of created categories:
    ```bash
    curl -X POST http://localhost:8000/api/categories -F file=@categories.xlsx
    ```
    """
    content_type = request.headers.get('content-type', '')

    if 'multipart/form-data' in content_type:
        return await import_spreadsheet(request, db, storage, settings)

    body = await read_json(request)
    require_field(body, 'name', 'Category name is required')
    payload = parse_body(CategoryCreateRequest, body)

    category = CategoryService(db).create_category(payload.name, payload.subcategories)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=CategoryResponse.from_category(category).to_json()
    )


async def import_spreadsheet(
    request: Request,
    db: Session,
    storage: StorageService,
    settings: Settings
) -> JSONResponse:
    """Handle the multipart branch of POST /categories."""
    form = await request.form()
    upload = form.get('file')

    if not isinstance(upload, UploadFile):
        raise ValidationError('No file uploaded', details={'field': 'file'})

    content = await upload.read()
    logger.info(f"Import request: {upload.filename} ({len(content) / 1024:.1f} KB)")

    service = CategoryImportService(
        db,
        storage=storage,
        allowed_extensions=settings.ALLOWED_EXTENSIONS,
        max_file_size_mb=settings.MAX_FILE_SIZE_MB
    )
    categories = service.import_file(content, upload.filename or '')

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=[CategoryResponse.from_category(c).to_json() for c in categories]
    )


@router.put(
    '',
    response_model=CategoryResponse,
    responses={
        404: {'model': ErrorResponse, 'description': 'Category not found'},
        409: {'model': ErrorResponse, 'description': 'Name belongs to another category'},
    }
)
async def update_category(
    request: Request,
    service: CategoryService = Depends(get_category_service)
):
    """
    Partially update a category.

    Only fields present in the body change. `subcategories` replaces the
    whole list; subcategories without an `id` get a new one.

    **Example:**
    ```bash
    curl -X PUT http://localhost:8000/api/categories \\
         -H 'Content-Type: application/json' \\
         -d '{"categoryId": "...", "subcategories": [{"name": "Pear"}]}'
    ```
    """
    body = await read_json(request)
    require_field(body, 'categoryId', 'Category ID is required')
    payload = parse_body(CategoryUpdateRequest, body)

    category = service.update_category(payload.category_id, payload.changes())

    return CategoryResponse.from_category(category)


@router.delete(
    '',
    response_model=CategoryDeleteResponse,
    responses={404: {'model': ErrorResponse, 'description': 'Category not found'}}
)
async def delete_category(
    request: Request,
    service: CategoryService = Depends(get_category_service)
):
    """
    Delete a category and all of its subcategories.

    **Warning:** This operation cannot be undone.

    **Example:**
    ```bash
    curl -X DELETE http://localhost:8000/api/categories \\
         -H 'Content-Type: application/json' \\
         -d '{"categoryId": "..."}'
    ```
    """
    body = await read_json(request)
    require_field(body, 'categoryId', 'Category ID is required')
    payload = parse_body(CategoryDeleteRequest, body)

    deleted = service.delete_category(payload.category_id)

    return CategoryDeleteResponse(
        message='Category deleted successfully',
        deleted=CategoryResponse.from_category(deleted)
    )
