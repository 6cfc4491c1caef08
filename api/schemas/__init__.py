"""
Pydantic schemas for request/response validation.

This package contains all Pydantic models used for API request validation
and response serialization.
"""

from api.schemas.common import ErrorResponse, HealthCheckResponse, parse_body
from api.schemas.category_schema import (
    SubcategoryInput, SubcategoryResponse, ExcelFileInfo,
    CategoryCreateRequest, CategoryUpdateRequest, CategoryDeleteRequest,
    CategoryResponse, CategoryDeleteResponse
)
from api.schemas.region_schema import Region, RegionListResponse, RegionResponse

__all__ = [
    # Common
    'ErrorResponse',
    'HealthCheckResponse',
    'parse_body',

    # Category
    'SubcategoryInput',
    'SubcategoryResponse',
    'ExcelFileInfo',
    'CategoryCreateRequest',
    'CategoryUpdateRequest',
    'CategoryDeleteRequest',
    'CategoryResponse',
    'CategoryDeleteResponse',

    # Region
    'Region',
    'RegionListResponse',
    'RegionResponse',
]
