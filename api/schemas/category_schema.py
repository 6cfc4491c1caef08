"""
Category-related Pydantic schemas.

Wire field names follow the client contract: `categoryId` in update and
delete bodies, `createdAt`/`updatedAt` on records and `uploadedAt` in
spreadsheet metadata.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class SubcategoryInput(BaseModel):
    """Subcategory as supplied by a client; the id is generated when absent."""

    id: Optional[str] = Field(None, description="Existing subcategory ID")
    name: str = Field(..., min_length=1, max_length=255, description="Subcategory name")


class SubcategoryResponse(BaseModel):
    """Stored subcategory."""

    id: str = Field(..., description="Subcategory ID")
    name: str = Field(..., description="Subcategory name")


class ExcelFileInfo(BaseModel):
    """Metadata about the spreadsheet a category was imported from."""

    name: Optional[str] = Field(None, description="Original filename")
    path: Optional[str] = Field(None, description="Stored file path")
    uploaded_at: Optional[datetime] = Field(None, alias='uploadedAt', description="Upload timestamp")

    class Config:
        populate_by_name = True


class CategoryCreateRequest(BaseModel):
    """Request to create a category."""

    name: str = Field(..., min_length=1, max_length=255, description="Category name")
    subcategories: Optional[List[SubcategoryInput]] = Field(None, description="Initial subcategories")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Fruit",
                "subcategories": [{"name": "Apple"}, {"name": "Banana"}]
            }
        }


class CategoryUpdateRequest(BaseModel):
    """
    Partial update of a category.

    Only the fields present in the body are applied; `subcategories`
    replaces the whole list.
    """

    category_id: str = Field(..., alias='categoryId', min_length=1, description="Category ID")
    name: Optional[str] = Field(None, max_length=255, description="New category name")
    subcategories: Optional[List[SubcategoryInput]] = Field(None, description="Replacement subcategory list")
    excel_file: Optional[ExcelFileInfo] = Field(None, description="Replacement spreadsheet metadata")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "categoryId": "9b2f4c1e-0d7a-4a52-8f0e-3c1d2b6a7e90",
                "name": "Fresh Fruit",
                "subcategories": [{"id": "3f0c9a8e-5b1d-4f2a-9e7c-6d4b2a1c0e8f", "name": "Apple"}]
            }
        }

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly present in the request, ready for the service."""
        changes = {}
        for field in self.model_fields_set - {'category_id'}:
            value = getattr(self, field)
            if field == 'subcategories' and value is not None:
                value = [sub.model_dump(exclude_none=True) for sub in value]
            elif field == 'excel_file' and value is not None:
                value = value.model_dump(mode='json', by_alias=True)
            changes[field] = value
        return changes


class CategoryDeleteRequest(BaseModel):
    """Request to delete a category."""

    category_id: str = Field(..., alias='categoryId', min_length=1, description="Category ID")

    class Config:
        populate_by_name = True


class CategoryResponse(BaseModel):
    """Category record as returned by the API."""

    id: str = Field(..., description="Category ID")
    name: str = Field(..., description="Category name")
    subcategories: List[SubcategoryResponse] = Field(default_factory=list, description="Ordered subcategories")
    excel_file: Optional[ExcelFileInfo] = Field(None, description="Source spreadsheet metadata")
    created_at: Optional[datetime] = Field(None, alias='createdAt', description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, alias='updatedAt', description="Last update timestamp")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "9b2f4c1e-0d7a-4a52-8f0e-3c1d2b6a7e90",
                "name": "Fruit",
                "subcategories": [
                    {"id": "3f0c9a8e-5b1d-4f2a-9e7c-6d4b2a1c0e8f", "name": "Apple"}
                ],
                "excel_file": None,
                "createdAt": "2025-10-15T12:00:00Z",
                "updatedAt": "2025-10-15T12:00:00Z"
            }
        }

    @classmethod
    def from_category(cls, category) -> 'CategoryResponse':
        """Create from an ORM Category or its to_dict() form."""
        data = category if isinstance(category, dict) else category.to_dict()
        return cls.model_validate(data)

    def to_json(self) -> Dict[str, Any]:
        """JSON-ready dict using wire field names."""
        return self.model_dump(mode='json', by_alias=True)


class CategoryDeleteResponse(BaseModel):
    """Response when a category is deleted."""

    message: str = Field(..., description="Success message")
    deleted: CategoryResponse = Field(..., description="The deleted category")

    class Config:
        json_schema_extra = {
            "example": {
                "message": "Category deleted successfully",
                "deleted": {
                    "id": "9b2f4c1e-0d7a-4a52-8f0e-3c1d2b6a7e90",
                    "name": "Fruit",
                    "subcategories": []
                }
            }
        }
