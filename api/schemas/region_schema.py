"""
Region directory schemas.
"""

from typing import List
from pydantic import BaseModel, Field


class Region(BaseModel):
    """A region and its cities."""

    region: str = Field(..., description="Region name")
    cities: List[str] = Field(default_factory=list, description="Cities in the region")

    class Config:
        extra = 'allow'


class RegionListResponse(BaseModel):
    """All loaded regions."""

    data: List[Region] = Field(..., description="Regions")


class RegionResponse(BaseModel):
    """A single region."""

    data: Region = Field(..., description="Region")
