"""
Regions router - read-only directory loaded from static files at startup.
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_region_directory
from api.schemas.common import ErrorResponse
from api.schemas.region_schema import RegionListResponse, RegionResponse
from services.exceptions import NotFoundError
from services.region_service import RegionDirectory

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix='/regions',
    tags=['regions'],
    responses={404: {'model': ErrorResponse, 'description': 'No matching region data'}}
)


@router.get('', response_model=RegionListResponse)
async def list_regions(
    regions: RegionDirectory = Depends(get_region_directory)
):
    """
    List every region in the directory.

    **Example:**
    ```bash
    curl http://localhost:8000/api/regions
    ```
    """
    data = regions.all()

    if not data:
        raise NotFoundError(
            'No regions data available',
            details={'message': 'Ensure the regions data directory exists and contains JSON files'}
        )

    return RegionListResponse(data=data)


@router.get('/{name}', response_model=RegionResponse)
async def get_region(
    name: str,
    regions: RegionDirectory = Depends(get_region_directory)
):
    """
    Get one region by name (case-insensitive).

    **Example:**
    ```bash
    curl http://localhost:8000/api/regions/north
    ```
    """
    region = regions.get(name)

    if region is None:
        logger.info(f"Region not found: {name}")
        raise NotFoundError.for_id('Region', name)

    return RegionResponse(data=region)
