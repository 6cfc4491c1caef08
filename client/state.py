"""
Client-side mirror of the category collection.

Each action makes one API call and, when it succeeds, applies the
response to the local list as-is: fetch replaces it, create and import
append, update replaces the matching record, delete removes it. Nothing
is merged or updated optimistically. A failed action leaves the list
untouched and records the error message.
"""

import logging
from typing import Any, Dict, List, Optional

from client.api_client import ApiError, CategoryApiClient

logger = logging.getLogger(__name__)

IDLE = 'idle'
PENDING = 'pending'
SUCCEEDED = 'succeeded'
FAILED = 'failed'


class CategoryState:
    """Category cache driven by request/response cycles."""

    def __init__(self, client: CategoryApiClient):
        self.client = client
        self.categories: List[Dict[str, Any]] = []
        self.loading = IDLE
        self.error: Optional[str] = None

    def _fail(self, exc: ApiError):
        self.error = exc.message
        logger.warning(f"Category action failed: {exc.message}")
        raise exc

    def fetch(self) -> List[Dict[str, Any]]:
        self.loading = PENDING
        try:
            categories = self.client.fetch_categories()
        except ApiError as e:
            self.loading = FAILED
            self._fail(e)

        self.loading = SUCCEEDED
        self.categories = categories
        return categories

    def create(self, name: str,
               subcategories: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        try:
            category = self.client.create_category(name, subcategories)
        except ApiError as e:
            self._fail(e)

        self.categories.append(category)
        return category

    def update(self, category_id: str, **fields) -> Dict[str, Any]:
        try:
            category = self.client.update_category(category_id, **fields)
        except ApiError as e:
            self._fail(e)

        for index, existing in enumerate(self.categories):
            if existing['id'] == category['id']:
                self.categories[index] = category
                break
        return category

    def delete(self, category_id: str) -> str:
        try:
            self.client.delete_category(category_id)
        except ApiError as e:
            self._fail(e)

        self.categories = [c for c in self.categories if c['id'] != category_id]
        return category_id

    def import_file(self, file_path: str) -> List[Dict[str, Any]]:
        try:
            imported = self.client.import_categories(file_path)
        except ApiError as e:
            self._fail(e)

        self.categories = self.categories + imported
        return imported

    def reset_error(self):
        self.error = None

    def find(self, category_id: str) -> Optional[Dict[str, Any]]:
        for category in self.categories:
            if category['id'] == category_id:
                return category
        return None

    def name_exists(self, name: str, exclude_id: Optional[str] = None) -> bool:
        """Case-insensitive name check against the cached list."""
        wanted = name.strip().lower()
        return any(
            c['name'].strip().lower() == wanted
            for c in self.categories
            if c['id'] != exclude_id
        )
