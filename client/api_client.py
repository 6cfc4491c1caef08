"""
HTTP client for the category manager API.

Every failure, whether the server answered with an error payload or the
request never completed, is raised as ApiError carrying one display
string.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'http://localhost:8000'
DEFAULT_API_PREFIX = '/api'
XLSX_MIME_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


class ApiError(Exception):
    """A failed API call, reduced to a single message."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CategoryApiClient:
    """Thin wrapper over the categories and regions endpoints."""

    def __init__(self, base_url: str = DEFAULT_API_URL, session=None,
                 timeout: int = 30, api_prefix: str = DEFAULT_API_PREFIX):
        """
        Args:
            base_url: Server root, e.g. http://localhost:8000
            session: requests.Session or any object with the same request()
                     signature (default: a new requests.Session)
            timeout: Per-request timeout in seconds
            api_prefix: Path prefix the API routers are mounted under
        """
        self.base_url = base_url.rstrip('/')
        self.api_prefix = api_prefix
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{self.api_prefix}{path}"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body."""
        url = self._url(path)
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error on {method} {url}: {e}")
            raise ApiError(f"Network error: {e}")

        if not 200 <= response.status_code < 300:
            raise ApiError(self._error_message(response), response.status_code)

        return response.json()

    @staticmethod
    def _error_message(response) -> str:
        """Extract the server's error string, falling back to the status."""
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and payload.get('error'):
            return payload['error']
        return f"Request failed with status code {response.status_code}"

    # Categories

    def fetch_categories(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/categories')

    def create_category(self, name: str,
                        subcategories: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {'name': name}
        if subcategories is not None:
            body['subcategories'] = subcategories
        return self._request('POST', '/categories', json=body)

    def update_category(self, category_id: str, **fields) -> Dict[str, Any]:
        return self._request('PUT', '/categories', json={'categoryId': category_id, **fields})

    def delete_category(self, category_id: str) -> Dict[str, Any]:
        return self._request('DELETE', '/categories', json={'categoryId': category_id})

    def import_categories(self, file_path: str) -> List[Dict[str, Any]]:
        """Upload a workbook; returns the created categories."""
        path = Path(file_path)
        with open(path, 'rb') as f:
            files = {'file': (path.name, f, XLSX_MIME_TYPE)}
            return self._request('POST', '/categories', files=files)

    # Regions

    def list_regions(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/regions')['data']

    def get_region(self, name: str) -> Dict[str, Any]:
        return self._request('GET', f'/regions/{name}')['data']
