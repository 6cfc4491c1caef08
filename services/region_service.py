"""
Region Directory - read-only regional lookup from static JSON files.

Each `<name>.json` file in the data directory holds one region:

    {"region": "North", "cities": ["Alpha", "Beta"]}

Files are read once when the directory is loaded; lookups are served
from memory.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_REGIONS_DIR = 'data/regions'


def check_region(document: Any) -> Dict[str, Any]:
    """
    Ensure a decoded file has the {region, cities} shape.

    Raises:
        ValueError: If the region name or city list is missing or mistyped
    """
    if not isinstance(document, dict):
        raise ValueError("region file must hold a JSON object")
    if not isinstance(document.get('region'), str):
        raise ValueError("'region' must be a string")

    cities = document.get('cities', [])
    if not isinstance(cities, list) or not all(isinstance(c, str) for c in cities):
        raise ValueError("'cities' must be a list of strings")
    return document


class RegionDirectory:
    """In-memory index of region documents keyed by lower-cased file stem."""

    def __init__(self, regions: Optional[Dict[str, Dict[str, Any]]] = None):
        self._regions = regions or {}

    @classmethod
    def load(cls, data_dir: str = DEFAULT_REGIONS_DIR) -> 'RegionDirectory':
        """
        Load every *.json file in a directory.

        A missing directory gives an empty directory. Files that cannot be
        read, parsed or shaped as {region, cities} are logged and skipped.
        """
        path = Path(data_dir)

        if not path.is_dir():
            logger.error(f"Regions directory not found: {path}")
            return cls()

        regions = {}
        for file_path in sorted(path.glob('*.json')):
            try:
                with open(file_path, encoding='utf-8') as f:
                    regions[file_path.stem.lower()] = check_region(json.load(f))
            except (OSError, ValueError) as e:
                logger.error(f"Error reading region file {file_path.name}: {e}")

        logger.info(f"Loaded {len(regions)} regions from {path}")
        return cls(regions)

    def all(self) -> List[Dict[str, Any]]:
        """Return all regions in file-name order."""
        return list(self._regions.values())

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        """Look up a region by name, case-insensitively."""
        return self._regions.get(name.lower())

    def __len__(self):
        return len(self._regions)
