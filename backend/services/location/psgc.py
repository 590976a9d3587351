"""
PSGC reference lookups

Region -> province -> city -> barangay filtering over the Philippine Standard
Geographic Code tables shipped in ./data. Tables are loaded once per process
and never mutated.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

REGIONS_FILE = "psgc_regions_1q23.json"
PROVINCES_FILE = "psgc_provinces_1q23.json"
CITIES_FILE = "psgc_cities_1q23.json"
BARANGAYS_FILE = "psgc_barangays_1q23.json"


@lru_cache(maxsize=None)
def _load(filename: str) -> tuple:
    path = DATA_DIR / filename
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)
    logger.debug(f"Loaded {len(rows)} PSGC rows from {filename}")
    return tuple(rows)


def get_regions() -> list:
    return list(_load(REGIONS_FILE))


def get_provinces_by_region(region_id: int) -> list:
    return [p for p in _load(PROVINCES_FILE) if p["reg_id"] == region_id]


def get_cities_by_province(province_id: int) -> list:
    return [c for c in _load(CITIES_FILE) if c["prov_id"] == province_id]


def get_barangays_by_city(city_id: int) -> list:
    return [b for b in _load(BARANGAYS_FILE) if b["city_id"] == city_id]


def _find(filename: str, id_field: str, value: int) -> Optional[dict]:
    for row in _load(filename):
        if row[id_field] == value:
            return row
    return None


def get_region_by_id(region_id: int) -> Optional[dict]:
    return _find(REGIONS_FILE, "reg_id", region_id)


def get_province_by_id(province_id: int) -> Optional[dict]:
    return _find(PROVINCES_FILE, "prov_id", province_id)


def get_city_by_id(city_id: int) -> Optional[dict]:
    return _find(CITIES_FILE, "city_id", city_id)


def get_barangay_by_id(barangay_id: int) -> Optional[dict]:
    return _find(BARANGAYS_FILE, "brgy_id", barangay_id)
