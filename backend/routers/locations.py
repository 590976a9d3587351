"""
Locations Router - PSGC region / province / city / barangay dropdowns
"""

from fastapi import APIRouter, HTTPException

from services.location.psgc import (
    get_regions,
    get_provinces_by_region,
    get_cities_by_province,
    get_barangays_by_city,
    get_region_by_id,
    get_province_by_id,
    get_city_by_id,
)

router = APIRouter()


@router.get("/regions")
async def list_regions():
    return get_regions()


@router.get("/regions/{region_id}/provinces")
async def list_provinces(region_id: int):
    if not get_region_by_id(region_id):
        raise HTTPException(status_code=404, detail="Region not found")
    return get_provinces_by_region(region_id)


@router.get("/provinces/{province_id}/cities")
async def list_cities(province_id: int):
    if not get_province_by_id(province_id):
        raise HTTPException(status_code=404, detail="Province not found")
    return get_cities_by_province(province_id)


@router.get("/cities/{city_id}/barangays")
async def list_barangays(city_id: int):
    if not get_city_by_id(city_id):
        raise HTTPException(status_code=404, detail="City not found")
    return get_barangays_by_city(city_id)
