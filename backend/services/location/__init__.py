"""
Location Services Module

PSGC (Philippine Standard Geographic Code) reference lookups used by the
registration / profile location dropdowns and the health check.

Usage:
    from services.location.psgc import get_regions, get_provinces_by_region
"""
