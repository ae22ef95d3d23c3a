"""
TBO Hotel Proxy - Admin Sync Routes

Pull static data from TBO into the cache store on demand.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from hotelproxy.api.deps import get_services
from hotelproxy.core.container import ServiceContainer
from hotelproxy.core.errors import TBOApiError
from hotelproxy.models.hotel_models import CitiesRequest, HotelDetailsRequest, HotelsRequest

router = APIRouter(prefix="/sync", tags=["Admin Sync"])
logger = logging.getLogger("HotelProxy-SyncRoutes")


def _sync_failed(label: str, error: Exception) -> JSONResponse:
    logger.error(f"❌ {label}: {error}")
    status = error.status_code if isinstance(error, TBOApiError) else 500
    return JSONResponse(
        status_code=status,
        content={"success": False, "error": label, "message": str(error)},
    )


def _nothing_received(what: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": f"No {what} received from TBO"},
    )


@router.post("/countries")
async def sync_countries(services: ServiceContainer = Depends(get_services)):
    logger.info("Admin: Syncing countries from TBO")
    try:
        data = await services.tbo.country_list()
        countries = data.get("CountryList")
        if not countries:
            return _nothing_received("country data")
        await services.static_data.save_countries(countries)
    except Exception as e:
        return _sync_failed("Failed to sync countries", e)

    return {"success": True, "message": "Countries synced successfully", "count": len(countries)}


@router.post("/cities")
async def sync_cities(request: CitiesRequest, services: ServiceContainer = Depends(get_services)):
    logger.info(f"Admin: Syncing cities for {request.country_code}")
    try:
        data = await services.tbo.city_list(request.country_code)
        cities = data.get("CityList")
        if not cities:
            return _nothing_received("city data")
        await services.static_data.save_cities(request.country_code, cities)
    except Exception as e:
        return _sync_failed("Failed to sync cities", e)

    return {
        "success": True,
        "message": f"Cities for {request.country_code} synced successfully",
        "count": len(cities),
    }


@router.post("/hotels")
async def sync_hotels(request: HotelsRequest, services: ServiceContainer = Depends(get_services)):
    logger.info(f"Admin: Syncing hotels for city {request.city_code}")
    try:
        data = await services.tbo.hotel_code_list(request.city_code)
        hotels = data.get("Hotels")
        if not hotels:
            return _nothing_received("hotel data")
        await services.static_data.save_hotels(request.city_code, hotels)
    except Exception as e:
        return _sync_failed("Failed to sync hotels", e)

    return {
        "success": True,
        "message": f"Hotels for city {request.city_code} synced successfully",
        "count": len(hotels),
    }


@router.post("/hotel-details")
async def sync_hotel_details(request: HotelDetailsRequest, services: ServiceContainer = Depends(get_services)):
    logger.info(f"Admin: Syncing hotel details for {request.hotel_code}")
    try:
        data = await services.tbo.hotel_details(request.hotel_code, language=request.language)
        hotels = data.get("HotelDetails")
        if not hotels:
            return _nothing_received("hotel details")
        for hotel in hotels:
            await services.static_data.save_hotel_details(str(hotel.get("HotelCode")), hotel)
    except Exception as e:
        return _sync_failed("Failed to sync hotel details", e)

    return {"success": True, "message": "Hotel details synced successfully", "count": len(hotels)}


@router.get("/cache-status")
async def get_cache_status(services: ServiceContainer = Depends(get_services)):
    try:
        metadata = await services.static_data.get_cache_metadata()
    except Exception as e:
        return _sync_failed("Failed to get cache status", e)
    return {"success": True, "cache": metadata}


@router.delete("/clear-cache")
async def clear_cache(services: ServiceContainer = Depends(get_services)):
    try:
        removed = await services.static_data.clear_all_cache()
    except Exception as e:
        return _sync_failed("Failed to clear cache", e)
    return {"success": True, "message": "All cache cleared successfully", "removed": removed}
