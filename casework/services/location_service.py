"""Address to location unit resolution and hierarchy lookups"""
from typing import Any, Dict, Optional, Tuple
import logging

from casework.schemas import LocationHierarchy, LocationResolution, LocationUnit
from casework.services.cache import CacheService
from casework.services.geo_client import GeoApiClient
from casework.services.normalizer import DataNormalizer

logger = logging.getLogger(__name__)


def _unit(payload: Dict[str, Any], key: str, parent_key: Optional[str] = None) -> Optional[LocationUnit]:
    data = payload.get(key) if isinstance(payload.get(key), dict) else None
    if not data or data.get("id") in (None, ""):
        return None
    return LocationUnit(
        id=str(data["id"]),
        name=data.get("nom", ""),
        parent_id=str(data[parent_key]) if parent_key and data.get(parent_key) is not None else None,
        postal_code=str(data["codePostal"]) if data.get("codePostal") is not None else None,
    )


class LocationService:
    """Turns addresses into district ids and districts into sector/city hierarchies"""

    def __init__(self, settings, geo: GeoApiClient, cache: CacheService):
        self.geo = geo
        self.cache = cache
        self.max_distance_km = settings.geo_max_distance_km

    def resolve_address_to_unit(self, street: Any, postal_code: Any, city: Any) -> LocationResolution:
        full_address = DataNormalizer.format_address_for_geocoding(street, postal_code, city)
        logger.info(f"Resolving address: {full_address}")

        geocoded = self.geo.geocode(full_address, str(postal_code or ""), str(city or ""))
        if geocoded.get("error"):
            return LocationResolution(is_valid=False, error=f"Geocoding failed: {geocoded.get('message', 'unknown error')}")
        if not geocoded.get("isValid"):
            return LocationResolution(is_valid=False, error=f"Address could not be located: {full_address}")

        coordinates = geocoded.get("coordinates") or {}
        latitude = coordinates.get("latitude")
        longitude = coordinates.get("longitude")
        if latitude is None or longitude is None:
            return LocationResolution(is_valid=False, error="Geocoding returned no coordinates")

        resolution = LocationResolution(
            is_valid=True,
            latitude=latitude,
            longitude=longitude,
            formatted_address=geocoded.get("formattedAddress")
        )

        located = self.geo.resolve_location(latitude, longitude, self.max_distance_km)
        unit = None if located.get("error") else _unit(located, "quartier")
        if unit is None:
            resolution.warning = (
                f"No district found within {self.max_distance_km} km of {full_address}"
                if not located.get("error") else f"District lookup failed: {located.get('message')}"
            )
            logger.warning(resolution.warning)
            return resolution

        resolution.location_unit_id = unit.id
        resolution.location_unit_name = unit.name
        return resolution

    def get_district(self, unit_id: Any) -> Optional[LocationUnit]:
        if unit_id in (None, ""):
            return None
        return _unit(self.geo.get_quartier(unit_id), "quartier", "idSecteur")

    def validate_unit(self, unit_id: Any) -> Tuple[bool, Optional[str]]:
        """A unit is valid when the partner API still knows it"""
        if unit_id in (None, ""):
            return False, "No district assigned"
        response = self.geo.get_quartier(unit_id)
        if response.get("error"):
            return False, f"District {unit_id} is invalid: {response.get('message', 'unknown error')}"
        if _unit(response, "quartier") is None:
            return False, f"District {unit_id} does not exist"
        return True, None

    def get_location_hierarchy(self, unit_id: Any) -> Optional[LocationHierarchy]:
        if unit_id in (None, ""):
            return None

        cache_key = f"hierarchy_{unit_id}"
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return LocationHierarchy(**cached)

        district = self.get_district(unit_id)
        if district is None or not district.parent_id:
            return None
        sector = _unit(self.geo.get_secteur(district.parent_id), "secteur", "idVille")
        if sector is None or not sector.parent_id:
            return None
        city = _unit(self.geo.get_ville(sector.parent_id), "ville")
        if city is None:
            return None

        hierarchy = LocationHierarchy(district=district, sector=sector, city=city)
        self.cache.put_json(cache_key, hierarchy.model_dump(), self.cache.very_long_ttl)
        return hierarchy

    def location_group_name(self, unit_id: Any) -> Optional[str]:
        hierarchy = self.get_location_hierarchy(unit_id)
        if hierarchy is None:
            return None
        return f"{hierarchy.city.name} - {hierarchy.sector.name}"

    def coordinates_for(self, address: str) -> Optional[Tuple[float, float]]:
        """Geocode a stored canonical address"""
        parts = DataNormalizer.parse_address_components(address)
        geocoded = self.geo.geocode(
            DataNormalizer.format_address_for_geocoding(parts["street"], parts["postal_code"], parts["city"]),
            parts["postal_code"],
            parts["city"]
        )
        coordinates = geocoded.get("coordinates") or {}
        if geocoded.get("error") or coordinates.get("latitude") is None:
            return None
        return coordinates["latitude"], coordinates["longitude"]

    def distance_km(self, from_lat: float, from_lng: float, to_lat: float, to_lng: float) -> Optional[float]:
        response = self.geo.calculate_distance(from_lat, from_lng, to_lat, to_lng)
        if response.get("error") or response.get("distance") is None:
            return None
        return float(response["distance"])
