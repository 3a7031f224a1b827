"""HTTP client for the geographic partner API"""
from typing import Any, Callable, Dict, Optional
import json
import logging
import time

import requests

from casework.services.cache import CacheService
from casework.services.retry import retry_operation

logger = logging.getLogger(__name__)

CACHE_VERSION = "geo_v5"


class GeoApiClient:
    """
    Calls `GET {geo_api_url}?action=...` and returns the decoded JSON payload
    Failures come back as {"error": True, "message": ...} instead of raising
    """

    def __init__(self, settings, cache: CacheService, session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.base_url = settings.geo_api_url
        self.api_key = settings.geo_api_key
        self.timeout = settings.http_timeout_seconds
        self.attempts = settings.retry_attempts
        self.base_delay = settings.retry_base_delay_seconds
        self.cache = cache
        self.session = session or requests.Session()
        self.sleep = sleep

    @staticmethod
    def cache_key(action: str, params: Dict[str, Any]) -> str:
        return f"{CACHE_VERSION}_{action}_{json.dumps(params, sort_keys=True, ensure_ascii=False)}"

    def call(self, action: str, params: Optional[Dict[str, Any]] = None, use_cache: bool = True) -> Dict[str, Any]:
        params = params or {}
        key = self.cache_key(action, params)

        if use_cache:
            cached = self.cache.get_json(key)
            if cached is not None:
                return cached

        query = {"action": action, **params, "X-Api-Key": self.api_key}

        def send():
            return self.session.get(self.base_url, params=query, timeout=self.timeout)

        try:
            response = retry_operation(
                send,
                attempts=self.attempts,
                base_delay=self.base_delay,
                retry_on=(requests.RequestException,),
                sleep=self.sleep
            )
        except requests.RequestException as e:
            logger.error(f"Geo API {action} unreachable: {e}")
            return {"error": True, "message": f"Geo API unreachable: {e}"}

        if response.status_code != 200:
            logger.error(f"Geo API {action} returned HTTP {response.status_code}")
            return {
                "error": True,
                "status": response.status_code,
                "message": f"HTTP {response.status_code}: {response.text[:200]}"
            }

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Geo API {action} returned invalid JSON")
            return {"error": True, "message": "Invalid JSON from geo API"}

        if use_cache and not data.get("error"):
            self.cache.put_json(key, data, self.cache.very_long_ttl)

        return data

    def geocode(self, address: str, postal_code: str = "", city: str = "") -> Dict[str, Any]:
        return self.call("geocode", {"adresse": address, "codePostal": postal_code, "ville": city})

    def resolve_location(self, latitude: float, longitude: float, max_distance_km: int) -> Dict[str, Any]:
        return self.call("resolvelocation", {"lat": latitude, "lng": longitude, "maxDistance": max_distance_km})

    def get_quartier(self, unit_id: Any) -> Dict[str, Any]:
        return self.call("getquartier", {"id": str(unit_id)})

    def get_secteur(self, sector_id: Any) -> Dict[str, Any]:
        return self.call("getsecteur", {"id": str(sector_id)})

    def get_ville(self, city_id: Any) -> Dict[str, Any]:
        return self.call("getville", {"id": str(city_id)})

    def calculate_distance(self, from_lat: float, from_lng: float, to_lat: float, to_lng: float) -> Dict[str, Any]:
        return self.call("calculatedistance", {
            "fromLat": from_lat, "fromLng": from_lng, "toLat": to_lat, "toLng": to_lng
        })

    def ping(self) -> Dict[str, Any]:
        return self.call("ping", use_cache=False)
