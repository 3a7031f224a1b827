"""Read-side queries over validated families for the REST surface"""
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import re

from dateutil import parser as date_parser

from casework.errors import ValidationError
from casework.models import Family, FamilyStatus
from casework.schemas import FamilyAddressResponse, FamilyResponse
from casework.services.cache import CacheService
from casework.services.family_store import FamilyStore
from casework.services.location_service import LocationService
from casework.services.normalizer import DataNormalizer

logger = logging.getLogger(__name__)

COMMENT_DATE_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}(?: \d{2}:\d{2}(?::\d{2})?)?')
ORDER_KEYS = ("criticite", "lastUpdate", "distance")


def last_update_from_comments(comment_log: Optional[str]) -> Optional[datetime]:
    """Newest comments come first, so the first timestamp is the latest change"""
    match = COMMENT_DATE_PATTERN.search(comment_log or "")
    if not match:
        return None
    try:
        return date_parser.parse(match.group(0))
    except (ValueError, OverflowError):
        return None


class FamilyQueryService:
    def __init__(self, store: FamilyStore, location: LocationService, cache: CacheService):
        self.store = store
        self.location = location
        self.cache = cache

    def _cached(self, key: str, build: Callable[[], Any]) -> Any:
        cached = self.cache.get_json(key)
        if cached is not None:
            return cached
        value = build()
        self.cache.put_json(key, value, self.cache.short_ttl)
        return value

    @staticmethod
    def cache_key(action: str, **params) -> str:
        return f"api_{action}_{json.dumps(params, sort_keys=True, default=str)}"

    def validated(self, predicate: Callable[[Family], bool] = lambda f: True) -> List[Family]:
        return self.store.find_matching(lambda f: f.status == FamilyStatus.VALIDATED.value and predicate(f))

    def to_response(self, family: Family, include_hierarchy: bool = False) -> Dict[str, Any]:
        response = FamilyResponse.model_validate(family)
        updated = last_update_from_comments(family.comment_log)
        response.last_update = updated.isoformat() if updated else None
        if include_hierarchy and family.location_unit_id:
            hierarchy = self.location.get_location_hierarchy(family.location_unit_id)
            if hierarchy:
                response.sector_id = hierarchy.sector.id
                response.city_id = hierarchy.city.id
        return response.model_dump()

    def _listing(self, families: List[Family], include_hierarchy: bool = False) -> Dict[str, Any]:
        items = [self.to_response(f, include_hierarchy) for f in families]
        return {"count": len(items), "families": items}

    def all_families(self, order_by: Optional[str] = None, lat: Optional[float] = None, lng: Optional[float] = None,
                     include_hierarchy: bool = False, zakat_el_fitr: Optional[bool] = None,
                     sadaqa: Optional[bool] = None) -> Dict[str, Any]:
        keys = [k.strip() for k in (order_by or "").split(",") if k.strip()]
        unknown = [k for k in keys if k not in ORDER_KEYS]
        if unknown:
            raise ValidationError([f"Unknown orderBy value: {k}" for k in unknown])
        if "distance" in keys and (lat is None or lng is None):
            raise ValidationError(["lat and lng are required to order by distance"])

        def build():
            families = self.validated(lambda f: (
                (zakat_el_fitr is None or bool(f.zakat_eligible) == zakat_el_fitr)
                and (sadaqa is None or bool(f.sadaqa_eligible) == sadaqa)
            ))
            items = [self.to_response(f, include_hierarchy) for f in families]
            if "distance" in keys:
                for item in items:
                    item["distance_km"] = self._distance(item["address"], lat, lng)
            for key in reversed(keys):
                self._sort(items, key)
            return {
                "count": len(items),
                "orderBy": keys,
                "includeHierarchy": include_hierarchy,
                "filters": {"zakatElFitr": zakat_el_fitr, "sadaqa": sadaqa},
                "families": items,
            }

        return self._cached(
            self.cache_key("allfamilies", order_by=keys, lat=lat, lng=lng, hierarchy=include_hierarchy,
                           zakat=zakat_el_fitr, sadaqa=sadaqa),
            build
        )

    @staticmethod
    def _sort(items: List[Dict[str, Any]], key: str):
        if key == "criticite":
            items.sort(key=lambda i: i["severity"] or 0, reverse=True)
        elif key == "lastUpdate":
            items.sort(key=lambda i: i["last_update"] or "", reverse=True)
        elif key == "distance":
            items.sort(key=lambda i: (i["distance_km"] is None, i["distance_km"] or 0.0))

    def _distance(self, address: str, lat: float, lng: float) -> Optional[float]:
        coordinates = self.location.coordinates_for(address)
        if coordinates is None:
            return None
        return self.location.distance_km(lat, lng, coordinates[0], coordinates[1])

    def family_by_id(self, family_id: Any, include_hierarchy: bool = False) -> Optional[Dict[str, Any]]:
        family = self.store.find_by_id(family_id)
        if family is None or family.status != FamilyStatus.VALIDATED.value:
            return None
        return self.to_response(family, include_hierarchy)

    def family_address_by_id(self, family_id: Any) -> Optional[Dict[str, Any]]:
        family = self.store.find_by_id(family_id)
        if family is None or family.status != FamilyStatus.VALIDATED.value:
            return None
        parts = DataNormalizer.parse_address_components(family.address)
        return FamilyAddressResponse(
            id=family.id,
            address=family.address or "",
            street=parts["street"],
            postal_code=parts["postal_code"],
            city=parts["city"],
            location_unit_id=family.location_unit_id
        ).model_dump()

    def zakat_families(self) -> Dict[str, Any]:
        return self._cached(self.cache_key("familieszakatfitr"),
                            lambda: self._listing(self.validated(lambda f: bool(f.zakat_eligible))))

    def sadaqa_families(self) -> Dict[str, Any]:
        return self._cached(self.cache_key("familiessadaka"),
                            lambda: self._listing(self.validated(lambda f: bool(f.sadaqa_eligible))))

    def travelling_families(self) -> Dict[str, Any]:
        return self._cached(self.cache_key("familiessedeplace"),
                            lambda: self._listing(self.validated(lambda f: bool(f.can_travel))))

    def families_by_district(self, district_id: str) -> Dict[str, Any]:
        return self._cached(
            self.cache_key("familiesbyquartier", id=district_id),
            lambda: self._listing(self.validated(lambda f: str(f.location_unit_id or "") == str(district_id)))
        )

    def families_by_sector(self, sector_id: str) -> Dict[str, Any]:
        def in_sector(family):
            hierarchy = self.location.get_location_hierarchy(family.location_unit_id)
            return hierarchy is not None and hierarchy.sector.id == str(sector_id)

        return self._cached(self.cache_key("familiesbysecteur", id=sector_id),
                            lambda: self._listing(self.validated(in_sector), include_hierarchy=True))

    def families_by_city(self, city_id: str) -> Dict[str, Any]:
        def in_city(family):
            hierarchy = self.location.get_location_hierarchy(family.location_unit_id)
            return hierarchy is not None and hierarchy.city.id == str(city_id)

        return self._cached(self.cache_key("familiesbyville", id=city_id),
                            lambda: self._listing(self.validated(in_city), include_hierarchy=True))

    def families_by_severity(self, severity: int) -> Dict[str, Any]:
        return self._cached(self.cache_key("familiesbycriticite", severity=severity),
                            lambda: self._listing(self.validated(lambda f: (f.severity or 0) == severity)))
