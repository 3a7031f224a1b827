"""Duplicate detection for incoming family submissions"""
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Optional
import logging

from casework.schemas import DuplicateMatch
from casework.services.cache import CacheService
from casework.services.family_store import FamilyStore
from casework.services.matcher import FamilyMatcher

logger = logging.getLogger(__name__)


class Deduplicator:
    """Finds an existing family for a submission, behind a short-lived cache"""

    def __init__(self, store: FamilyStore, cache: CacheService):
        self.store = store
        self.cache = cache
        self.matcher = FamilyMatcher()

    def find_duplicate(self, phone: Any, last_name: Any, email: Optional[str] = None) -> DuplicateMatch:
        """
        Look for an existing family by phone + last name, or by email alone
        Returns exists=False when the table cannot be read
        """
        cache_key = self.matcher.cache_key(phone, last_name)
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return DuplicateMatch(**cached)

        phone_key, name_key, email_key = self.matcher.match_keys(phone, last_name, email)

        try:
            families = self.store.all()
        except SQLAlchemyError as e:
            logger.warning(f"Duplicate check skipped, family table unavailable: {e}")
            return DuplicateMatch(exists=False)

        result = DuplicateMatch(exists=False)
        for position, family in enumerate(families, start=1):
            if self.matcher.is_match(family, phone_key, name_key, email_key):
                result = DuplicateMatch(
                    exists=True,
                    family_id=family.id,
                    row_ref=position,
                    data=family.to_dict()
                )
                logger.info(f"Duplicate found: family {family.id}")
                break

        ttl = self.cache.medium_ttl if result.exists else self.cache.short_ttl
        self.cache.put_json(cache_key, result.model_dump(), ttl)
        return result

    def invalidate(self, phone: Any, last_name: Any):
        """Forget the cached lookup once a row for this key has been written"""
        self.cache.remove(self.matcher.cache_key(phone, last_name))
