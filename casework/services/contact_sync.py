"""Push direction: family record -> contact directory entry"""
from datetime import datetime
from typing import Any, List, Optional
import logging
import re

from casework.errors import ExternalServiceError
from casework.models import Family
from casework.schemas import DirectoryAddress, DirectoryEntry, SyncResult
from casework.services.cache import CacheService
from casework.services.directory_client import DirectoryClient
from casework.services.location_service import LocationService
from casework.services.normalizer import DataNormalizer

logger = logging.getLogger(__name__)

ENTRY_ID_PATTERN = re.compile(r'^(\d+)\s*-')

FIELD_ID = "ID"
FIELD_SEVERITY = "Criticité"
FIELD_ADULTS = "Adultes"
FIELD_CHILDREN = "Enfants"
FIELD_ZAKAT = "Zakat El Fitr"
FIELD_SADAQA = "Sadaqa"
FIELD_LANGUAGE = "Langue"
FIELD_CAN_TRAVEL = "Se Déplace"
FIELD_LAST_UPDATE = "Dernière mise à jour"


def parse_entry_id(given_name: Any) -> Optional[int]:
    match = ENTRY_ID_PATTERN.match(str(given_name or "").strip())
    return int(match.group(1)) if match else None


class ContactSyncService:
    """Creates, replaces and removes directory entries for validated families"""

    def __init__(self, settings, directory: DirectoryClient, location: LocationService, cache: CacheService):
        self.directory = directory
        self.location = location
        self.cache = cache
        self.main_group_name = settings.directory_main_group

    def get_or_create_group(self, name: str) -> str:
        cache_key = f"contact_group_{name}"
        cached = self.cache.get_json(cache_key)
        if cached:
            return cached

        groups = self.directory.list_groups()
        resource_name = groups.get(name) or self.directory.create_group(name)
        self.cache.put_json(cache_key, resource_name, self.cache.very_long_ttl)
        return resource_name

    def find_entry(self, family_id: int, entries: Optional[List[DirectoryEntry]] = None) -> Optional[DirectoryEntry]:
        """The directory has no search by custom key, so scan given names for the id prefix"""
        for entry in entries if entries is not None else self.directory.list_entries():
            if parse_entry_id(entry.given_name) == family_id:
                return entry
        return None

    def build_entry(self, family: Family) -> DirectoryEntry:
        language = DataNormalizer.normalize_language(family.language)

        phones = []
        for raw in (family.phone, family.phone_secondary):
            normalized = DataNormalizer.normalize_phone(raw)
            if normalized:
                phones.append(normalized)

        address = None
        if family.address:
            parts = DataNormalizer.parse_address_components(family.address)
            address = DirectoryAddress(
                street=parts["street"],
                postal_code=parts["postal_code"],
                city=parts["city"],
                country=parts["country"],
                formatted=DataNormalizer.format_address_canonical(parts["street"], parts["postal_code"], parts["city"])
            )

        memberships = [self.get_or_create_group(self.main_group_name)]
        group_name = self.location.location_group_name(family.location_unit_id)
        if group_name:
            memberships.append(self.get_or_create_group(group_name))

        return DirectoryEntry(
            given_name=f"{family.id} -",
            middle_name=family.first_name or "",
            family_name=family.last_name or "",
            phone_numbers=phones,
            email=family.email if DataNormalizer.is_valid_email(family.email) else None,
            address=address,
            custom_fields={
                FIELD_ID: str(family.id),
                FIELD_SEVERITY: str(family.severity or 0),
                FIELD_ADULTS: str(family.adult_count or 0),
                FIELD_CHILDREN: str(family.child_count or 0),
                FIELD_ZAKAT: DataNormalizer.yes_no_label(bool(family.zakat_eligible), language),
                FIELD_SADAQA: DataNormalizer.yes_no_label(bool(family.sadaqa_eligible), language),
                FIELD_LANGUAGE: language.value,
                FIELD_CAN_TRAVEL: DataNormalizer.yes_no_label(bool(family.can_travel), language),
                FIELD_LAST_UPDATE: datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            },
            memberships=memberships
        )

    def sync_family_contact(self, family: Family) -> SyncResult:
        """Replace the family's directory entry: delete the old one, create a fresh one"""
        try:
            entry = self.build_entry(family)
            existing = self.find_entry(family.id)
            if existing and existing.resource_name:
                self.directory.delete_entry(existing.resource_name)
                logger.info(f"Deleted directory entry {existing.resource_name} for family {family.id}")

            created = self.directory.create_entry(entry)
            logger.info(f"Directory entry for family {family.id} synced")
            return SyncResult(success=True, resource_name=created.resource_name)

        except ExternalServiceError as e:
            logger.error(f"Directory sync failed for family {family.id}: {e}")
            return SyncResult(success=False, error=str(e))

    def delete_contact_for_family(self, family_id: int) -> SyncResult:
        try:
            existing = self.find_entry(family_id)
            if existing is None or not existing.resource_name:
                return SyncResult(success=True)
            self.directory.delete_entry(existing.resource_name)
            logger.info(f"Deleted directory entry for archived family {family_id}")
            return SyncResult(success=True, resource_name=existing.resource_name)

        except ExternalServiceError as e:
            logger.error(f"Directory delete failed for family {family_id}: {e}")
            return SyncResult(success=False, error=str(e))
