"""Field-by-field comparison between a family row and its directory entry"""
from typing import Any, Dict, List
import logging

from casework.models import Family, SEVERITY_MIN, SEVERITY_MAX
from casework.schemas import DirectoryEntry, FieldChange
from casework.services import contact_sync
from casework.services.normalizer import DataNormalizer

logger = logging.getLogger(__name__)

INT_FIELDS = {
    contact_sync.FIELD_ADULTS: "adult_count",
    contact_sync.FIELD_CHILDREN: "child_count",
}
BOOL_FIELDS = {
    contact_sync.FIELD_ZAKAT: "zakat_eligible",
    contact_sync.FIELD_SADAQA: "sadaqa_eligible",
    contact_sync.FIELD_CAN_TRAVEL: "can_travel",
}


def parse_entry_values(entry: DirectoryEntry) -> Dict[str, Any]:
    """
    Read typed family values out of a directory entry
    Custom fields that are absent from the entry are left out rather than defaulted
    """
    phones = entry.phone_numbers
    values = {
        "first_name": (entry.middle_name or "").strip(),
        "last_name": (entry.family_name or "").strip(),
        "phone": phones[0] if phones else "",
        "phone_secondary": phones[1] if len(phones) > 1 else "",
        "email": (entry.email or "").strip(),
        "address": "",
    }
    if entry.address:
        values["address"] = DataNormalizer.format_address_canonical(
            entry.address.street, entry.address.postal_code, entry.address.city
        )

    custom = entry.custom_fields
    if contact_sync.FIELD_SEVERITY in custom:
        ok, severity, error = DataNormalizer.parse_severity(custom[contact_sync.FIELD_SEVERITY])
        if ok:
            values["severity"] = severity
        else:
            logger.warning(f"Ignoring directory severity for '{entry.given_name}': {error}")
    for key, field in INT_FIELDS.items():
        if key in custom:
            values[field] = max(DataNormalizer.parse_int(custom[key]), 0)
    for key, field in BOOL_FIELDS.items():
        if key in custom:
            values[field] = DataNormalizer.parse_yes_no_token(custom[key])
    if contact_sync.FIELD_LANGUAGE in custom:
        values["language"] = DataNormalizer.normalize_language(custom[contact_sync.FIELD_LANGUAGE]).value

    return values


def detect_changes(family: Family, values: Dict[str, Any]) -> List[FieldChange]:
    """List the fields where the directory side differs; directory wins for each"""
    changes = []

    def record(field, old, new):
        changes.append(FieldChange(field=field, old_value=old, new_value=new))

    for field in ("first_name", "last_name"):
        new = values.get(field, "")
        old = getattr(family, field) or ""
        if new and new != old.strip():
            record(field, old, new)

    new_phone = values.get("phone", "")
    if new_phone and DataNormalizer.phone_key(new_phone) != DataNormalizer.phone_key(family.phone):
        record("phone", family.phone, DataNormalizer.normalize_phone(new_phone))

    new_secondary = values.get("phone_secondary", "")
    if DataNormalizer.phone_key(new_secondary) != DataNormalizer.phone_key(family.phone_secondary):
        record("phone_secondary", family.phone_secondary, DataNormalizer.normalize_phone(new_secondary))

    new_email = values.get("email", "")
    if new_email and new_email.lower() != (family.email or "").strip().lower():
        record("email", family.email, new_email)

    new_address = values.get("address", "")
    if new_address and new_address != (family.address or "").strip():
        record("address", family.address, new_address)

    typed = {
        "severity": family.severity or 0,
        "adult_count": family.adult_count or 0,
        "child_count": family.child_count or 0,
        "zakat_eligible": bool(family.zakat_eligible),
        "sadaqa_eligible": bool(family.sadaqa_eligible),
        "language": DataNormalizer.normalize_language(family.language).value,
        "can_travel": bool(family.can_travel),
    }
    for field, old in typed.items():
        if field in values and values[field] != old:
            record(field, getattr(family, field), values[field])

    return changes


def summarize_changes(changes: List[FieldChange]) -> str:
    return "; ".join(f"{c.field}: {c.old_value} → {c.new_value}" for c in changes)
