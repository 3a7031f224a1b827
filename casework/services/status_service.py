"""Side effects of edits to a family's status and severity"""
from typing import Any, List
import logging

from casework.errors import ValidationError
from casework.models import EDITABLE_COLUMNS, Family, FamilyStatus
from casework.schemas import EditOutcome
from casework.services.contact_sync import ContactSyncService
from casework.services.documents import DocumentOrganizer
from casework.services.family_store import FamilyStore
from casework.services.location_service import LocationService
from casework.services.normalizer import DataNormalizer
from casework.services.validator import coerce_field_edit

logger = logging.getLogger(__name__)

STATUS_VALUES = {status.value for status in FamilyStatus}


class StatusService:
    """
    Reacts to a field edit the way a sheet edit trigger would:
    the new value is written first, then checked, and reverted when not allowed
    """

    def __init__(self, store: FamilyStore, location: LocationService, documents: DocumentOrganizer,
                 contacts: ContactSyncService):
        self.store = store
        self.location = location
        self.documents = documents
        self.contacts = contacts

    def handle_field_edit(self, family: Family, field: str, new_value: Any, old_value: Any = None) -> EditOutcome:
        if field not in EDITABLE_COLUMNS:
            raise ValidationError([f"Unknown or read-only field: {field}"])
        if old_value is None:
            old_value = getattr(family, field)

        if field == "severity":
            return self._on_severity_edit(family, new_value, old_value)

        if field == "status" and new_value not in STATUS_VALUES:
            return EditOutcome(family_id=family.id, field=field, accepted=False, value=old_value,
                               alert=f"Unknown status '{new_value}'")

        if field != "status":
            value = coerce_field_edit(field, new_value)
            self.store.set_field(family, field, value)
            return EditOutcome(family_id=family.id, field=field, accepted=True, value=value)

        self.store.set_field(family, field, new_value)

        if new_value == FamilyStatus.VALIDATED.value:
            return self.on_edit_to_validated(family, old_value)
        if new_value == FamilyStatus.ARCHIVED.value:
            return self.on_edit_to_archived(family)
        return EditOutcome(family_id=family.id, field=field, accepted=True, value=new_value)

    def validation_errors(self, family: Family) -> List[str]:
        errors = []
        ok, severity, _ = DataNormalizer.parse_severity(family.severity)
        if not ok or severity < 1:
            errors.append(f"Severity must be between 1 and 5 (current: {family.severity or 0})")
        unit_ok, unit_error = self.location.validate_unit(family.location_unit_id)
        if not unit_ok:
            errors.append(unit_error)
        return errors

    def on_edit_to_validated(self, family: Family, old_status: Any) -> EditOutcome:
        errors = self.validation_errors(family)
        if errors:
            previous = old_status or FamilyStatus.IN_PROGRESS.value
            self.store.update_fields(
                family,
                {"status": previous},
                comment=("❌", f"Validation refused: {'; '.join(errors)}")
            )
            alert = f"Family {family.id} cannot be validated:\n" + "\n".join(f"- {e}" for e in errors)
            logger.warning(f"Validation of family {family.id} vetoed: {errors}")
            return EditOutcome(family_id=family.id, field="status", accepted=False, value=previous, alert=alert)

        identity_refs, aid_refs = self.documents.organize(family.id, family.identity_doc_refs, family.aid_doc_refs)
        self.store.update_fields(family, {"identity_doc_refs": identity_refs, "aid_doc_refs": aid_refs})

        result = self.contacts.sync_family_contact(family)
        if result.success:
            self.store.append_comment(family, "✅", f"Validated (severity {family.severity}), contact synced")
        else:
            self.store.append_comment(family, "⚠️", f"Validated, contact sync failed: {result.error}")

        return EditOutcome(
            family_id=family.id,
            field="status",
            accepted=True,
            value=family.status,
            sync_error=result.error
        )

    def on_edit_to_archived(self, family: Family) -> EditOutcome:
        result = self.contacts.delete_contact_for_family(family.id)
        if result.success:
            self.store.append_comment(family, "📦", "Archived, contact removed")
        else:
            self.store.append_comment(family, "⚠️", f"Archived, contact removal failed: {result.error}")
        return EditOutcome(family_id=family.id, field="status", accepted=True, value=family.status,
                           sync_error=result.error)

    def _on_severity_edit(self, family: Family, new_value: Any, old_value: Any) -> EditOutcome:
        ok, severity, error = DataNormalizer.parse_severity(new_value)
        if not ok:
            self.store.update_fields(family, {"severity": old_value or 0}, comment=("❌", error))
            return EditOutcome(family_id=family.id, field="severity", accepted=False, value=old_value or 0,
                               alert=error)
        self.store.set_field(family, "severity", severity)
        return EditOutcome(family_id=family.id, field="severity", accepted=True, value=severity)
