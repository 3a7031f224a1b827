"""Ingestion engine: turns form submissions into created, merged or updated family rows"""
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from casework.errors import NotFoundError, ValidationError
from casework.models import Family, FamilyStatus, Language
from casework.schemas import FormSubmission, IngestionOutcome
from casework.services.contact_sync import ContactSyncService
from casework.services.deduplicator import Deduplicator
from casework.services.documents import DocumentOrganizer
from casework.services.family_store import FamilyStore, coerce_id
from casework.services.field_map import UPDATE_KEYWORDS
from casework.services.location_service import LocationService
from casework.services.normalizer import DataNormalizer
from casework.services.notifier import AdminNotifier
from casework.services.validator import (
    is_blank,
    parse_count,
    validate_change_set,
    validate_household,
    validate_required_fields,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("last_name", "first_name", "circumstance", "feeling", "specifics")
BOOL_FIELDS = ("zakat_eligible", "sadaqa_eligible", "can_travel")
ADDRESS_FIELDS = ("address", "postal_code", "city")

NEW_FAMILY_DEFAULTS = {
    "zakat_eligible": False,
    "sadaqa_eligible": False,
    "can_travel": False,
    "adult_count": 0,
    "child_count": 0,
    "email": "",
    "phone_secondary": "",
    "identity_doc_refs": "",
    "aid_doc_refs": "",
    "circumstance": "",
    "feeling": "",
    "specifics": "",
    "severity": 0,
}


class SubmissionKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"


def build_form(fields: Dict[str, Any]) -> FormSubmission:
    """Accept either raw question headers or canonical field names"""
    parsed = DataNormalizer.parse_form_response(fields)
    for key, value in fields.items():
        if key in FormSubmission.model_fields and key not in parsed:
            parsed[key] = value
    return FormSubmission(**parsed)


def classify_submission(form: FormSubmission, origin: Optional[str]) -> SubmissionKind:
    if not is_blank(form.family_id):
        return SubmissionKind.UPDATE
    origin_lower = (origin or "").lower()
    if any(keyword in origin_lower for keyword in UPDATE_KEYWORDS):
        return SubmissionKind.UPDATE
    return SubmissionKind.CREATE


class IngestionEngine:
    """Classifies, validates, locates and writes family submissions"""

    def __init__(self, store: FamilyStore, deduplicator: Deduplicator, location: LocationService,
                 documents: DocumentOrganizer, contacts: ContactSyncService, notifier: AdminNotifier):
        self.store = store
        self.deduplicator = deduplicator
        self.location = location
        self.documents = documents
        self.contacts = contacts
        self.notifier = notifier

    def process_submission(self, answers: Dict[str, Any], origin: str = "") -> IngestionOutcome:
        """Entry point for a form submission trigger"""
        try:
            form = build_form(answers)

            if DataNormalizer.is_consent_refused(form.personal_data_protection):
                logger.info("Submission ignored: personal data consent refused")
                return IngestionOutcome(action="ignored", message="Consent refused")

            if classify_submission(form, origin) == SubmissionKind.UPDATE:
                family_id = coerce_id(form.family_id)
                if family_id is None:
                    return IngestionOutcome(action="rejected", errors=["A family id is required for updates"])
                return self.process_update(family_id, form)

            language = DataNormalizer.detect_language_from_origin(origin)
            if not is_blank(form.language):
                language = DataNormalizer.normalize_language(form.language)
            return self.process_insert(form, language)

        except Exception as e:
            logger.exception(f"Unexpected error while processing submission from '{origin}'")
            self.store.db.rollback()
            self.notifier.notify("Submission processing error", f"Origin: {origin}\nError: {e}")
            return IngestionOutcome(action="failed", message="The submission could not be processed")

    def submitted_fields(self, form: FormSubmission) -> Dict[str, Any]:
        """Normalized values for every non-blank submitted field, address excluded"""
        fields = {}
        for field in TEXT_FIELDS:
            value = getattr(form, field)
            if not is_blank(value):
                fields[field] = DataNormalizer.clean_text(value) if field in ("last_name", "first_name") else str(value).strip()
        for field in ("phone", "phone_secondary"):
            value = getattr(form, field)
            if not is_blank(value):
                fields[field] = DataNormalizer.normalize_phone(value)
        if not is_blank(form.email):
            fields["email"] = form.email.strip()
        for field in ("adult_count", "child_count"):
            value = getattr(form, field)
            if not is_blank(value):
                count, _ = parse_count(value, field)
                fields[field] = count if count is not None else 0
        for field in BOOL_FIELDS:
            value = getattr(form, field)
            if not is_blank(value):
                fields[field] = DataNormalizer.parse_yes_no_token(value)
        if not is_blank(form.severity):
            ok, severity, _ = DataNormalizer.parse_severity(form.severity)
            if ok:
                fields["severity"] = severity
        if not is_blank(form.language):
            fields["language"] = DataNormalizer.normalize_language(form.language).value
        return fields

    @staticmethod
    def canonical_address(form: FormSubmission) -> str:
        return DataNormalizer.format_address_canonical(form.address, form.postal_code, form.city)

    def document_refs(self, form: FormSubmission) -> Dict[str, str]:
        refs = {}
        identity_ids = DataNormalizer.extract_file_ids(form.identity_doc)
        aid_ids = [
            file_id
            for doc in (form.aid_doc, form.aid_doc_optional, form.resource_doc)
            for file_id in DataNormalizer.extract_file_ids(doc)
        ]
        if identity_ids:
            refs["identity_doc_refs"] = DataNormalizer.format_document_links(identity_ids)
        if aid_ids:
            refs["aid_doc_refs"] = DataNormalizer.format_document_links(aid_ids)
        return refs

    def process_insert(self, form: FormSubmission, language: Language) -> IngestionOutcome:
        fields = {
            **NEW_FAMILY_DEFAULTS,
            "language": language.value,
            **self.submitted_fields(form),
            "address": self.canonical_address(form),
        }
        fields["severity"] = 0
        fields.setdefault("last_name", "")
        fields.setdefault("first_name", "")
        fields.setdefault("phone", "")

        errors = validate_required_fields(form)
        if errors:
            return self._reject(fields, errors)

        resolution = self.location.resolve_address_to_unit(form.address, form.postal_code, form.city)
        if not resolution.is_valid:
            return self._reject(fields, [resolution.error or "Address could not be resolved"])
        fields["location_unit_id"] = resolution.location_unit_id
        warnings = [resolution.warning] if resolution.warning else []

        doc_errors = self.documents.validate_documents(
            form.identity_doc, form.aid_doc, form.aid_doc_optional, form.resource_doc
        )
        if doc_errors:
            return self._reject(fields, doc_errors)
        fields.update(self.document_refs(form))

        duplicate = self.deduplicator.find_duplicate(form.phone, form.last_name, form.email)
        if duplicate.exists:
            existing = self.store.find_by_id(duplicate.family_id)
            if existing is not None:
                return self._merge_duplicate(existing, fields, form, warnings)
            self.deduplicator.invalidate(form.phone, form.last_name)

        message = "Created from form submission"
        if warnings:
            message += f" (warning: {'; '.join(warnings)})"
        family = self.store.create_family(
            {**fields, "status": FamilyStatus.IN_PROGRESS.value},
            comment=("➕", message)
        )
        self.deduplicator.invalidate(form.phone, form.last_name)

        self.notifier.notify(
            f"New family {family.id}",
            f"{family.first_name} {family.last_name}\n{family.address}\nDistrict: {family.location_unit_id or 'unknown'}"
        )
        return IngestionOutcome(action="created", family_id=family.id, warnings=warnings)

    def _reject(self, fields: Dict[str, Any], errors: List[str]) -> IngestionOutcome:
        family = self.store.create_family(
            {**fields, "status": FamilyStatus.REJECTED.value, "severity": 0},
            comment=("❌", f"Rejected: {'; '.join(errors)}")
        )
        logger.warning(f"Family {family.id} rejected: {errors}")
        self.notifier.notify(f"Family {family.id} rejected", "\n".join(errors))
        return IngestionOutcome(action="rejected", family_id=family.id, errors=errors)

    def _merge_duplicate(self, family: Family, fields: Dict[str, Any], form: FormSubmission,
                         warnings: List[str]) -> IngestionOutcome:
        """A resubmission of a known family: overwrite what changed and send it back to review"""
        changes = {
            field: value
            for field, value in fields.items()
            if field in self._merge_candidates(form) and not is_blank(value) and value != getattr(family, field)
        }
        if "address" in changes or (fields.get("location_unit_id") and fields["location_unit_id"] != family.location_unit_id):
            changes["location_unit_id"] = fields.get("location_unit_id")
        changes["status"] = FamilyStatus.IN_PROGRESS.value

        changed = sorted(field for field in changes if field != "status")
        self.store.update_fields(
            family,
            changes,
            comment=("🔁", f"Duplicate submission merged, back to review. Changed: {', '.join(changed) or 'none'}")
        )
        self.deduplicator.invalidate(form.phone, form.last_name)
        logger.info(f"Duplicate submission merged into family {family.id}: {changed}")

        self.notifier.notify(
            f"Duplicate submission for family {family.id}",
            f"{family.first_name} {family.last_name}\nChanged fields: {', '.join(changed) or 'none'}"
        )
        return IngestionOutcome(action="merged", family_id=family.id, warnings=warnings)

    def _merge_candidates(self, form: FormSubmission) -> set:
        candidates = set(self.submitted_fields(form)) | {"address", "identity_doc_refs", "aid_doc_refs"}
        candidates.discard("severity")
        return candidates

    def process_update(self, family_id: Any, form: FormSubmission) -> IngestionOutcome:
        """Sparse update: blank fields are left untouched"""
        try:
            family = self.store.require(family_id)
        except NotFoundError as e:
            return IngestionOutcome(action="not_found", family_id=coerce_id(family_id), errors=[str(e)])

        try:
            changes, warnings = self._prepare_update(family, form)
        except ValidationError as e:
            logger.warning(f"Update of family {family.id} rejected: {e.errors}")
            self.notifier.notify(f"Update rejected for family {family.id}", "\n".join(e.errors))
            return IngestionOutcome(action="rejected", family_id=family.id, errors=e.errors)

        if not changes:
            return IngestionOutcome(action="unchanged", family_id=family.id, message="No field changed")

        self.store.update_fields(family, changes, comment=("✏️", f"Updated: {', '.join(sorted(changes))}"))
        self.deduplicator.invalidate(family.phone, family.last_name)
        logger.info(f"Family {family.id} updated: {sorted(changes)}")

        if family.status == FamilyStatus.VALIDATED.value:
            result = self.contacts.sync_family_contact(family)
            if not result.success:
                warnings.append(f"Directory sync failed: {result.error}")

        self.notifier.notify(f"Family {family.id} updated", f"Fields: {', '.join(sorted(changes))}")
        return IngestionOutcome(action="updated", family_id=family.id, warnings=warnings)

    def _prepare_update(self, family: Family, form: FormSubmission):
        """Validate everything before any write; raises ValidationError"""
        raw = {
            field: getattr(form, field)
            for field in ("email", "phone", "phone_secondary", "severity", "language", "adult_count", "child_count")
            if not is_blank(getattr(form, field))
        }
        errors = validate_change_set(raw)

        fields = self.submitted_fields(form)
        adults = fields.get("adult_count", family.adult_count or 0)
        children = fields.get("child_count", family.child_count or 0)
        if not errors:
            household_error = validate_household(adults, children)
            if household_error:
                errors.append(household_error)

        ids = DataNormalizer.extract_file_ids(form.identity_doc) + [
            i for doc in (form.aid_doc, form.aid_doc_optional, form.resource_doc)
            for i in DataNormalizer.extract_file_ids(doc)
        ]
        errors.extend(f"Document {i} not found" for i in ids if not self.documents.store.exists(i))

        if errors:
            raise ValidationError(errors)

        warnings = []
        if any(not is_blank(getattr(form, field)) for field in ADDRESS_FIELDS):
            current = DataNormalizer.parse_address_components(family.address)
            street = form.address if not is_blank(form.address) else current["street"]
            postal_code = form.postal_code if not is_blank(form.postal_code) else current["postal_code"]
            city = form.city if not is_blank(form.city) else current["city"]
            address = DataNormalizer.format_address_canonical(street, postal_code, city)
            if address != (family.address or ""):
                resolution = self.location.resolve_address_to_unit(street, postal_code, city)
                if not resolution.is_valid:
                    raise ValidationError([resolution.error or "Address could not be resolved"])
                fields["address"] = address
                fields["location_unit_id"] = resolution.location_unit_id
                if resolution.warning:
                    warnings.append(resolution.warning)

        fields.update(self.document_refs(form))
        changes = {field: value for field, value in fields.items() if value != getattr(family, field)}
        return changes, warnings

    def process_manual_update(self, family_id: Any, fields: Dict[str, Any]) -> IngestionOutcome:
        form = build_form(fields)
        if all(is_blank(value) for value in form.model_dump(exclude={"family_id"}).values()):
            return IngestionOutcome(action="rejected", family_id=coerce_id(family_id),
                                    errors=["At least one field must be provided"])
        return self.process_update(family_id, form)

    def process_manual_entry(self, fields: Dict[str, Any]) -> IngestionOutcome:
        """Operator-entered family; validated straight away when severity and district allow it"""
        form = build_form(fields)
        errors = validate_required_fields(form)
        ok, severity, severity_error = DataNormalizer.parse_severity(form.severity)
        if not ok:
            errors.append(severity_error)
        elif severity < 1:
            errors.append("Severity must be between 1 and 5 for a manual entry")
        if errors:
            return IngestionOutcome(action="rejected", errors=errors)

        duplicate = self.deduplicator.find_duplicate(form.phone, form.last_name, form.email)
        if duplicate.exists:
            return IngestionOutcome(action="duplicate", family_id=duplicate.family_id,
                                    message=f"Family already exists with id {duplicate.family_id}")

        resolution = self.location.resolve_address_to_unit(form.address, form.postal_code, form.city)
        if not resolution.is_valid:
            return IngestionOutcome(action="rejected", errors=[resolution.error or "Address could not be resolved"])

        warnings = [resolution.warning] if resolution.warning else []
        status = FamilyStatus.VALIDATED if resolution.location_unit_id else FamilyStatus.IN_PROGRESS
        if status != FamilyStatus.VALIDATED:
            warnings.append("No district resolved, family left in progress")

        family = self.store.create_family(
            {
                **NEW_FAMILY_DEFAULTS,
                "language": DataNormalizer.normalize_language(form.language).value,
                **self.submitted_fields(form),
                "address": self.canonical_address(form),
                "location_unit_id": resolution.location_unit_id,
                "severity": severity,
                "status": status.value,
            },
            comment=("➕", f"Manual entry ({status.value})")
        )
        self.deduplicator.invalidate(form.phone, form.last_name)

        if status == FamilyStatus.VALIDATED:
            result = self.contacts.sync_family_contact(family)
            if not result.success:
                warnings.append(f"Directory sync failed: {result.error}")

        self.notifier.notify(f"Family {family.id} added manually", f"{family.first_name} {family.last_name}")
        return IngestionOutcome(action="created", family_id=family.id, warnings=warnings)
