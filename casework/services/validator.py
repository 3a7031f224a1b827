"""Field validation for submissions and change sets"""
from typing import Any, Dict, List, Optional, Tuple

from casework.errors import ValidationError
from casework.schemas import FormSubmission
from casework.services.normalizer import DataNormalizer


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_count(value: Any, label: str) -> Tuple[Optional[int], Optional[str]]:
    """Household counts must be non-negative integers; blank means zero"""
    if is_blank(value):
        return 0, None
    try:
        count = int(float(str(value).strip().replace(",", ".")))
    except ValueError:
        return None, f"{label} must be a number, got '{value}'"
    if count < 0:
        return None, f"{label} cannot be negative"
    return count, None


def validate_household(adult_count: int, child_count: int) -> Optional[str]:
    """Default household rule: non-negative counts and at least one person"""
    if adult_count < 0 or child_count < 0:
        return "Household counts cannot be negative"
    if adult_count + child_count < 1:
        return "Household must contain at least one person"
    return None


def validate_required_fields(form: FormSubmission) -> List[str]:
    errors = []

    if is_blank(form.last_name):
        errors.append("Last name is required")
    if is_blank(form.first_name):
        errors.append("First name is required")

    if is_blank(form.phone):
        errors.append("Phone number is required")
    elif not DataNormalizer.is_valid_phone(form.phone):
        errors.append(f"Invalid phone number: {form.phone}")

    if not is_blank(form.email) and not DataNormalizer.is_valid_email(form.email.strip()):
        errors.append(f"Invalid email: {form.email}")

    if is_blank(form.address):
        errors.append("Address is required")
    if is_blank(form.postal_code):
        errors.append("Postal code is required")
    if is_blank(form.city):
        errors.append("City is required")

    adults, adult_error = parse_count(form.adult_count, "Adult count")
    children, child_error = parse_count(form.child_count, "Child count")
    errors.extend(e for e in (adult_error, child_error) if e)
    if adult_error is None and child_error is None:
        household_error = validate_household(adults, children)
        if household_error:
            errors.append(household_error)

    return errors


def validate_change_set(changes: Dict[str, Any]) -> List[str]:
    """Check only the fields present in a sparse update"""
    errors = []

    if "email" in changes and not DataNormalizer.is_valid_email(str(changes["email"]).strip()):
        errors.append(f"Invalid email: {changes['email']}")

    for field in ("phone", "phone_secondary"):
        if field in changes and not DataNormalizer.is_valid_phone(changes[field]):
            errors.append(f"Invalid phone number: {changes[field]}")

    if "severity" in changes:
        ok, _, error = DataNormalizer.parse_severity(changes["severity"])
        if not ok:
            errors.append(error)

    if "language" in changes and not DataNormalizer.is_supported_language(changes["language"]):
        errors.append(f"Unsupported language: {changes['language']}")

    for field, label in (("adult_count", "Adult count"), ("child_count", "Child count")):
        if field in changes:
            _, error = parse_count(changes[field], label)
            if error:
                errors.append(error)

    return errors


EDIT_BOOL_FIELDS = ("zakat_eligible", "sadaqa_eligible", "can_travel")
EDIT_COUNT_FIELDS = {"adult_count": "Adult count", "child_count": "Child count"}
OPTIONAL_CONTACT_FIELDS = ("email", "phone_secondary")


def coerce_field_edit(field: str, value: Any) -> Any:
    """
    Turn a single hand-edited value into what its column stores
    Raises ValidationError when the value cannot be stored
    """
    if field in EDIT_BOOL_FIELDS:
        return DataNormalizer.parse_yes_no_token(value)

    if field in EDIT_COUNT_FIELDS:
        count, error = parse_count(value, EDIT_COUNT_FIELDS[field])
        if error:
            raise ValidationError([error])
        return count

    if field in OPTIONAL_CONTACT_FIELDS and is_blank(value):
        return ""

    errors = validate_change_set({field: value})
    if errors:
        raise ValidationError(errors)

    if field in ("phone", "phone_secondary"):
        return DataNormalizer.normalize_phone(value)
    if field == "email":
        return str(value).strip()
    if field == "language":
        return DataNormalizer.normalize_language(value).value
    if field == "location_unit_id":
        return None if is_blank(value) else str(value).strip()
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError([f"{field} must be text, got {type(value).__name__}"])
    return value
