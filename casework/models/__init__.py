from casework.models.family import (
    Family,
    FamilyStatus,
    Language,
    DEFAULT_LANGUAGE,
    FAMILY_COLUMNS,
    EDITABLE_COLUMNS,
    SEVERITY_MIN,
    SEVERITY_MAX,
)

__all__ = [
    "Family",
    "FamilyStatus",
    "Language",
    "DEFAULT_LANGUAGE",
    "FAMILY_COLUMNS",
    "EDITABLE_COLUMNS",
    "SEVERITY_MIN",
    "SEVERITY_MAX",
]
