"""Data normalization service for cleaning and standardizing family case fields"""
from typing import Dict, Any, List, Optional, Tuple
import logging
import re

from casework.models import Language, DEFAULT_LANGUAGE, SEVERITY_MIN, SEVERITY_MAX
from casework.services.field_map import COLUMN_MAP, REFUSAL_PHRASES, ORIGIN_LANGUAGE

logger = logging.getLogger(__name__)

HOME_COUNTRY = "France"

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
POSTAL_CODE_PATTERN = re.compile(r'\b(\d{5})\b')
FILE_ID_PATTERNS = (
    re.compile(r'/d/([a-zA-Z0-9_-]+)'),
    re.compile(r'id=([a-zA-Z0-9_-]+)'),
)

YES_TOKENS = {"oui", "yes", "نعم"}
NO_TOKENS = {"non", "no", "لا"}

LANGUAGE_CODES = {
    Language.FRENCH: "fr",
    Language.ARABIC: "ar",
    Language.ENGLISH: "en",
}

YES_NO_LABELS = {
    Language.FRENCH: ("Oui", "Non"),
    Language.ARABIC: ("نعم", "لا"),
    Language.ENGLISH: ("Yes", "No"),
}


class DataNormalizer:
    """Normalizes and validates loosely typed, multilingual case data"""

    @staticmethod
    def digits_only(value: Any) -> str:
        if value is None:
            return ""
        return re.sub(r'\D', '', str(value))

    @staticmethod
    def normalize_phone(raw: Any) -> str:
        """
        Render a French phone number as +33 D DD DD DD DD
        Falls back to the cleaned digits when no 9-digit local part can be found
        """
        cleaned = DataNormalizer.digits_only(raw)
        if not cleaned:
            return ""

        if cleaned.startswith("0033") and len(cleaned) == 13:
            local = cleaned[4:]
        elif cleaned.startswith("33") and len(cleaned) >= 11:
            local = cleaned[2:]
        elif cleaned.startswith("0") and len(cleaned) == 10:
            local = cleaned[1:]
        elif len(cleaned) == 9 and not cleaned.startswith("0"):
            local = cleaned
        else:
            logger.warning(f"Unrecognized phone format '{raw}', keeping last 9 digits")
            if len(cleaned) < 9:
                return cleaned
            local = cleaned[-9:]

        if len(local) > 9:
            local = local[-9:]

        if len(local) != 9 or local[0] == "0":
            return cleaned

        return f"+33 {local[0]} {local[1:3]} {local[3:5]} {local[5:7]} {local[7:9]}"

    @staticmethod
    def phone_key(raw: Any) -> str:
        """Normalized phone stripped of spaces and parentheses, used for comparisons"""
        return re.sub(r'[\s()]', '', DataNormalizer.normalize_phone(raw))

    @staticmethod
    def is_valid_phone(raw: Any) -> bool:
        digits = DataNormalizer.digits_only(raw)
        if not digits:
            return False
        if digits.startswith("0033"):
            return re.fullmatch(r'0033[1-9]\d{8}', digits) is not None
        if digits.startswith("33") and len(digits) == 11:
            return re.fullmatch(r'33[1-9]\d{8}', digits) is not None
        if digits.startswith("0"):
            return re.fullmatch(r'0[1-9]\d{8}', digits) is not None
        return re.fullmatch(r'[1-9]\d{8}', digits) is not None

    @staticmethod
    def is_valid_email(raw: Any) -> bool:
        if not raw or not isinstance(raw, str):
            return False
        return EMAIL_PATTERN.match(raw) is not None

    @staticmethod
    def parse_address_components(full: Optional[str]) -> Dict[str, str]:
        """
        Split a comma-separated address into components
        Returns: {street, postal_code, city, country}
        """
        empty = {"street": "", "postal_code": "", "city": "", "country": ""}
        if not full or not str(full).strip():
            return empty

        parts = [p.strip() for p in str(full).split(',')]
        if len(parts) < 2:
            return {**empty, "street": str(full).strip()}

        second = parts[1]
        match = POSTAL_CODE_PATTERN.search(second)
        postal_code = match.group(1) if match else ""
        city = re.sub(r'\s+', ' ', second.replace(postal_code, "", 1)).strip() if postal_code else second

        return {
            "street": parts[0],
            "postal_code": postal_code,
            "city": city,
            "country": parts[-1] if len(parts) >= 3 else HOME_COUNTRY,
        }

    @staticmethod
    def format_address_canonical(street: Any, postal_code: Any, city: Any) -> str:
        """Comparison key for addresses on both sync directions"""
        street = str(street or "").strip()
        city_part = " ".join(p for p in (str(postal_code or "").strip(), str(city or "").strip()) if p)
        return ", ".join(p for p in (street, city_part) if p)

    @staticmethod
    def format_address_for_geocoding(street: Any, postal_code: Any, city: Any) -> str:
        parts = [str(p).strip() for p in (street, postal_code, city) if p and str(p).strip()]
        parts.append(HOME_COUNTRY)
        return ", ".join(parts)

    @staticmethod
    def parse_yes_no_token(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        token = str(value).strip().lower()
        if token in YES_TOKENS:
            return True
        if token in NO_TOKENS:
            return False
        return False

    @staticmethod
    def yes_no_label(value: bool, language: Any = DEFAULT_LANGUAGE) -> str:
        yes, no = YES_NO_LABELS[DataNormalizer.normalize_language(language)]
        return yes if value else no

    @staticmethod
    def normalize_field_name(field_name: Optional[str]) -> str:
        if not field_name:
            return ""
        return field_name.strip().replace("‘", "'").replace("’", "'")

    @staticmethod
    def map_field_name(header: Optional[str]) -> Optional[str]:
        return COLUMN_MAP.get(DataNormalizer.normalize_field_name(header))

    @staticmethod
    def parse_form_response(answers: Dict[str, Any]) -> Dict[str, Any]:
        """Map raw form answers keyed by question text to canonical field names"""
        parsed = {}
        for header, value in answers.items():
            field = DataNormalizer.map_field_name(header)
            if field:
                parsed[field] = "" if value is None else value
        return parsed

    @staticmethod
    def parse_int(value: Any, default: int = 0) -> int:
        if value is None or value == "":
            return default
        if isinstance(value, bool):
            return int(value)
        try:
            return int(float(str(value).strip().replace(",", ".")))
        except ValueError:
            return default

    @staticmethod
    def parse_severity(value: Any) -> Tuple[bool, Optional[int], Optional[str]]:
        """
        Parse a severity value, truncating floats
        Returns: (ok, value, error)
        """
        if value is None or isinstance(value, bool) or str(value).strip() == "":
            return False, None, "Severity is required"
        try:
            severity = int(float(str(value).strip().replace(",", ".")))
        except ValueError:
            return False, None, f"Severity must be a number, got '{value}'"
        if severity < SEVERITY_MIN or severity > SEVERITY_MAX:
            return False, None, f"Severity must be between {SEVERITY_MIN} and {SEVERITY_MAX}, got {severity}"
        return True, severity, None

    @staticmethod
    def is_supported_language(value: Any) -> bool:
        if isinstance(value, Language):
            return True
        token = str(value or "").strip()
        return token in {lang.value for lang in Language} or token.lower() in LANGUAGE_CODES.values()

    @staticmethod
    def normalize_language(value: Any) -> Language:
        """Map a language name or code to a supported language, defaulting to French"""
        if isinstance(value, Language):
            return value
        token = str(value or "").strip()
        for lang in Language:
            if token == lang.value or token.lower() == LANGUAGE_CODES[lang]:
                return lang
        return DEFAULT_LANGUAGE

    @staticmethod
    def language_code(value: Any) -> str:
        return LANGUAGE_CODES[DataNormalizer.normalize_language(value)]

    @staticmethod
    def detect_language_from_origin(origin: Optional[str]) -> Language:
        if origin and origin.strip() in ORIGIN_LANGUAGE:
            return Language(ORIGIN_LANGUAGE[origin.strip()])
        return DEFAULT_LANGUAGE

    @staticmethod
    def is_consent_refused(value: Any) -> bool:
        if not value:
            return False
        text = str(value)
        return any(phrase in text for phrase in REFUSAL_PHRASES)

    @staticmethod
    def extract_file_ids(value: Any) -> List[str]:
        """Extract document ids from a comma-separated list of share links"""
        if not value:
            return []
        ids = []
        for link in str(value).split(','):
            link = link.strip()
            for pattern in FILE_ID_PATTERNS:
                match = pattern.search(link)
                if match:
                    ids.append(match.group(1))
                    break
        return ids

    @staticmethod
    def format_document_links(file_ids: List[str]) -> str:
        return ", ".join(f"https://drive.google.com/file/d/{file_id}/view" for file_id in file_ids)

    @staticmethod
    def clean_text(value: Any) -> str:
        if value is None:
            return ""
        return re.sub(r'\s+', ' ', str(value)).strip()
