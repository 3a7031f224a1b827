"""Match keys used to recognise the same family across submissions"""
from typing import Any, Optional, Tuple
from casework.models import Family
from casework.services.normalizer import DataNormalizer


class FamilyMatcher:
    """Exact-key matching: phone + last name, or email on its own"""

    @staticmethod
    def name_key(last_name: Any) -> str:
        return str(last_name or "").strip().lower()

    @staticmethod
    def email_key(email: Any) -> str:
        return str(email or "").strip().lower()

    @staticmethod
    def match_keys(phone: Any, last_name: Any, email: Any = None) -> Tuple[str, str, str]:
        return (
            DataNormalizer.phone_key(phone),
            FamilyMatcher.name_key(last_name),
            FamilyMatcher.email_key(email),
        )

    @staticmethod
    def cache_key(phone: Any, last_name: Any) -> str:
        phone_key, name_key, _ = FamilyMatcher.match_keys(phone, last_name)
        return f"dup_{phone_key}_{name_key}"

    @staticmethod
    def is_match(family: Family, phone_key: str, name_key: str, email_key: Optional[str] = None) -> bool:
        """
        Phone and last name must both match, or the email alone
        An email hit is enough even when phone and name differ
        """
        if phone_key and name_key:
            if (DataNormalizer.phone_key(family.phone) == phone_key
                    and FamilyMatcher.name_key(family.last_name) == name_key):
                return True

        if email_key and FamilyMatcher.email_key(family.email) == email_key:
            return True

        return False
