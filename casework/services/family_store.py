"""Repository over the families table"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import threading

from casework.errors import NotFoundError, ValidationError
from casework.models import Family, EDITABLE_COLUMNS
from casework.services.comments import add_comment, format_comment

logger = logging.getLogger(__name__)

# Serializes max+1 id allocation within one process
_id_lock = threading.Lock()


def coerce_id(value: Any) -> Optional[int]:
    """Accept 12, "12", " 12 " or 12.0 as the same family id"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not number.is_integer():
        return None
    return int(number)


class FamilyStore:
    """Key-indexed access to family rows; every query is a full scan or a primary key lookup"""

    def __init__(self, db: Session, comment_limit: int = 5):
        self.db = db
        self.comment_limit = comment_limit

    def all(self) -> List[Family]:
        return self.db.query(Family).order_by(Family.id).all()

    def find_by_id(self, family_id: Any) -> Optional[Family]:
        key = coerce_id(family_id)
        if key is None:
            return None
        return self.db.get(Family, key)

    def require(self, family_id: Any) -> Family:
        family = self.find_by_id(family_id)
        if family is None:
            raise NotFoundError(f"Family {family_id} not found")
        return family

    def find_matching(self, predicate: Callable[[Family], bool]) -> List[Family]:
        return [family for family in self.all() if predicate(family)]

    def next_id(self) -> int:
        current = self.db.query(func.max(Family.id)).scalar()
        return (current or 0) + 1

    def create_family(self, fields: Dict[str, Any], comment: Optional[Tuple[str, str]] = None) -> Family:
        """Insert a new row with a freshly allocated id"""
        self._check_fields(fields)
        with _id_lock:
            family = Family(id=self.next_id(), **fields)
            if comment:
                family.comment_log = add_comment("", format_comment(*comment), self.comment_limit)
            self.db.add(family)
            self.db.commit()
        self.db.refresh(family)
        logger.info(f"Created family {family.id} ({family.last_name})")
        return family

    def set_field(self, family: Family, field: str, value: Any) -> Family:
        return self.update_fields(family, {field: value})

    def update_fields(self, family: Family, changes: Dict[str, Any],
                      comment: Optional[Tuple[str, str]] = None) -> Family:
        """Write several fields and an optional comment in one commit"""
        self._check_fields(changes)
        for field, value in changes.items():
            setattr(family, field, value)
        if comment:
            family.comment_log = add_comment(family.comment_log, format_comment(*comment), self.comment_limit)
        self.db.commit()
        return family

    def append_comment(self, family: Family, emoji: str, message: str) -> Family:
        return self.update_fields(family, {}, comment=(emoji, message))

    @staticmethod
    def _check_fields(fields: Dict[str, Any]):
        unknown = [field for field in fields if field not in EDITABLE_COLUMNS]
        if unknown:
            raise ValidationError([f"Unknown or read-only field: {field}" for field in unknown])
