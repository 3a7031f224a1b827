from enum import Enum
from sqlalchemy import Column, Integer, String, Boolean, Text
from casework.database import Base


class FamilyStatus(str, Enum):
    """Case status values as stored in the table"""
    RECEIVED = "Recu"
    IN_PROGRESS = "En cours"
    PENDING = "En attente"
    VALIDATED = "Validé"
    REJECTED = "Rejeté"
    ARCHIVED = "Archivé"


class Language(str, Enum):
    FRENCH = "Français"
    ARABIC = "Arabe"
    ENGLISH = "Anglais"


DEFAULT_LANGUAGE = Language.FRENCH

SEVERITY_MIN = 0
SEVERITY_MAX = 5

# Single source for column order: store adapter, record mapper and exports all read from here
FAMILY_COLUMNS = (
    "id",
    "last_name",
    "first_name",
    "zakat_eligible",
    "sadaqa_eligible",
    "adult_count",
    "child_count",
    "address",
    "location_unit_id",
    "can_travel",
    "email",
    "phone",
    "phone_secondary",
    "identity_doc_refs",
    "aid_doc_refs",
    "circumstance",
    "feeling",
    "specifics",
    "severity",
    "language",
    "status",
    "comment_log",
)

# Columns a human or a sync run may overwrite; id is immutable
EDITABLE_COLUMNS = tuple(c for c in FAMILY_COLUMNS if c != "id")


class Family(Base):
    __tablename__ = "families"

    id = Column(Integer, primary_key=True, autoincrement=False, index=True)
    last_name = Column(String(100), nullable=False, default="", index=True)
    first_name = Column(String(100), nullable=False, default="")
    zakat_eligible = Column(Boolean, default=False)
    sadaqa_eligible = Column(Boolean, default=False)
    adult_count = Column(Integer, default=0)
    child_count = Column(Integer, default=0)
    address = Column(String(300), default="")
    location_unit_id = Column(String(50), index=True)
    can_travel = Column(Boolean, default=False)
    email = Column(String(200), default="")
    phone = Column(String(30), default="", index=True)
    phone_secondary = Column(String(30), default="")
    identity_doc_refs = Column(Text, default="")
    aid_doc_refs = Column(Text, default="")
    circumstance = Column(Text, default="")
    feeling = Column(Text, default="")
    specifics = Column(Text, default="")
    severity = Column(Integer, default=0)
    language = Column(String(20), default=DEFAULT_LANGUAGE.value)
    status = Column(String(20), default=FamilyStatus.RECEIVED.value, index=True)
    comment_log = Column(Text, default="")

    def to_dict(self):
        return {column: getattr(self, column) for column in FAMILY_COLUMNS}

    def __repr__(self):
        return f"<Family(id={self.id}, name='{self.first_name} {self.last_name}', status='{self.status}')>"
