"""Error types shared across services"""
from typing import List, Optional


class CaseworkError(Exception):
    """Base class for casework errors"""


class ValidationError(CaseworkError):
    """Input failed a field-level check"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(CaseworkError):
    """Referenced family, file or group does not exist"""


class ExternalServiceError(CaseworkError):
    """Geo partner or directory API returned an error"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
