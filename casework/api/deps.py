"""Request-scoped dependencies"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from casework.config import get_settings
from casework.database import get_db
from casework.services.container import Services, build_services


def get_services(request: Request, db: Session = Depends(get_db)) -> Services:
    """Build the service graph for one request around the process-wide clients on app.state"""
    state = request.app.state
    return build_services(
        get_settings(),
        db,
        cache_backend=getattr(state, "cache_backend", None),
        geo_session=getattr(state, "http_session", None),
        directory=getattr(state, "directory", None),
        mailer=getattr(state, "mailer", None),
    )
