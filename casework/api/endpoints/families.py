"""Action-dispatched REST endpoint for partner apps and confirmation links"""
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse

from casework.errors import ValidationError
from casework.services.container import Services
from casework.services.normalizer import DataNormalizer
from casework.services.verification import render_confirmation_page, render_error_page
from casework.api.deps import get_services

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


class FamilyAction(str, Enum):
    ALL_FAMILIES = "allfamilies"
    FAMILY_BY_ID = "familybyid"
    FAMILY_ADDRESS_BY_ID = "familyaddressbyid"
    FAMILIES_ZAKAT_FITR = "familieszakatfitr"
    FAMILIES_SADAKA = "familiessadaka"
    FAMILIES_BY_QUARTIER = "familiesbyquartier"
    FAMILIES_BY_SECTEUR = "familiesbysecteur"
    FAMILIES_BY_VILLE = "familiesbyville"
    FAMILIES_SE_DEPLACE = "familiessedeplace"
    FAMILIES_BY_CRITICITE = "familiesbycriticite"
    CONFIRM_FAMILY_INFO = "confirmfamilyinfo"
    SEND_VERIFICATION_EMAILS = "sendverificationemails"
    PING = "ping"


PUBLIC_ACTIONS = {FamilyAction.PING, FamilyAction.CONFIRM_FAMILY_INFO}


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "status": status_code})


def bool_param(value: Optional[str]) -> Optional[bool]:
    if value is None or value == "":
        return None
    if value.strip().lower() in ("true", "1"):
        return True
    if value.strip().lower() in ("false", "0"):
        return False
    return DataNormalizer.parse_yes_no_token(value)


def float_param(params: Dict[str, str], name: str) -> Optional[float]:
    value = params.get(name)
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError:
        raise ValidationError([f"Parameter {name} must be a number"])


def required_param(params: Dict[str, str], name: str) -> str:
    value = params.get(name)
    if value in (None, ""):
        raise ValidationError([f"Missing parameter: {name}"])
    return value


def _all_families(services: Services, params: Dict[str, str]):
    return services.query.all_families(
        order_by=params.get("orderBy"),
        lat=float_param(params, "lat"),
        lng=float_param(params, "lng"),
        include_hierarchy=bool(bool_param(params.get("includeHierarchy"))),
        zakat_el_fitr=bool_param(params.get("zakatElFitr")),
        sadaqa=bool_param(params.get("sadaqa")),
    )


def _family_by_id(services: Services, params: Dict[str, str]):
    family = services.query.family_by_id(
        required_param(params, "id"),
        include_hierarchy=bool(bool_param(params.get("includeHierarchy")))
    )
    return family if family is not None else error_response("Family not found", 404)


def _family_address_by_id(services: Services, params: Dict[str, str]):
    address = services.query.family_address_by_id(required_param(params, "id"))
    return address if address is not None else error_response("Family not found", 404)


def _families_by_criticite(services: Services, params: Dict[str, str]):
    ok, severity, error = DataNormalizer.parse_severity(required_param(params, "criticite"))
    if not ok:
        raise ValidationError([error])
    return services.query.families_by_severity(severity)


def _confirm_family_info(services: Services, params: Dict[str, str]):
    ok, result = services.verification.confirm(params.get("id"), params.get("token"))
    if not ok:
        return HTMLResponse(render_error_page(result), status_code=400 if result != "not_found" else 404)
    return HTMLResponse(render_confirmation_page(result))


def _ping(services: Services, params: Dict[str, str]):
    return {
        "status": "ok",
        "message": "Family API is running",
        "version": API_VERSION,
        "timestamp": datetime.now().isoformat(),
    }


HANDLERS: Dict[FamilyAction, Callable[[Services, Dict[str, str]], Any]] = {
    FamilyAction.ALL_FAMILIES: _all_families,
    FamilyAction.FAMILY_BY_ID: _family_by_id,
    FamilyAction.FAMILY_ADDRESS_BY_ID: _family_address_by_id,
    FamilyAction.FAMILIES_ZAKAT_FITR: lambda s, p: s.query.zakat_families(),
    FamilyAction.FAMILIES_SADAKA: lambda s, p: s.query.sadaqa_families(),
    FamilyAction.FAMILIES_BY_QUARTIER: lambda s, p: s.query.families_by_district(required_param(p, "quartierId")),
    FamilyAction.FAMILIES_BY_SECTEUR: lambda s, p: s.query.families_by_sector(required_param(p, "secteurId")),
    FamilyAction.FAMILIES_BY_VILLE: lambda s, p: s.query.families_by_city(required_param(p, "villeId")),
    FamilyAction.FAMILIES_SE_DEPLACE: lambda s, p: s.query.travelling_families(),
    FamilyAction.FAMILIES_BY_CRITICITE: _families_by_criticite,
    FamilyAction.CONFIRM_FAMILY_INFO: _confirm_family_info,
    FamilyAction.SEND_VERIFICATION_EMAILS: lambda s, p: s.verification.send_to_all().model_dump(),
    FamilyAction.PING: _ping,
}


@router.get("/exec")
def dispatch(request: Request, services: Services = Depends(get_services)):
    """Single GET entry point; the `action` parameter selects the operation"""
    params = dict(request.query_params)

    raw_action = (params.get("action") or "").strip().lower()
    if not raw_action:
        return error_response("Missing action parameter", 400)
    try:
        action = FamilyAction(raw_action)
    except ValueError:
        return error_response(f"Unknown action: {raw_action}", 400)

    if action not in PUBLIC_ACTIONS:
        api_key = params.get("apiKey") or params.get("api_key")
        if not api_key or api_key != services.settings.api_key:
            logger.warning(f"Rejected {action.value} request with invalid API key")
            return error_response("Invalid or missing API key", 401)

    try:
        return HANDLERS[action](services, params)
    except ValidationError as e:
        return error_response("; ".join(e.errors), 400)
