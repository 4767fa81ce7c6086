# backend/farmstore/routes/applications.py
"""
Wholesale and distributor application routes.

Buyers submit and read their own applications. Review endpoints are
admin-only here AND inside application_service.
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_admin, require_auth
from ..extensions import db
from ..models.applications import APPLICATION_TYPES
from ..responses import api_error, api_success, json_body
from ..services import application_service
from ..services.application_service import (
    ApplicationNotFoundError,
    ApplicationStateError,
    tier_description,
    tier_display_name,
)
from ..validation import AuthorizationError, ValidationError


applications_bp = Blueprint("applications", __name__, url_prefix="/api/v1/applications")


def _payload() -> dict:
    """Accept snake_case or camelCase field names."""
    data = json_body()
    aliases = {
        "businessName": "business_name",
        "businessAddress": "business_address",
        "distributionArea": "distribution_area",
        "yearsInBusiness": "years_in_business",
        "expectedVolume": "expected_volume",
        "additionalInfo": "additional_info",
    }
    return {aliases.get(k, k): v for k, v in data.items()}


def _optional_text(value, limit: int = 1000):
    if value is None:
        return None
    return str(value).strip()[:limit] or None


def _with_tier_info(application) -> dict:
    data = application.to_dict()
    if application.tier:
        data["tierName"] = tier_display_name(application.tier)
        data["tierDescription"] = tier_description(application.tier)
    return data


def _submit(submit_fn, message: str):
    payload = _payload()
    try:
        application = submit_fn(g.current_user, payload)
        return api_success(message, _with_tier_info(application), status=201)
    except ValidationError as e:
        return api_error(str(e), errors=e.errors, status=400)
    except ApplicationStateError as e:
        db.session.rollback()
        return api_error(str(e), status=409, data=e.details)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to submit application")
        return api_error("Internal server error", status=500)


@applications_bp.post("/wholesale")
@require_auth
def submit_wholesale_route():
    return _submit(application_service.submit_wholesale_application, "Wholesale application submitted")


@applications_bp.post("/distributor")
@require_auth
def submit_distributor_route():
    return _submit(application_service.submit_distributor_application, "Distributor application submitted")


@applications_bp.get("/mine")
@require_auth
def my_application_route():
    application_type = request.args.get("type") or None
    if application_type and application_type not in APPLICATION_TYPES:
        return api_error("type must be wholesale or distributor", status=400)

    application = application_service.get_application_for_user(g.current_user.id, application_type)
    if not application:
        return api_error("No application found", status=404)
    return api_success("Application retrieved", _with_tier_info(application))


@applications_bp.get("")
@require_auth
@require_admin
def list_applications_route():
    try:
        applications = application_service.list_applications(
            application_type=request.args.get("type") or None,
            status=request.args.get("status") or None,
        )
    except ValidationError as e:
        return api_error(str(e), status=400)
    return api_success("Applications retrieved", [_with_tier_info(a) for a in applications])


@applications_bp.get("/stats")
@require_auth
@require_admin
def application_stats_route():
    try:
        stats = application_service.get_application_stats(request.args.get("type") or None)
    except ValidationError as e:
        return api_error(str(e), status=400)
    return api_success("Application stats retrieved", stats)


@applications_bp.get("/<int:application_id>")
@require_auth
@require_admin
def get_application_route(application_id: int):
    application = application_service.get_application(application_id)
    if not application:
        return api_error("Application not found", status=404)
    return api_success("Application retrieved", _with_tier_info(application))


def _review(review_fn, message: str, **kwargs):
    try:
        application = review_fn(actor=g.current_user, **kwargs)
        return api_success(message, _with_tier_info(application))
    except AuthorizationError as e:
        return api_error(str(e), status=403)
    except ApplicationNotFoundError as e:
        db.session.rollback()
        return api_error(str(e), status=404)
    except ApplicationStateError as e:
        db.session.rollback()
        return api_error(str(e), status=409, data=e.details)


@applications_bp.post("/<int:application_id>/approve")
@require_auth
@require_admin
def approve_route(application_id: int):
    data = json_body()
    return _review(
        application_service.approve_application,
        "Application approved",
        application_id=application_id,
        notes=_optional_text(data.get("notes")),
    )


@applications_bp.post("/<int:application_id>/reject")
@require_auth
@require_admin
def reject_route(application_id: int):
    data = json_body()
    return _review(
        application_service.reject_application,
        "Application rejected",
        application_id=application_id,
        reason=_optional_text(data.get("reason")),
        notes=_optional_text(data.get("notes")),
    )
