# Overview: Wholesale and distributor application workflow; the only writer of User.classification.

"""
Application workflow

State machine per application: pending -> approved | rejected (terminal).

Eligibility:
- wholesale: applicant must currently be retail
- distributor: applicant must be retail or wholesale_verified
- at most one pending application per user

SECURITY: approve/reject verify the actor's role here, at the operation
boundary. Route decorators are a second gate, not the only one.

INVARIANT: acting on a terminal application raises ApplicationStateError
and mutates nothing, so an approval transitions the applicant exactly once.
"""

from __future__ import annotations

import re

from flask import current_app

from ..extensions import db
from ..models import Application, User
from ..models.applications import (
    APPLICATION_DISTRIBUTOR,
    APPLICATION_TYPES,
    APPLICATION_WHOLESALE,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from ..models.auth import (
    ADMIN_ROLES,
    CLASSIFICATION_DISTRIBUTOR_PENDING,
    CLASSIFICATION_DISTRIBUTOR_VERIFIED,
    CLASSIFICATION_RETAIL,
    CLASSIFICATION_WHOLESALE_PENDING,
    CLASSIFICATION_WHOLESALE_VERIFIED,
)
from ..validation import AuthorizationError, ValidationError
from farmstore.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


class ApplicationError(Exception):
    """Raised for application workflow errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ApplicationNotFoundError(ApplicationError):
    pass


class ApplicationStateError(ApplicationError):
    """Application is not in a state that allows the requested action."""


# =============================================================================
# Distributor tier heuristic
# =============================================================================

TIER_1 = "tier1"
TIER_2 = "tier2"
TIER_3 = "tier3"

NATIONWIDE_STATE_COUNT = 37  # 36 states + FCT

_SEPARATOR_RE = re.compile(r",|&|\+|/|\band\b")
_NATIONAL_KEYWORDS = ("nationwide", "all states", "national", "entire nigeria", "whole nigeria")
_REGION_KEYWORDS = ("south-west", "south-east", "north-central", "north-west", "north-east", "south-south")

TIER_INFO = {
    TIER_1: {
        "name": "Tier 1 - Small Distributor",
        "description": "1-2 states coverage",
    },
    TIER_2: {
        "name": "Tier 2 - Regional Distributor",
        "description": "3-5 states coverage",
    },
    TIER_3: {
        "name": "Tier 3 - National Distributor",
        "description": "6+ states coverage (National)",
    },
}


def estimate_state_count(distribution_area: str) -> int:
    """
    Rough count of states named in free text.

    Best effort only: the number of segments left after splitting on every
    list separator at once, with national keywords counting as every state
    and region keywords as at least 4. The result is advisory and never
    gates approval.
    """
    text = (distribution_area or "").lower().strip()
    if not text:
        return 1

    if any(keyword in text for keyword in _NATIONAL_KEYWORDS):
        return NATIONWIDE_STATE_COUNT

    segments = [s for s in _SEPARATOR_RE.split(text) if s.strip()]
    count = max(1, len(segments))

    if any(keyword in text for keyword in _REGION_KEYWORDS):
        count = max(count, 4)

    return count


def calculate_distributor_tier(distribution_area: str) -> str:
    count = estimate_state_count(distribution_area)
    if count < 3:
        return TIER_1
    if count <= 5:
        return TIER_2
    return TIER_3


def tier_display_name(tier: str) -> str:
    return TIER_INFO.get(tier, {}).get("name", "Unknown Tier")


def tier_description(tier: str) -> str:
    return TIER_INFO.get(tier, {}).get("description", "")


# =============================================================================
# Submission
# =============================================================================

def _require_fields(data: dict, fields: tuple[str, ...]) -> dict:
    cleaned = {}
    errors = []
    for field in fields:
        value = data.get(field)
        value = str(value).strip() if value is not None else ""
        if not value:
            errors.append({"field": field, "message": f"{field} is required"})
        cleaned[field] = value
    if errors:
        raise ValidationError("Please fill in all required fields", errors=errors)
    return cleaned


def _ensure_no_pending(user_id: int) -> None:
    pending = (
        db.session.query(Application.id)
        .filter_by(user_id=user_id, status=STATUS_PENDING)
        .first()
    )
    if pending is not None:
        raise ApplicationStateError("You already have a pending application")


def submit_wholesale_application(user: User, data: dict) -> Application:
    fields = _require_fields(data, ("business_name", "business_address"))

    def _op() -> Application:
        applicant = lock_for_update(db.session.query(User).filter_by(id=user.id)).first()
        if applicant.classification != CLASSIFICATION_RETAIL:
            raise ApplicationStateError(
                "Only retail customers can apply for a wholesale account",
                details={"userType": applicant.classification},
            )
        _ensure_no_pending(applicant.id)

        application = Application(
            application_type=APPLICATION_WHOLESALE,
            status=STATUS_PENDING,
            user_id=applicant.id,
            user_name=applicant.name,
            user_email=applicant.email,
            business_name=fields["business_name"],
            business_address=fields["business_address"],
            submitted_at=utcnow(),
        )
        db.session.add(application)

        applicant.classification = CLASSIFICATION_WHOLESALE_PENDING
        applicant.business_name = fields["business_name"]
        applicant.business_address = fields["business_address"]

        db.session.commit()
        return application

    return run_with_retry(_op)


def submit_distributor_application(user: User, data: dict) -> Application:
    fields = _require_fields(
        data,
        ("business_name", "business_address", "distribution_area", "years_in_business", "expected_volume"),
    )
    additional_info = (str(data.get("additional_info") or "").strip()) or None

    def _op() -> Application:
        applicant = lock_for_update(db.session.query(User).filter_by(id=user.id)).first()
        if applicant.classification not in (CLASSIFICATION_RETAIL, CLASSIFICATION_WHOLESALE_VERIFIED):
            raise ApplicationStateError(
                "Your account is not eligible for a distributor application",
                details={"userType": applicant.classification},
            )
        _ensure_no_pending(applicant.id)

        application = Application(
            application_type=APPLICATION_DISTRIBUTOR,
            status=STATUS_PENDING,
            user_id=applicant.id,
            user_name=applicant.name,
            user_email=applicant.email,
            business_name=fields["business_name"],
            business_address=fields["business_address"],
            distribution_area=fields["distribution_area"],
            years_in_business=fields["years_in_business"],
            expected_volume=fields["expected_volume"],
            additional_info=additional_info,
            tier=calculate_distributor_tier(fields["distribution_area"]),
            submitted_at=utcnow(),
        )
        db.session.add(application)

        applicant.classification = CLASSIFICATION_DISTRIBUTOR_PENDING
        applicant.business_name = fields["business_name"]
        applicant.business_address = fields["business_address"]

        db.session.commit()
        return application

    return run_with_retry(_op)


# =============================================================================
# Review (admin only)
# =============================================================================

def _require_reviewer(actor: User | None, action: str) -> None:
    if actor is None or actor.role not in ADMIN_ROLES:
        current_app.logger.warning(
            "Denied application %s by user_id=%s", action, getattr(actor, "id", None)
        )
        raise AuthorizationError("Only admins can review applications")


def _load_pending_locked(application_id: int) -> Application:
    application = lock_for_update(
        db.session.query(Application).filter_by(id=application_id)
    ).first()
    if not application:
        raise ApplicationNotFoundError("Application not found")
    if application.status != STATUS_PENDING:
        raise ApplicationStateError(
            f"Application has already been {application.status}",
            details={"status": application.status},
        )
    return application


def approve_application(application_id: int, actor: User, notes: str | None = None) -> Application:
    _require_reviewer(actor, "approve")

    def _op() -> Application:
        application = _load_pending_locked(application_id)
        applicant = lock_for_update(db.session.query(User).filter_by(id=application.user_id)).first()

        application.status = STATUS_APPROVED
        application.reviewed_at = utcnow()
        application.reviewed_by_user_id = actor.id
        application.review_notes = notes

        if application.application_type == APPLICATION_WHOLESALE:
            applicant.classification = CLASSIFICATION_WHOLESALE_VERIFIED
        else:
            applicant.classification = CLASSIFICATION_DISTRIBUTOR_VERIFIED
            applicant.business_name = application.business_name
            applicant.business_address = application.business_address
            applicant.distribution_area = application.distribution_area
            applicant.years_in_business = application.years_in_business
            applicant.expected_volume = application.expected_volume
            applicant.distributor_tier = application.tier

        db.session.commit()
        return application

    return run_with_retry(_op)


def reject_application(
    application_id: int,
    actor: User,
    reason: str | None = None,
    notes: str | None = None,
) -> Application:
    _require_reviewer(actor, "reject")

    def _op() -> Application:
        application = _load_pending_locked(application_id)
        applicant = lock_for_update(db.session.query(User).filter_by(id=application.user_id)).first()

        application.status = STATUS_REJECTED
        application.reviewed_at = utcnow()
        application.reviewed_by_user_id = actor.id
        application.rejection_reason = reason
        application.review_notes = notes

        applicant.classification = CLASSIFICATION_RETAIL
        applicant.distribution_area = None
        applicant.years_in_business = None
        applicant.expected_volume = None
        applicant.distributor_tier = None

        db.session.commit()
        return application

    return run_with_retry(_op)


# =============================================================================
# Lookups
# =============================================================================

def get_application(application_id: int) -> Application | None:
    return db.session.get(Application, application_id)


def get_application_for_user(user_id: int, application_type: str | None = None) -> Application | None:
    """Most recent application of the user (optionally of one type)."""
    query = db.session.query(Application).filter_by(user_id=user_id)
    if application_type:
        query = query.filter_by(application_type=application_type)
    return query.order_by(Application.submitted_at.desc(), Application.id.desc()).first()


def list_applications(application_type: str | None = None, status: str | None = None) -> list[Application]:
    if application_type and application_type not in APPLICATION_TYPES:
        raise ValidationError("type must be wholesale or distributor")
    query = db.session.query(Application)
    if application_type:
        query = query.filter_by(application_type=application_type)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Application.submitted_at.desc(), Application.id.desc()).all()


def get_pending_applications(application_type: str | None = None) -> list[Application]:
    return list_applications(application_type=application_type, status=STATUS_PENDING)


def get_application_stats(application_type: str | None = None) -> dict:
    applications = list_applications(application_type=application_type)
    return {
        "total": len(applications),
        "pending": sum(1 for a in applications if a.status == STATUS_PENDING),
        "approved": sum(1 for a in applications if a.status == STATUS_APPROVED),
        "rejected": sum(1 for a in applications if a.status == STATUS_REJECTED),
    }
