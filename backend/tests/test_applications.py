"""
Wholesale/distributor application workflow tests.

Verifies:
- Submission moves the applicant to *_pending
- Approve/reject transition the applicant exactly once
- Eligibility and the one-pending-application rule
- Review is refused for non-admins at the service layer, not only in routes
- Distributor tier estimation
"""

import pytest

from farmstore.extensions import db
from farmstore.models import Application, User
from farmstore.services import application_service
from farmstore.services.application_service import (
    ApplicationNotFoundError,
    ApplicationStateError,
    calculate_distributor_tier,
    estimate_state_count,
)
from farmstore.validation import AuthorizationError, ValidationError

from conftest import auth_headers


WHOLESALE_FORM = {"business_name": "Obi Foods Ltd", "business_address": "4 Bode Thomas St, Lagos"}

DISTRIBUTOR_FORM = {
    "business_name": "Obi Distribution",
    "business_address": "4 Bode Thomas St, Lagos",
    "distribution_area": "Lagos, Ogun, Oyo",
    "years_in_business": "5",
    "expected_volume": "500-1000 kg/month",
}


def _reload(user):
    return db.session.query(User).populate_existing().filter_by(id=user.id).one()


# =============================================================================
# SUBMISSION
# =============================================================================

class TestSubmission:

    def test_wholesale_submission_marks_user_pending(self, retail_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        assert application.status == "pending"
        assert application.application_type == "wholesale"
        assert application.user_email == retail_user.email

        user = _reload(retail_user)
        assert user.classification == "wholesale_pending"
        assert user.business_name == "Obi Foods Ltd"

    def test_wholesale_requires_business_fields(self, retail_user):
        with pytest.raises(ValidationError) as exc:
            application_service.submit_wholesale_application(retail_user, {"business_name": "  "})
        fields = {e["field"] for e in exc.value.errors}
        assert fields == {"business_name", "business_address"}
        assert _reload(retail_user).classification == "retail"

    def test_only_retail_can_apply_for_wholesale(self, wholesale_user):
        with pytest.raises(ApplicationStateError):
            application_service.submit_wholesale_application(wholesale_user, WHOLESALE_FORM)

    def test_one_pending_application_per_user(self, retail_user):
        application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        user = _reload(retail_user)
        # wholesale_pending is not eligible for either form
        with pytest.raises(ApplicationStateError):
            application_service.submit_distributor_application(user, DISTRIBUTOR_FORM)
        assert db.session.query(Application).count() == 1

    def test_wholesale_verified_can_apply_for_distributor(self, wholesale_user):
        application = application_service.submit_distributor_application(wholesale_user, DISTRIBUTOR_FORM)
        assert application.tier == "tier2"
        assert _reload(wholesale_user).classification == "distributor_pending"

    def test_distributor_additional_info_is_optional(self, retail_user):
        form = dict(DISTRIBUTOR_FORM, additional_info="  ")
        application = application_service.submit_distributor_application(retail_user, form)
        assert application.additional_info is None


# =============================================================================
# REVIEW
# =============================================================================

class TestReview:

    def test_approve_wholesale(self, retail_user, admin_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        approved = application_service.approve_application(application.id, admin_user, notes="Docs verified")

        assert approved.status == "approved"
        assert approved.reviewed_by_user_id == admin_user.id
        assert approved.reviewed_at is not None
        assert approved.review_notes == "Docs verified"
        assert _reload(retail_user).classification == "wholesale_verified"

    def test_second_approval_conflicts_and_changes_nothing(self, retail_user, admin_user, super_admin_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        application_service.approve_application(application.id, admin_user)
        first_review = db.session.get(Application, application.id).reviewed_at

        with pytest.raises(ApplicationStateError):
            application_service.approve_application(application.id, super_admin_user)
        db.session.rollback()

        stored = db.session.query(Application).populate_existing().filter_by(id=application.id).one()
        assert stored.reviewed_by_user_id == admin_user.id
        assert stored.reviewed_at == first_review
        assert _reload(retail_user).classification == "wholesale_verified"

    def test_reject_after_approve_conflicts(self, retail_user, admin_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        application_service.approve_application(application.id, admin_user)
        with pytest.raises(ApplicationStateError):
            application_service.reject_application(application.id, admin_user, reason="late")

    def test_reject_resets_to_retail(self, retail_user, admin_user):
        application = application_service.submit_distributor_application(retail_user, DISTRIBUTOR_FORM)
        rejected = application_service.reject_application(application.id, admin_user, reason="Incomplete documents")

        assert rejected.status == "rejected"
        assert rejected.rejection_reason == "Incomplete documents"
        user = _reload(retail_user)
        assert user.classification == "retail"
        assert user.distributor_tier is None

    def test_rejected_user_may_apply_again(self, retail_user, admin_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        application_service.reject_application(application.id, admin_user)
        again = application_service.submit_wholesale_application(_reload(retail_user), WHOLESALE_FORM)
        assert again.id != application.id
        assert application_service.get_application_for_user(retail_user.id).id == again.id

    def test_approve_distributor_copies_snapshot(self, retail_user, admin_user):
        application = application_service.submit_distributor_application(retail_user, DISTRIBUTOR_FORM)
        application_service.approve_application(application.id, admin_user)

        user = _reload(retail_user)
        assert user.classification == "distributor_verified"
        assert user.distribution_area == "Lagos, Ogun, Oyo"
        assert user.distributor_tier == "tier2"
        assert user.to_dict()["distributorInfo"]["tier"] == "tier2"

    def test_non_admin_cannot_approve(self, retail_user, wholesale_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        with pytest.raises(AuthorizationError):
            application_service.approve_application(application.id, wholesale_user)
        assert db.session.get(Application, application.id).status == "pending"

    def test_non_admin_cannot_reject(self, retail_user, wholesale_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        with pytest.raises(AuthorizationError):
            application_service.reject_application(application.id, wholesale_user)

    def test_unknown_application(self, admin_user):
        with pytest.raises(ApplicationNotFoundError):
            application_service.approve_application(9999, admin_user)

    def test_stats(self, retail_user, make_user, admin_user):
        other = make_user("second@farm.test")
        first = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        application_service.submit_distributor_application(other, DISTRIBUTOR_FORM)
        application_service.approve_application(first.id, admin_user)

        assert application_service.get_application_stats() == {
            "total": 2, "pending": 1, "approved": 1, "rejected": 0,
        }
        assert application_service.get_application_stats("wholesale")["approved"] == 1
        assert len(application_service.get_pending_applications("distributor")) == 1


# =============================================================================
# DISTRIBUTOR TIER
# =============================================================================

class TestDistributorTier:

    @pytest.mark.parametrize("area,tier", [
        ("Lagos", "tier1"),
        ("Lagos and Ogun", "tier1"),
        ("Lagos, Ogun, Oyo", "tier2"),
        ("Lagos, Ogun and Oyo", "tier2"),
        ("Lagos, Ogun & Oyo + Osun / Ondo and Ekiti", "tier3"),
        ("Highlands and Lowlands", "tier1"),
        ("Lagos & Ogun & Oyo & Osun & Ondo", "tier2"),
        ("Lagos/Ogun/Oyo/Osun/Ondo/Ekiti", "tier3"),
        ("Nationwide", "tier3"),
        ("South-West", "tier2"),
        ("", "tier1"),
    ])
    def test_tier_from_area(self, area, tier):
        assert calculate_distributor_tier(area) == tier

    def test_national_keyword_counts_every_state(self):
        assert estimate_state_count("All states in Nigeria") == 37

    def test_mixed_separators_counted_together(self):
        assert estimate_state_count("Lagos, Ogun and Oyo") == 3

    def test_tier_labels(self):
        assert application_service.tier_display_name("tier1") == "Tier 1 - Small Distributor"
        assert application_service.tier_description("tier1") == "1-2 states coverage"
        assert application_service.tier_description("tier3") == "6+ states coverage (National)"


# =============================================================================
# HTTP
# =============================================================================

class TestApplicationRoutes:

    def test_submit_with_camel_case_fields(self, client, retail_user):
        response = client.post(
            "/api/v1/applications/distributor",
            json={
                "businessName": "Obi Distribution",
                "businessAddress": "4 Bode Thomas St, Lagos",
                "distributionArea": "Lagos, Ogun, Oyo",
                "yearsInBusiness": "5",
                "expectedVolume": "500 kg/month",
            },
            headers=auth_headers(retail_user),
        )
        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["tier"] == "tier2"
        assert data["tierName"] == "Tier 2 - Regional Distributor"
        assert data["tierDescription"] == "3-5 states coverage"

    def test_approve_twice_returns_409(self, client, retail_user, admin_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        headers = auth_headers(admin_user)

        first = client.post(f"/api/v1/applications/{application.id}/approve", json={}, headers=headers)
        assert first.status_code == 200
        assert first.get_json()["data"]["status"] == "approved"

        second = client.post(f"/api/v1/applications/{application.id}/approve", json={}, headers=headers)
        assert second.status_code == 409
        assert second.get_json()["success"] is False
        assert _reload(retail_user).classification == "wholesale_verified"

    def test_buyer_cannot_review(self, client, retail_user, wholesale_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        response = client.post(
            f"/api/v1/applications/{application.id}/approve",
            json={},
            headers=auth_headers(wholesale_user),
        )
        assert response.status_code == 403

    def test_mine_returns_latest(self, client, retail_user):
        application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        response = client.get("/api/v1/applications/mine", headers=auth_headers(retail_user))
        assert response.status_code == 200
        assert response.get_json()["data"]["type"] == "wholesale"

    def test_mine_without_application(self, client, retail_user):
        response = client.get("/api/v1/applications/mine", headers=auth_headers(retail_user))
        assert response.status_code == 404

    def test_non_object_body_is_rejected(self, client, retail_user):
        response = client.post(
            "/api/v1/applications/wholesale",
            json=[1],
            headers=auth_headers(retail_user),
        )
        assert response.status_code == 400
        assert response.get_json()["success"] is False
        assert _reload(retail_user).classification == "retail"

    def test_review_notes_are_stored_as_text(self, client, retail_user, admin_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        response = client.post(
            f"/api/v1/applications/{application.id}/approve",
            json={"notes": {"checked": True}},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 200
        assert isinstance(response.get_json()["data"]["reviewNotes"], str)

    def test_reject_reason_is_trimmed(self, client, retail_user, admin_user):
        application = application_service.submit_wholesale_application(retail_user, WHOLESALE_FORM)
        response = client.post(
            f"/api/v1/applications/{application.id}/reject",
            json={"reason": ["incomplete", "address"], "notes": "  see file  "},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert isinstance(data["rejectionReason"], str)
        assert data["reviewNotes"] == "see file"
