from __future__ import annotations

from ..extensions import db
from farmstore.time_utils import to_utc_z


APPLICATION_WHOLESALE = "wholesale"
APPLICATION_DISTRIBUTOR = "distributor"
APPLICATION_TYPES = (APPLICATION_WHOLESALE, APPLICATION_DISTRIBUTOR)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
APPLICATION_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)


class Application(db.Model):
    """
    Wholesale or distributor upgrade request.

    State machine: pending -> approved | rejected (both terminal).

    SECURITY: the business fields are unverified self-attestation. Only an
    admin review moves the applicant's classification to *_verified.
    """
    __tablename__ = "applications"
    __table_args__ = (
        db.Index("ix_applications_type_status", "application_type", "status"),
        db.Index("ix_applications_user_status", "user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    application_type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING)

    # Applicant snapshot
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    user_name = db.Column(db.String(100), nullable=True)
    user_email = db.Column(db.String(255), nullable=False)

    business_name = db.Column(db.String(255), nullable=False)
    business_address = db.Column(db.String(500), nullable=False)

    # Distributor only
    distribution_area = db.Column(db.String(500), nullable=True)
    years_in_business = db.Column(db.String(32), nullable=True)
    expected_volume = db.Column(db.String(64), nullable=True)
    additional_info = db.Column(db.Text, nullable=True)
    tier = db.Column(db.String(8), nullable=True)  # tier1, tier2, tier3 (advisory)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reviewed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    review_notes = db.Column(db.Text, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "type": self.application_type,
            "status": self.status,
            "userId": self.user_id,
            "userName": self.user_name,
            "userEmail": self.user_email,
            "businessName": self.business_name,
            "businessAddress": self.business_address,
            "submittedAt": to_utc_z(self.submitted_at),
            "reviewedAt": to_utc_z(self.reviewed_at),
            "reviewedBy": self.reviewed_by_user_id,
            "reviewNotes": self.review_notes,
            "rejectionReason": self.rejection_reason,
        }
        if self.application_type == APPLICATION_DISTRIBUTOR:
            data.update({
                "distributionArea": self.distribution_area,
                "yearsInBusiness": self.years_in_business,
                "expectedVolume": self.expected_volume,
                "additionalInfo": self.additional_info,
                "tier": self.tier,
            })
        return data
