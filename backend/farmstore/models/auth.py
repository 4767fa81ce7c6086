from __future__ import annotations

from ..extensions import db
from farmstore.time_utils import to_utc_z


CLASSIFICATION_RETAIL = "retail"
CLASSIFICATION_WHOLESALE_PENDING = "wholesale_pending"
CLASSIFICATION_WHOLESALE_VERIFIED = "wholesale_verified"
CLASSIFICATION_DISTRIBUTOR_PENDING = "distributor_pending"
CLASSIFICATION_DISTRIBUTOR_VERIFIED = "distributor_verified"
CLASSIFICATIONS = (
    CLASSIFICATION_RETAIL,
    CLASSIFICATION_WHOLESALE_PENDING,
    CLASSIFICATION_WHOLESALE_VERIFIED,
    CLASSIFICATION_DISTRIBUTOR_PENDING,
    CLASSIFICATION_DISTRIBUTOR_VERIFIED,
)

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
ROLES = (ROLE_USER, ROLE_ADMIN, ROLE_SUPER_ADMIN)
ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)


class User(db.Model):
    """
    Canonical buyer/identity record.

    Every component (pricing, checkout, applications, auth) reads this one
    record. `classification` is the commercial tier and `role` is the
    orthogonal authorization axis.

    INVARIANT: classification only changes through the application workflow
    (submit -> *_pending, approve -> *_verified, reject -> retail).
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_classification", "classification"),
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    name = db.Column(db.String(100), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    classification = db.Column(db.String(32), nullable=False, default=CLASSIFICATION_RETAIL)
    role = db.Column(db.String(16), nullable=False, default=ROLE_USER)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_email_verified = db.Column(db.Boolean, nullable=False, default=False)

    # SHA-256 of the single live refresh token (None = logged out)
    refresh_token_hash = db.Column(db.String(64), nullable=True)

    # Business snapshot (wholesale and distributor applicants)
    business_name = db.Column(db.String(255), nullable=True)
    business_address = db.Column(db.String(500), nullable=True)

    # Distributor snapshot, copied from the approved application
    distribution_area = db.Column(db.String(500), nullable=True)
    years_in_business = db.Column(db.String(32), nullable=True)
    expected_volume = db.Column(db.String(64), nullable=True)
    distributor_tier = db.Column(db.String(8), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "userType": self.classification,
            "role": self.role,
            "isAdmin": self.is_admin,
            "isActive": self.is_active,
            "isEmailVerified": self.is_email_verified,
            "createdAt": to_utc_z(self.created_at),
            "lastLoginAt": to_utc_z(self.last_login_at),
        }
        if self.business_name:
            data["businessInfo"] = {
                "businessName": self.business_name,
                "businessAddress": self.business_address,
            }
        if self.distributor_tier:
            data["distributorInfo"] = {
                "businessName": self.business_name,
                "businessAddress": self.business_address,
                "distributionArea": self.distribution_area,
                "yearsInBusiness": self.years_in_business,
                "expectedVolume": self.expected_volume,
                "tier": self.distributor_tier,
            }
        return data
