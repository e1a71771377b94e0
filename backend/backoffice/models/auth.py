# Overview: Back-office principals: admin roles and admin users.
from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class AdminRole(db.Model):
    __tablename__ = "admin_roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    role_name = db.Column(db.String(64), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<AdminRole id={self.id} role_name={self.role_name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role_name": self.role_name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class AdminUser(db.Model):
    """
    Back-office operator account.

    SECURITY: password_hash is a bcrypt digest and is never serialized.
    """
    __tablename__ = "admin_users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(128), nullable=True)
    last_name = db.Column(db.String(128), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    avatar_url = db.Column(db.Text, nullable=True)
    timezone = db.Column(db.String(64), nullable=True)

    role_id = db.Column(db.Integer, db.ForeignKey("admin_roles.id"), nullable=False, index=True)
    mfa_enabled = db.Column(db.Boolean, nullable=False, default=False)
    mfa_method = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    role = db.relationship("AdminRole", backref=db.backref("admin_users", lazy=True))

    def __repr__(self) -> str:
        return f"<AdminUser id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
            "avatar_url": self.avatar_url,
            "timezone": self.timezone,
            "role_id": self.role_id,
            "role_name": self.role.role_name if self.role else None,
            "mfa_enabled": self.mfa_enabled,
            "mfa_method": self.mfa_method,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
