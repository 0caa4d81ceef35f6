from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class AuthToken(db.Model):
    """
    Single-use login/logout token handed out as a scannable link.

    Lifecycle: issued -> used (stamped once via conditional update) or
    expired (derived from expires_at at consume time). Rows are never
    deleted so they stay available for audit.
    """
    __tablename__ = "auth_tokens"
    __table_args__ = (
        db.Index("ix_auth_tokens_type_created", "type", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(128), nullable=False, unique=True, index=True)
    type = db.Column(db.String(16), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    used_by = db.Column(db.String(255), nullable=True)
    created_by = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "type": self.type,
            "expires_at": to_utc_z(self.expires_at),
            "used_at": to_utc_z(self.used_at),
            "used_by": self.used_by or "",
            "created_by": self.created_by or "",
            "created_at": to_utc_z(self.created_at),
        }
