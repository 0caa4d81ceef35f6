from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class AuditEntry(db.Model):
    """
    Action history for the registry, tokens and settings.

    IMMUTABLE: Never update or delete. Append-only.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        db.Index("ix_audit_log_code_ts", "code", "ts"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    ts = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    actor = db.Column(db.String(255), nullable=False, default="")
    action = db.Column(db.String(64), nullable=False, index=True)
    # Correlation key: product code, entity id, "staff:customer" pair, ...
    code = db.Column(db.String(255), nullable=False, default="")
    detail = db.Column(db.JSON, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ts": to_utc_z(self.ts),
            "actor": self.actor,
            "action": self.action,
            "code": self.code,
            "detail": self.detail or {},
        }
