from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow


class Setting(db.Model):
    """
    Process-wide key/value settings (admin_code, app_install_url,
    public_base_url).
    """
    __tablename__ = "settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
