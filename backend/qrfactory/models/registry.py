from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Issued product code and the label data printed next to it.

    `code` is the natural key. Generated codes are only probabilistically
    unique; the unique constraint here is what actually guarantees it.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_product_name", "product_name"),
        db.Index("ix_products_updated_at", "updated_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(128), nullable=False, unique=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    batch_serial = db.Column(db.String(255), nullable=True)
    # DD-MM-YYYY when well-formed, otherwise the trimmed input verbatim
    mfg_date = db.Column(db.String(64), nullable=True)
    exp_date = db.Column(db.String(64), nullable=True)
    note_extra = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(64), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "product_name": self.product_name,
            "batch_serial": self.batch_serial or "",
            "mfg_date": self.mfg_date or "",
            "exp_date": self.exp_date or "",
            "note_extra": self.note_extra or "",
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Customer(db.Model):
    """Contract customer. Surrogate key; deleting it drops its assignments."""
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contract_start = db.Column(db.String(64), nullable=True)
    contract_end = db.Column(db.String(64), nullable=True)
    product_type = db.Column(db.String(255), nullable=True)
    contract_value = db.Column(db.Float, nullable=False, default=0)
    status = db.Column(db.String(64), nullable=False, default="active")
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contract_start": self.contract_start or "",
            "contract_end": self.contract_end or "",
            "product_type": self.product_type or "",
            "contract_value": self.contract_value or 0,
            "status": self.status,
            "note": self.note or "",
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Staff(db.Model):
    __tablename__ = "staff"
    __table_args__ = (
        db.Index("ix_staff_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email or "",
            "phone": self.phone or "",
            "note": self.note or "",
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Assignment(db.Model):
    """
    Staff <-> customer link. The composite primary key allows at most one
    row per pair.
    """
    __tablename__ = "staff_customer_assignments"
    __table_args__ = (
        db.Index("ix_assignments_customer_id", "customer_id"),
    )

    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "staff_id": self.staff_id,
            "customer_id": self.customer_id,
            "created_at": to_utc_z(self.created_at),
        }
