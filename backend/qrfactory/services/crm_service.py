# Overview: Customer / staff registry (surrogate keys) and the staff-customer assignment relation.

"""
Customers and staff share one lifecycle:

- id absent or 0 on upsert -> create, otherwise update in place
- deleting removes every assignment referencing the id first, then the row
- deleting an unknown id is a no-op

Assignments are keyed by (staff_id, customer_id). Setting an existing pair
on, or a missing pair off, changes nothing.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import InvalidArgument, NotFound, StorageFailure
from ..extensions import db
from ..models import Assignment, Customer, Staff
from ..time_utils import utcnow
from ..validation import clean_customer, clean_staff, parse_entity_id, require_fields
from . import audit_service
from .concurrency import commit_or_fail


def stage_entity(model, entity_id: int, patch: dict, *, create_missing: bool = False):
    """
    Create or update a surrogate-key row inside the current session.

    Returns (entity, created), or (None, False) when entity_id is unknown
    and create_missing is False.
    """
    now = utcnow()
    entity = db.session.get(model, entity_id) if entity_id else None
    if entity is None:
        if entity_id and not create_missing:
            return None, False
        entity = model(created_at=now)
        db.session.add(entity)
        created = True
    else:
        created = False
    for field, value in patch.items():
        setattr(entity, field, value)
    entity.updated_at = now
    return entity, created


class SurrogateKeyRegistry:
    model = None
    assignment_key = ""
    cleaner = None
    label = ""
    create_action = ""
    upsert_action = ""
    delete_action = ""

    def __init__(self, db, audit: audit_service.AuditLedger, logger):
        self.db = db
        self.audit = audit
        self.logger = logger

    def clean(self, payload: dict) -> dict:
        patch = self.cleaner(payload or {})
        require_fields(patch, "name")
        return patch

    def summary(self, entity) -> dict:
        return {"name": entity.name}

    def list(self) -> list[dict]:
        rows = (
            self.db.session.query(self.model)
            .order_by(self.model.name.asc(), self.model.id.asc())
            .all()
        )
        return [r.to_dict() for r in rows]

    def upsert(self, payload: dict, *, actor: str = "") -> tuple[int, bool]:
        """
        Returns (id, created).

        Raises:
            InvalidArgument: name missing or id malformed
            NotFound: non-zero id that does not exist
        """
        payload = payload or {}
        entity_id = parse_entity_id(payload.get("id"))
        patch = self.clean(payload)

        entity, created = stage_entity(self.model, entity_id, patch)
        if entity is None:
            raise NotFound(f"{self.label} {entity_id} not found")
        commit_or_fail(self.db.session, self.logger, f"save {self.label}")

        self.audit.append(
            actor,
            self.create_action if created else self.upsert_action,
            entity.id,
            self.summary(entity),
        )
        return entity.id, created

    def delete(self, entity_id, *, actor: str = "") -> bool:
        """Returns True when a row was removed. Unknown ids are a no-op."""
        entity_id = parse_entity_id(entity_id)
        if not entity_id:
            raise InvalidArgument("id is required")

        removed_links = (
            self.db.session.query(Assignment)
            .filter(getattr(Assignment, self.assignment_key) == entity_id)
            .delete(synchronize_session=False)
        )
        removed = (
            self.db.session.query(self.model)
            .filter(self.model.id == entity_id)
            .delete(synchronize_session=False)
        )
        commit_or_fail(self.db.session, self.logger, f"delete {self.label}")

        self.audit.append(
            actor,
            self.delete_action,
            entity_id,
            {"removed": bool(removed), "assignments_removed": removed_links},
        )
        return bool(removed)


class CustomerRegistry(SurrogateKeyRegistry):
    model = Customer
    assignment_key = "customer_id"
    cleaner = staticmethod(clean_customer)
    label = "customer"
    create_action = audit_service.CREATE_CUSTOMER
    upsert_action = audit_service.UPSERT_CUSTOMER
    delete_action = audit_service.DELETE_CUSTOMER

    def summary(self, entity) -> dict:
        return {"name": entity.name, "status": entity.status}


class StaffRegistry(SurrogateKeyRegistry):
    model = Staff
    assignment_key = "staff_id"
    cleaner = staticmethod(clean_staff)
    label = "staff"
    create_action = audit_service.CREATE_STAFF
    upsert_action = audit_service.UPSERT_STAFF
    delete_action = audit_service.DELETE_STAFF


class AssignmentRegistry:
    def __init__(self, db, audit: audit_service.AuditLedger, logger):
        self.db = db
        self.audit = audit
        self.logger = logger

    def set(self, staff_id, customer_id, on: bool, *, actor: str = "") -> bool:
        """
        Idempotent toggle. Returns whether the pair is assigned afterwards.

        Raises:
            InvalidArgument: either id missing / zero
            StorageFailure: any store error other than a duplicate pair
        """
        staff_id = parse_entity_id(staff_id)
        customer_id = parse_entity_id(customer_id)
        if not staff_id or not customer_id:
            raise InvalidArgument("staff_id and customer_id are required")

        session = self.db.session
        existing = session.get(Assignment, (staff_id, customer_id))
        changed = False
        if on and existing is None:
            session.add(Assignment(staff_id=staff_id, customer_id=customer_id, created_at=utcnow()))
            try:
                session.commit()
            except IntegrityError:
                # Another writer inserted the same pair first
                session.rollback()
            except SQLAlchemyError:
                session.rollback()
                self.logger.exception("Storage failure while trying to add assignment")
                raise StorageFailure("Could not add assignment")
            else:
                changed = True
        elif not on and existing is not None:
            session.delete(existing)
            commit_or_fail(session, self.logger, "remove assignment")
            changed = True

        self.audit.append(
            actor,
            audit_service.SET_ASSIGNMENT,
            f"{staff_id}:{customer_id}",
            {"on": bool(on), "changed": changed},
        )
        return bool(on)

    def list(self) -> list[dict]:
        rows = (
            self.db.session.query(
                Assignment.staff_id,
                Assignment.customer_id,
                Assignment.created_at,
                Staff.name.label("staff_name"),
                Customer.name.label("customer_name"),
            )
            .join(Staff, Staff.id == Assignment.staff_id)
            .join(Customer, Customer.id == Assignment.customer_id)
            .order_by(Staff.name.asc(), Customer.name.asc())
            .all()
        )
        return [
            {
                "staff_id": r.staff_id,
                "customer_id": r.customer_id,
                "staff_name": r.staff_name,
                "customer_name": r.customer_name,
            }
            for r in rows
        ]
