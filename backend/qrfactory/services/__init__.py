# Overview: Wires the service components together with explicit dependencies.

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from .audit_service import AuditLedger
from .bulk_service import BulkSynchronizer
from .crm_service import AssignmentRegistry, CustomerRegistry, StaffRegistry
from .links_service import LinkBuilder
from .products_service import ProductRegistry
from .settings_service import SettingsStore
from .token_service import TokenAuthority

EXTENSION_KEY = "qrfactory"


@dataclass
class Services:
    settings: SettingsStore
    audit: AuditLedger
    links: LinkBuilder
    products: ProductRegistry
    customers: CustomerRegistry
    staff: StaffRegistry
    assignments: AssignmentRegistry
    tokens: TokenAuthority
    bulk: BulkSynchronizer


def build_services(app: Flask, db) -> Services:
    logger = app.logger
    settings = SettingsStore(db, logger, default_install_url=app.config["DEFAULT_INSTALL_URL"])
    audit = AuditLedger(db, logger)
    links = LinkBuilder(settings, configured_base=app.config.get("PUBLIC_BASE_URL") or "")
    return Services(
        settings=settings,
        audit=audit,
        links=links,
        products=ProductRegistry(db, audit, logger),
        customers=CustomerRegistry(db, audit, logger),
        staff=StaffRegistry(db, audit, logger),
        assignments=AssignmentRegistry(db, audit, logger),
        tokens=TokenAuthority(db, settings, audit, links, logger),
        bulk=BulkSynchronizer(db, settings, audit, logger),
    )


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
