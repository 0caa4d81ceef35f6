"""
Pytest fixtures for QR Factory backend tests.

Provides a per-test SQLite database file, the Flask test client and the
wired service container.
"""

from datetime import datetime, timedelta

import pytest

from qrfactory import create_app
from qrfactory.extensions import db
from qrfactory.services import get_services
from qrfactory.services.settings_service import ADMIN_CODE


def make_test_app(db_path, **overrides):
    config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'AUTO_CREATE_DB': True,
        'PUBLIC_BASE_URL': '',
        'DEFAULT_INSTALL_URL': 'https://example.com/install',
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application over a fresh database file."""
    app = make_test_app(tmp_path / 'qr-factory-test.db')
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture(scope='function')
def services(app):
    """Service container inside a pushed app context."""
    with app.app_context():
        yield get_services()
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_code(app):
    with app.app_context():
        return get_services().settings.get(ADMIN_CODE)


@pytest.fixture(scope='function')
def fixed_clock(monkeypatch):
    """
    Deterministic utcnow for the registry services. Each call advances one
    second so "updated_at advances" is observable.
    """
    state = {'now': datetime(2026, 1, 1, 8, 0, 0)}

    def _tick():
        state['now'] = state['now'] + timedelta(seconds=1)
        return state['now']

    monkeypatch.setattr('qrfactory.services.products_service.utcnow', _tick)
    monkeypatch.setattr('qrfactory.services.crm_service.utcnow', _tick)
    return state
