"""
Shared pytest fixtures for the script-i18n tests.

The application is configured at import time, so the database and the
translation map location are pointed at throwaway values before the
package is imported for the first time.
"""

from __future__ import annotations

import os
from collections.abc import Generator

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("TRANSLATION_MAP_PATH", os.path.join(os.path.dirname(__file__), "missing-translation-map.json"))
os.environ.setdefault("AVAILABLE_LOCALES", "en,fr")
os.environ.setdefault("BCRYPT_LOG_ROUNDS", "4")

import pytest
from flask import Flask

from scripti18n import app as flask_app, db
from scripti18n.catalogs import invalidate_catalog_cache
from scripti18n.models import User
from scripti18n.routes import reset_source_index


FRENCH_CATALOG: dict[str, object] = {
    "": {"domain": "editor", "lang": "fr", "plural_forms": "nplurals=2; plural=n > 1;"},
    "Hello": ["Bonjour"],
    "Save": ["Enregistrer"],
    "it's": ["c'est"],
    "Unused": ["Inutilisé"],
}


@pytest.fixture
def app() -> Generator[Flask, None, None]:
    """Application with clean config, caches and tables for each test."""
    saved = {
        key: flask_app.config.get(key)
        for key in ("SCRIPT_I18N", "SCRIPTS", "TRANSLATION_MAP", "CATALOGS")
    }
    flask_app.config.update(TESTING=True, SCRIPT_I18N={}, SCRIPTS={}, TRANSLATION_MAP=None, CATALOGS=None)
    reset_source_index()
    invalidate_catalog_cache()
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
    yield flask_app
    flask_app.config.update(saved)
    reset_source_index()
    invalidate_catalog_cache()


@pytest.fixture
def client(app: Flask):
    return app.test_client()


@pytest.fixture
def source_index() -> dict[str, list[str]]:
    return {
        "editor": ["Hello", "Save", "Hello", ""],
        "quotes": ["it's"],
        "empty": [],
    }


@pytest.fixture
def french_catalog() -> dict[str, object]:
    return dict(FRENCH_CATALOG)


@pytest.fixture
def admin_auth(app: Flask) -> tuple[str, str]:
    """HTTP Basic credentials of an account allowed to write catalogs."""
    with app.app_context():
        user = User(username="translator")
        user.set_password("s3cret")
        db.session.add(user)
        db.session.commit()
    return ("translator", "s3cret")
