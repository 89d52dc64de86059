import json
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_marshmallow import Marshmallow
from flask_bcrypt import Bcrypt
from flask_login import LoginManager

app = Flask(__name__)


def _json_config(name, default=None):
    """Parse a JSON environment variable, falling back to *default* when it is malformed."""
    raw = os.environ.get(name)
    if not raw:
        return {} if default is None else default
    try:
        value = json.loads(raw)
    except ValueError as exc:
        app.logger.warning("Ignoring malformed %s: %s", name, exc)
        return {} if default is None else default
    if not isinstance(value, dict):
        app.logger.warning("Ignoring %s: expected a JSON object", name)
        return {} if default is None else default
    return value


app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///scripti18n.db')
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'change-me-please')
# The build step drops the script -> source strings map next to the package.
app.config['TRANSLATION_MAP_PATH'] = os.environ.get(
    'TRANSLATION_MAP_PATH',
    os.path.join(os.path.dirname(app.root_path), 'translation-map.json'),
)
# An inline map takes precedence over TRANSLATION_MAP_PATH when non-empty.
app.config['TRANSLATION_MAP'] = None
# Static {domain: catalog} data; when unset catalogs come from the database.
app.config['CATALOGS'] = None
app.config['DEFAULT_LOCALE'] = os.environ.get('DEFAULT_LOCALE', 'en')
app.config['AVAILABLE_LOCALES'] = tuple(
    code.strip() for code in os.environ.get('AVAILABLE_LOCALES', 'en').split(',') if code.strip()
)
app.config['DEFAULT_TEXT_DOMAIN'] = os.environ.get('DEFAULT_TEXT_DOMAIN', 'default')
app.config['CATALOG_CACHE_TTL'] = int(os.environ.get('CATALOG_CACHE_TTL', '300'))
app.config['CATALOG_CACHE_MAX_ENTRIES'] = int(os.environ.get('CATALOG_CACHE_MAX_ENTRIES', '256'))
# handle -> domain (or {"domain": ..., "chunk": ...}) seeded into every request's registry
app.config['SCRIPT_I18N'] = _json_config('SCRIPT_I18N')
# handle -> {"src": ..., "deps": [...]} registered with every request's script queue
app.config['SCRIPTS'] = _json_config('SCRIPTS')
db = SQLAlchemy(app)
ma = Marshmallow(app)
# Lower rounds only make sense in tests.
app.config['BCRYPT_LOG_ROUNDS'] = int(os.environ.get('BCRYPT_LOG_ROUNDS', '12'))
bcrypt = Bcrypt(app)
login_manager = LoginManager(app)

from scripti18n import routes
