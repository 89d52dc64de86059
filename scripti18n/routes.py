import os
from collections.abc import Mapping

from flask import g, jsonify, request, session
from flask_login import login_required
from marshmallow import ValidationError

from scripti18n import app, db, login_manager
from scripti18n.catalogs import DatabaseCatalogProvider, DictCatalogProvider, invalidate_catalog_cache
from scripti18n.dispatcher import ScriptTranslationDispatcher
from scripti18n.i18n import has_translations
from scripti18n.models import (
    CatalogHeader,
    CatalogHeaderSchema,
    CatalogUpdateSchema,
    Translation,
    TranslationSchema,
    User,
)
from scripti18n.registry import ScriptI18nRegistry
from scripti18n.scripts import ScriptQueue
from scripti18n.source_map import load_source_index

with app.app_context():
    db.create_all()
    # Catalog writes need an account; one can be seeded from the environment.
    initial_username = os.environ.get('ADMIN_INITIAL_USERNAME', 'admin')
    initial_password = os.environ.get('ADMIN_INITIAL_PASSWORD')
    if initial_password and not db.session.query(User).filter(User.username == initial_username).first():
        admin_user = User(username=initial_username)
        admin_user.set_password(initial_password)
        db.session.add(admin_user)
        db.session.commit()
        app.logger.info("Created admin user %r from configuration", initial_username)

# Loaded on first use, read-only afterwards and shared by every request.
source_index_cache = {
    'data': None,
}


def get_source_index():
    if source_index_cache['data'] is None:
        source_index_cache['data'] = load_source_index(
            app.config.get('TRANSLATION_MAP'),
            app.config.get('TRANSLATION_MAP_PATH'),
        )
        app.logger.info("Loaded translation map with %d scripts", len(source_index_cache['data']))
    return source_index_cache['data']


def reset_source_index():
    source_index_cache['data'] = None


def _normalise_locale(candidate):
    if not candidate:
        return None
    normalised = str(candidate).strip()
    if normalised in app.config.get('AVAILABLE_LOCALES', ()):
        return normalised
    return None


def _resolve_locale_from_request():
    """Determine the active locale for the current request."""
    return (
        _normalise_locale(request.args.get('lang'))
        or _normalise_locale(session.get('lang'))
        or app.config.get('DEFAULT_LOCALE', 'en')
    )


@login_manager.user_loader
def load_user(user_id):
    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None


@login_manager.request_loader
def load_user_from_request(req):
    """Authenticate API clients with HTTP Basic credentials."""
    auth = req.authorization
    if not auth or not auth.username or not auth.password:
        return None
    user = db.session.query(User).filter(User.username == auth.username).first()
    if user is None or not user.is_active or not user.check_password(auth.password):
        return None
    return user


def _catalog_provider_for(locale):
    catalogs = app.config.get('CATALOGS')
    if isinstance(catalogs, Mapping):
        return DictCatalogProvider(catalogs)
    return DatabaseCatalogProvider(locale)


@app.before_request
def _set_script_context():
    locale = _resolve_locale_from_request()
    session['lang'] = locale
    g.current_locale = locale
    g.i18n_registry = ScriptI18nRegistry.from_config(app.config.get('SCRIPT_I18N'))
    g.script_queue = ScriptQueue()
    for handle, script in (app.config.get('SCRIPTS') or {}).items():
        if isinstance(script, Mapping) and script.get('src'):
            g.script_queue.register(handle, script['src'], script.get('deps') or ())
    g.script_dispatcher = ScriptTranslationDispatcher(
        g.i18n_registry,
        get_source_index(),
        _catalog_provider_for(locale),
        g.script_queue,
    )
    g.script_queue.print_hooks.append(g.script_dispatcher.queue_i18n)


@app.context_processor
def inject_script_helpers():
    queue = getattr(g, 'script_queue', None)
    registry = getattr(g, 'i18n_registry', None)

    def enqueue_script(handle, src=None, deps=()):
        if queue is not None:
            queue.enqueue(handle, src, deps)
        return ''

    def register_script_i18n(handle, domain='', chunk_name=None):
        if registry is not None:
            registry.register(handle, domain, chunk_name)
        return ''

    def print_scripts():
        if queue is None:
            return ''
        return queue.print_scripts()

    return {
        'current_locale': getattr(g, 'current_locale', app.config.get('DEFAULT_LOCALE', 'en')),
        'enqueue_script': enqueue_script,
        'register_script_i18n': register_script_i18n,
        'print_scripts': print_scripts,
    }


def json_success(message='OK', status=200, **extra):
    """Create a standard JSON success response."""
    payload = {'success': True}
    if message is not None:
        payload['message'] = message
    if extra:
        payload.update(extra)
    return jsonify(payload), status


def json_error(message, status=400, **extra):
    """Create a standard JSON error response."""
    payload = {'success': False, 'message': message}
    if extra:
        payload.update(extra)
    return jsonify(payload), status


@app.route('/api/locale-data/<handle>/')
def api_locale_data(handle):
    """Subset catalog a script would receive on a page in the current locale."""
    alias = g.i18n_registry.alias_for(handle)
    domain = request.args.get('domain')
    if domain is None:
        domain = g.i18n_registry.consume(handle)
    if domain is None:
        return json_error('Script is not registered for translation.', status=404)
    translations = g.script_dispatcher.get_locale_data(handle, domain, alias)
    if not has_translations(translations):
        return json_error('No translations for this script.', status=404, domain=domain)
    return json_success(
        None,
        handle=handle,
        domain=domain,
        locale=g.current_locale,
        translations=translations,
    )


@app.route('/api/translations/<domain>/', methods=['POST'])
@login_required
def api_update_translations(domain):
    """Create or update catalog entries for one locale of *domain*."""
    data = request.get_json(silent=True) or {}
    try:
        payload = CatalogUpdateSchema().load(data)
    except ValidationError as exc:
        return json_error('Invalid catalog payload.', errors=exc.messages)
    locale = _normalise_locale(payload['locale'])
    if locale is None:
        return json_error('Unsupported locale.', errors={'locale': [payload['locale']]})

    if payload.get('plural_forms'):
        header = (
            db.session.query(CatalogHeader)
            .filter(CatalogHeader.locale == locale, CatalogHeader.domain == domain)
            .first()
        )
        if header is None:
            header = CatalogHeader(locale=locale, domain=domain)
            db.session.add(header)
        header.plural_forms = payload['plural_forms']

    created = updated = 0
    for entry in payload['entries']:
        row = (
            db.session.query(Translation)
            .filter(
                Translation.locale == locale,
                Translation.domain == domain,
                Translation.context == entry.get('context'),
                Translation.msgid == entry['msgid'],
            )
            .first()
        )
        if row is None:
            row = Translation(
                locale=locale,
                domain=domain,
                context=entry.get('context'),
                msgid=entry['msgid'],
            )
            db.session.add(row)
            created += 1
        else:
            updated += 1
        row.msgstr = list(entry['msgstr'])
    db.session.commit()
    invalidate_catalog_cache(locale, domain)
    app.logger.info("Catalog %s/%s: %d created, %d updated", locale, domain, created, updated)
    return json_success('Catalog updated.', created=created, updated=updated)


@app.route('/api/translations/<domain>/', methods=['GET'])
def api_list_translations(domain):
    """Raw catalog rows for *domain* in the current locale."""
    locale = g.current_locale
    header = (
        db.session.query(CatalogHeader)
        .filter(CatalogHeader.locale == locale, CatalogHeader.domain == domain)
        .first()
    )
    rows = (
        db.session.query(Translation)
        .filter(Translation.locale == locale, Translation.domain == domain)
        .order_by(Translation.id)
        .all()
    )
    return json_success(
        None,
        header=CatalogHeaderSchema().dump(header) if header else None,
        translations=TranslationSchema(many=True).dump(rows),
        count=len(rows),
    )
