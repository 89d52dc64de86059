"""Catalog providers: ``provider(domain)`` returns Jed locale data for a domain."""

from __future__ import annotations

import copy
import time
from typing import Dict, Mapping, Optional, Tuple

from scripti18n import app, db
from scripti18n.i18n import METADATA_KEY
from scripti18n.models import CatalogHeader, Translation

DEFAULT_PLURAL_FORMS = 'nplurals=2; plural=n != 1;'

# Built catalogs are shared between requests and only read afterwards.
catalog_cache: Dict[str, object] = {
    'data': {},
    'timestamps': {},
}


def invalidate_catalog_cache(locale: Optional[str] = None, domain: Optional[str] = None) -> None:
    """Forget cached catalogs, all of them or only the matching ones."""
    if locale is None and domain is None:
        catalog_cache['data'] = {}
        catalog_cache['timestamps'] = {}
        return
    for key in list(catalog_cache['data']):
        cached_locale, cached_domain = key
        if locale is not None and cached_locale != locale:
            continue
        if domain is not None and cached_domain != domain:
            continue
        catalog_cache['data'].pop(key, None)
        catalog_cache['timestamps'].pop(key, None)


class DictCatalogProvider:
    """Serve pre-built catalogs from a ``{domain: catalog}`` mapping."""

    def __init__(self, catalogs: Optional[Mapping] = None):
        self.catalogs = dict(catalogs or {})

    def __call__(self, domain: str) -> Mapping:
        catalog = self.catalogs.get(domain)
        if not isinstance(catalog, Mapping):
            return {}
        return catalog


class DatabaseCatalogProvider:
    """Build catalogs for one locale from the ``translations`` table."""

    def __init__(self, locale: str, ttl: Optional[int] = None):
        self.locale = locale
        self.ttl = app.config.get('CATALOG_CACHE_TTL', 300) if ttl is None else ttl

    def resolve_domain(self, domain: str) -> str:
        return domain or app.config.get('DEFAULT_TEXT_DOMAIN', 'default')

    def __call__(self, domain: str) -> Mapping:
        domain = self.resolve_domain(domain)
        key: Tuple[str, str] = (self.locale, domain)
        now = time.time()
        cached = catalog_cache['data'].get(key)
        if cached is not None and now - catalog_cache['timestamps'].get(key, 0) < self.ttl:
            return cached
        catalog = self.build_catalog(domain)
        # Unknown domains are not cached; they would let any request grow the cache.
        if not catalog:
            return catalog
        self.store(key, catalog, now)
        app.logger.debug("Cached catalog %s/%s with %d entries", self.locale, domain, len(catalog))
        return catalog

    def store(self, key: Tuple[str, str], catalog: Dict, now: float) -> None:
        data = catalog_cache['data']
        timestamps = catalog_cache['timestamps']
        for stale in [k for k, stamp in timestamps.items() if now - stamp >= self.ttl]:
            data.pop(stale, None)
            timestamps.pop(stale, None)
        max_entries = app.config.get('CATALOG_CACHE_MAX_ENTRIES', 256)
        data.pop(key, None)
        timestamps.pop(key, None)
        while data and len(data) >= max_entries:
            oldest = min(timestamps, key=timestamps.get)
            data.pop(oldest, None)
            timestamps.pop(oldest, None)
        if max_entries > 0:
            data[key] = catalog
            timestamps[key] = now

    def build_catalog(self, domain: str) -> Dict:
        header = (
            db.session.query(CatalogHeader)
            .filter(CatalogHeader.locale == self.locale, CatalogHeader.domain == domain)
            .first()
        )
        rows = (
            db.session.query(Translation)
            .filter(Translation.locale == self.locale, Translation.domain == domain)
            .order_by(Translation.id)
            .all()
        )
        if header is None and not rows:
            return {}
        catalog = {
            METADATA_KEY: {
                'domain': domain,
                'lang': self.locale,
                'plural_forms': header.plural_forms if header else DEFAULT_PLURAL_FORMS,
            },
        }
        for row in rows:
            catalog[row.catalog_key] = copy.copy(row.msgstr) or []
        return catalog
