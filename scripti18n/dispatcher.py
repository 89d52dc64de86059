"""Attach per-script translation subsets while scripts are being printed."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping

from scripti18n.i18n import build_inline_script, compute_subset, has_translations
from scripti18n.registry import ScriptI18nRegistry

logger = logging.getLogger(__name__)

COLLECTING = "collecting"
FLUSHED = "flushed"


class ScriptTranslationDispatcher:
    """Queue translations for enqueued handles and hand them to the loader.

    ``queue_i18n`` is meant to be installed as a print hook on a script
    queue: it receives the handles about to be printed, queues an inline
    ``setLocaleData`` call ahead of every handle that has translations and
    returns the handle list untouched.  One dispatcher serves one request;
    after the first flush it ignores further calls.
    """

    def __init__(
        self,
        registry: ScriptI18nRegistry,
        source_index: Mapping,
        catalog_provider: Callable[[str], Mapping],
        script_loader,
    ) -> None:
        self.registry = registry
        self.source_index = source_index
        self.catalog_provider = catalog_provider
        self.script_loader = script_loader
        self.state = COLLECTING
        self._queued: Dict[str, Dict] = {}

    def queue_i18n(self, handles: List[str]) -> List[str]:
        if self.state == FLUSHED:
            return handles
        if not self.registry or not self.source_index:
            return handles
        for handle in handles or ():
            self.queue_handle(handle)
        self.flush()
        return handles

    def queue_handle(self, handle: str) -> None:
        alias = self.registry.alias_for(handle)
        domain = self.registry.consume(handle)
        if domain is None:
            return
        translations = self.get_locale_data(handle, domain, alias)
        if has_translations(translations):
            self._queued[handle] = {
                'domain': domain,
                'translations': translations,
            }

    def get_locale_data(self, handle: str, domain: str, alias=None) -> Dict:
        """Fetch *domain*'s catalog and cut it down to what *handle* uses."""
        try:
            catalog = self.catalog_provider(domain)
        except Exception as exc:
            logger.warning("Could not load catalog for domain %r: %s", domain, exc)
            return {}
        if not isinstance(catalog, Mapping):
            logger.warning("Catalog for domain %r is not a mapping; skipping %s", domain, handle)
            return {}
        return compute_subset(handle, domain, self.source_index, catalog, alias=alias)

    def flush(self) -> None:
        for handle, queued in self._queued.items():
            self.script_loader.add_inline_script(
                handle,
                build_inline_script(queued['translations'], queued['domain']),
                position='before',
            )
        self._queued = {}
        self.state = FLUSHED

    @property
    def queued(self) -> Dict[str, Dict]:
        return dict(self._queued)
