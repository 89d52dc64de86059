"""Translation subsetting for client scripts.

Every enqueued script only needs the handful of strings it actually uses, so
instead of shipping a whole domain catalog to the browser we intersect the
catalog with the source strings the build step recorded for the script.  The
catalog's ``""`` entry carries the Jed header (domain, language, plural
forms) and always travels along with the subset.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

# Key of the Jed header record inside a catalog.
METADATA_KEY = ""

_SLASH_TABLE = str.maketrans({
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\0": "\\0",
})

# Characters that must not appear verbatim inside an inline <script> body.
_HTML_UNSAFE = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("'", "\\u0027"),
)


def slash_string(value: str) -> str:
    """Backslash-escape quotes, backslashes and NUL in *value*."""
    return value.translate(_SLASH_TABLE)


def normalise_string_set(string_set: Iterable) -> List[str]:
    """Drop falsy and non-string entries and deduplicate, keeping order."""
    seen = set()
    normalised = []
    for value in string_set:
        if not value or not isinstance(value, str):
            continue
        if value in seen:
            continue
        seen.add(value)
        normalised.append(value)
    return normalised


def get_source_strings(source_index: Mapping, script_id: str, alias: Optional[str] = None) -> List[str]:
    """Return the original strings the build step recorded for *script_id*.

    The legacy chunk *alias* is only consulted when the handle itself is not
    in the index.
    """
    if not isinstance(source_index, Mapping):
        return []
    strings = source_index.get(script_id)
    if strings is None and alias:
        strings = source_index.get(alias)
    if not isinstance(strings, (list, tuple, set, frozenset)):
        return []
    return list(strings)


def get_locale_data_matching_map(string_set, translations) -> Dict:
    """Return the entries of *translations* whose keys appear in *string_set*.

    A catalog key matches a source string whether it was stored raw or with
    its quotes slashed, so ``it's`` finds both ``it's`` and ``it\\'s``.  The
    catalog's own key and value are kept for every match.
    """
    if not isinstance(string_set, (list, tuple, set, frozenset)) or not isinstance(translations, Mapping):
        return {}
    if not string_set or not translations:
        return {}
    lookup = set()
    for value in normalise_string_set(string_set):
        lookup.add(value)
        lookup.add(slash_string(value))
    return {key: value for key, value in translations.items() if key in lookup}


def compute_subset(
    script_id: str,
    domain: str,
    source_index: Mapping,
    catalog: Mapping,
    alias: Optional[str] = None,
) -> Dict:
    """Return the part of *catalog* that *script_id* needs, header included."""
    if not isinstance(catalog, Mapping):
        return {}
    strings = get_source_strings(source_index, script_id, alias)
    matched = get_locale_data_matching_map(strings, catalog)
    subset = {}
    if METADATA_KEY in catalog:
        subset[METADATA_KEY] = catalog[METADATA_KEY]
    for key, value in matched.items():
        if key != METADATA_KEY:
            subset[key] = value
    logger.debug(
        "Subset for %s in domain %r: %d of %d entries",
        script_id, domain, len(subset), len(catalog),
    )
    return subset


def has_translations(subset: Mapping) -> bool:
    """True when *subset* holds anything besides the header record."""
    return any(key != METADATA_KEY for key in subset)


def serialise_locale_data(translations: Mapping) -> str:
    """Compact JSON for *translations* that is safe inside a script element."""
    payload = json.dumps(translations, separators=(",", ":"))
    for char, escaped in _HTML_UNSAFE:
        payload = payload.replace(char, escaped)
    return payload


def build_inline_script(translations: Mapping, domain: str = "") -> str:
    """Return the ``wp.i18n.setLocaleData`` call that loads *translations*."""
    payload = serialise_locale_data(translations)
    if domain:
        return "wp.i18n.setLocaleData(%s, %s);" % (payload, domain)
    return "wp.i18n.setLocaleData(%s);" % payload
