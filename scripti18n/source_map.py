"""Loading of the build-generated script -> source strings map."""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Mapping, Optional

from marshmallow import Schema, ValidationError, fields, pre_load

logger = logging.getLogger(__name__)


class SourceIndexSchema(Schema):
    """``{"scripts": {handle: [source string, ...]}}``"""

    scripts = fields.Dict(
        keys=fields.String(),
        values=fields.List(fields.String()),
        required=True,
    )

    @pre_load
    def drop_non_strings(self, data, **kwargs):
        scripts = data.get('scripts') if isinstance(data, Mapping) else None
        if not isinstance(scripts, Mapping):
            return data
        cleaned = {}
        for handle, strings in scripts.items():
            if not isinstance(handle, str) or not isinstance(strings, list):
                continue
            cleaned[handle] = [value for value in strings if isinstance(value, str)]
        return {'scripts': cleaned}


def parse_source_index(raw) -> Dict[str, List[str]]:
    """Validate *raw* as a source index, returning ``{}`` if it is unusable."""
    if not isinstance(raw, Mapping):
        return {}
    try:
        return SourceIndexSchema().load({'scripts': raw})['scripts']
    except ValidationError as exc:
        logger.warning("Ignoring malformed translation map: %s", exc.messages)
        return {}


def load_source_index(source_index: Optional[Mapping] = None, path: Optional[str] = None) -> Dict[str, List[str]]:
    """Return the source index, reading it from *path* when none is given.

    An empty or invalid *source_index* falls back to the JSON file.  A
    missing or unreadable file yields an empty index; a page must still
    render when the map was never built.
    """
    if source_index and isinstance(source_index, Mapping):
        return parse_source_index(source_index)
    if not path:
        return {}
    try:
        with open(path, encoding='utf-8') as handle:
            raw = json.load(handle)
    except FileNotFoundError:
        logger.warning("Translation map not found at %s", path)
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Could not read translation map %s: %s", path, exc)
        return {}
    return parse_source_index(raw)
