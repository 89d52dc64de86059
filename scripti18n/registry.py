"""Per-request record of which translation domain feeds each script handle."""

from __future__ import annotations

from typing import Dict, Mapping, Optional


class ScriptI18nRegistry:
    """Handles registered for translation, consumed once they are printed.

    Registering the same handle twice keeps the last domain.  ``consume``
    removes the entry so a handle never gets its translations emitted twice.
    """

    def __init__(self) -> None:
        self._registered: Dict[str, str] = {}
        self._aliases: Dict[str, str] = {}

    @classmethod
    def from_config(cls, mapping: Optional[Mapping]) -> "ScriptI18nRegistry":
        """Build a registry from the ``SCRIPT_I18N`` config entry."""
        registry = cls()
        if not isinstance(mapping, Mapping):
            return registry
        for handle, entry in mapping.items():
            if isinstance(entry, Mapping):
                registry.register(handle, entry.get('domain') or '', entry.get('chunk'))
            elif isinstance(entry, str):
                registry.register(handle, entry)
        return registry

    def register(self, script_id: str, domain: str, chunk_name: Optional[str] = None) -> None:
        self._registered[script_id] = domain
        if chunk_name:
            self._aliases[script_id] = chunk_name

    def consume(self, script_id: str) -> Optional[str]:
        """Return the domain for *script_id* and forget the registration."""
        return self._registered.pop(script_id, None)

    def alias_for(self, script_id: str) -> Optional[str]:
        """Legacy chunk name the source map may list *script_id* under."""
        return self._aliases.get(script_id)

    def __contains__(self, script_id: object) -> bool:
        return script_id in self._registered

    def __len__(self) -> int:
        return len(self._registered)

    def __bool__(self) -> bool:
        return bool(self._registered)
