"""A small request-local script loader.

Templates enqueue scripts by handle; when the page asks for its script tags
the queue resolves dependencies, lets its print hooks look at the final
handle list and renders each script together with its inline snippets.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence

from markupsafe import Markup, escape

POSITIONS = ('before', 'after')


class ScriptQueue:

    def __init__(self, print_hooks: Optional[Iterable[Callable[[List[str]], List[str]]]] = None):
        self.registered: Dict[str, Dict] = {}
        self.queue: List[str] = []
        self.inline: Dict[str, Dict[str, List[str]]] = {}
        self.print_hooks = list(print_hooks or ())
        self.printed = False

    def register(self, handle: str, src: str, deps: Sequence[str] = ()) -> None:
        self.registered[handle] = {'src': src, 'deps': list(deps or ())}

    def enqueue(self, handle: str, src: Optional[str] = None, deps: Sequence[str] = ()) -> None:
        if src is not None:
            self.register(handle, src, deps)
        if handle not in self.queue:
            self.queue.append(handle)

    def add_inline_script(self, handle: str, data: str, position: str = 'after') -> bool:
        """Attach *data* to run right before or after *handle* loads."""
        if position not in POSITIONS or handle not in self.registered or not data:
            return False
        self.inline.setdefault(handle, {}).setdefault(position, []).append(data)
        return True

    def to_print(self) -> List[str]:
        """Enqueued handles in load order, dependencies first."""
        ordered: List[str] = []
        visiting = set()

        def visit(handle):
            if handle in ordered or handle in visiting or handle not in self.registered:
                return
            visiting.add(handle)
            for dep in self.registered[handle]['deps']:
                visit(dep)
            visiting.discard(handle)
            ordered.append(handle)

        for handle in self.queue:
            visit(handle)
        return ordered

    def _inline_tag(self, handle: str, position: str) -> str:
        snippets = self.inline.get(handle, {}).get(position)
        if not snippets:
            return ''
        return '<script id="%s-js-%s">\n%s\n</script>\n' % (
            escape(handle), position, '\n'.join(snippets),
        )

    def render_handle(self, handle: str) -> str:
        script = self.registered[handle]
        return '%s<script src="%s" id="%s-js"></script>\n%s' % (
            self._inline_tag(handle, 'before'),
            escape(script['src']),
            escape(handle),
            self._inline_tag(handle, 'after'),
        )

    def print_scripts(self) -> Markup:
        if self.printed:
            return Markup('')
        handles = self.to_print()
        for hook in self.print_hooks:
            handles = hook(handles)
        self.printed = True
        return Markup(''.join(self.render_handle(handle) for handle in handles if handle in self.registered))
