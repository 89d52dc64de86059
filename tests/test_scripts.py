"""Tests for the request-local script queue."""

from unittest.mock import MagicMock

from markupsafe import Markup

from scripti18n.dispatcher import ScriptTranslationDispatcher
from scripti18n.registry import ScriptI18nRegistry
from scripti18n.scripts import ScriptQueue


class TestScriptQueue:
    """Test cases for ScriptQueue."""

    def test_dependencies_print_first(self) -> None:
        queue = ScriptQueue()
        queue.register("i18n", "/static/i18n.js")
        queue.register("editor", "/static/editor.js", deps=["i18n", "missing"])
        queue.enqueue("editor")
        queue.enqueue("editor")

        assert queue.to_print() == ["i18n", "editor"]

    def test_add_inline_script_rejects_unknown_handle_and_position(self) -> None:
        queue = ScriptQueue()
        queue.register("editor", "/static/editor.js")

        assert queue.add_inline_script("editor", "a();", position="before")
        assert not queue.add_inline_script("editor", "b();", position="middle")
        assert not queue.add_inline_script("other", "c();", position="before")

    def test_print_hooks_receive_handle_list(self) -> None:
        hook = MagicMock(side_effect=lambda handles: handles)
        queue = ScriptQueue(print_hooks=[hook])
        queue.enqueue("editor", "/static/editor.js")

        queue.print_scripts()

        hook.assert_called_once_with(["editor"])

    def test_inline_before_renders_ahead_of_script(self) -> None:
        queue = ScriptQueue()
        queue.enqueue("editor", "/static/editor.js")
        queue.add_inline_script("editor", "setup();", position="before")
        queue.add_inline_script("editor", "boot();")

        html = str(queue.print_scripts())

        assert html.index("setup();") < html.index('src="/static/editor.js"') < html.index("boot();")
        assert '<script id="editor-js-before">' in html

    def test_prints_only_once(self) -> None:
        queue = ScriptQueue()
        queue.enqueue("editor", "/static/editor.js")

        assert isinstance(queue.print_scripts(), Markup)
        assert queue.print_scripts() == Markup("")

    def test_dispatcher_as_print_hook(self) -> None:
        queue = ScriptQueue()
        registry = ScriptI18nRegistry()
        registry.register("a", "d")
        dispatcher = ScriptTranslationDispatcher(
            registry,
            {"a": ["Hello"]},
            lambda domain: {"": ["meta"], "Hello": ["Bonjour"]},
            queue,
        )
        queue.print_hooks.append(dispatcher.queue_i18n)
        queue.enqueue("a", "/static/a.js")

        html = str(queue.print_scripts())

        body = 'wp.i18n.setLocaleData({"":["meta"],"Hello":["Bonjour"]}, d);'
        assert body in html
        assert html.index(body) < html.index('src="/static/a.js"')
