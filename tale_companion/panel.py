"""Side panel rendering with Handlebars templates.

The host window shows one HTML document at a time; every refresh replaces
it wholesale. Screens are kept on a backstack and only the top screen is
redrawn by refresh().
"""

from collections.abc import Callable
from typing import Any, Protocol

import pybars

from tale_companion.debuglog import DebugLog
from tale_companion.models import Thread, VersionDescriptor
from tale_companion.strings import Strings, load_strings

STATS_SCREEN = "stats"

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class RenderError(Exception):
    """Raised when a panel template fails to compile or render."""


MAIN_PANEL_TEMPLATE = """\
<div style="position: relative; width: 100%; height: 100%; font-family: sans-serif; display: flex; flex-direction: column;">
  <div style="flex: 0 0 auto; padding: 10px 20px; background: #333; color: white; font-weight: bold; font-size: 1.2em; display: flex; justify-content: space-between; align-items: center;">
    <div id="panelTitle">{{title}}</div>
    <button style="background: transparent; border: none; color: white; font-size: 1.2em; cursor: pointer;" aria-label="{{close_label}}" onclick="oc.window.hide()">&#10060;</button>
  </div>
  <div id="panelContent" style="flex: 1 1 auto; padding: 20px; overflow-y: auto;">
{{{content}}}
  </div>
</div>
"""

TEXT_TEMPLATE = """\
<div style="margin-top: 20px; text-align: {{align}};">
  {{#if title}}<div style="font-size: 1.3em; color: #222; font-weight: bold; margin-bottom: 8px;">{{title}}</div>{{/if}}
  <div style="font-size: 1.1em; color: #666; white-space: pre-wrap;">{{message}}</div>
</div>
"""

TEXT_BOX_TEMPLATE = """\
<div class="property-item" style="margin-bottom: 12px;">
  {{#if title}}<h3 style="margin: 0 0 4px 0; font-weight: bold;">{{title}}</h3>{{/if}}
  <div style="border: 1px solid black; padding: 6px 10px; border-radius: 3px; white-space: pre-wrap;">{{description}}</div>
</div>
"""


def render(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template; templates are cached by source."""
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise RenderError(f"Template error: {e}") from e


def main_panel(title: str, content: str, strings: Strings) -> str:
    return render(MAIN_PANEL_TEMPLATE, {
        "title": title or strings["main_panel_title"],
        "close_label": strings["close_button_aria_label"],
        "content": content,
    })


def text(message: str, title: str | None = None, align: str = "left") -> str:
    return render(TEXT_TEMPLATE, {"title": title, "message": message, "align": align})


def text_box(description: str, title: str | None = None) -> str:
    return render(TEXT_BOX_TEMPLATE, {"title": title, "description": description})


def title_case(key: str) -> str:
    """Upper-case only the first letter: "inventory" -> "Inventory"."""
    return key[:1].upper() + key[1:]


def stats_content(summary: dict[str, str], strings: Strings) -> str:
    if not summary:
        return text(
            strings["nothing_to_show_message"],
            title=strings["nothing_to_show_title"],
            align="center",
        )
    return "".join(
        text_box(value or strings["empty_value"], title=title_case(key))
        for key, value in summary.items()
    )


def changelog_content(versions: list[VersionDescriptor]) -> str:
    return "".join(text(v.changelog, title=v.name) for v in versions)


class PanelHost(Protocol):
    """The host window the panel draws into."""

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def set_content(self, html: str) -> None: ...


class InMemoryPanelHost:
    """Keeps the last rendered document; used by the web host and in tests."""

    def __init__(self) -> None:
        self.visible = False
        self.html = ""

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def set_content(self, html: str) -> None:
        self.html = html


def show_changelog(
    host: PanelHost,
    thread: Thread,
    content: str,
    title: str | None = None,
    strings: Strings | None = None,
) -> None:
    """Show a changelog or version notice unless the thread opted out."""
    if not thread.state.show_changelog:
        return
    strings = strings or load_strings(thread.state.locale)
    host.show()
    host.set_content(main_panel(title or strings["changelog_title"], content, strings))


class Panel:
    """Screen stack over a PanelHost, reading state from the thread."""

    def __init__(
        self, host: PanelHost, thread: Thread, strings: Strings, debug: DebugLog
    ) -> None:
        self.host = host
        self._thread = thread
        self._strings = strings
        self._debug = debug
        self.backstack: list[str] = []

    def show(self) -> None:
        self.host.show()
        self.refresh()

    def refresh(self) -> None:
        if not self.backstack:
            return
        if self.backstack[-1] == STATS_SCREEN:
            self._update_stats_screen()

    def show_stats_screen(self) -> None:
        self._debug.log("show_stats_screen")
        if not self.backstack or self.backstack[-1] != STATS_SCREEN:
            self.backstack.append(STATS_SCREEN)
        self.show()

    def _update_stats_screen(self) -> None:
        content = stats_content(self._thread.state.context_summary, self._strings)
        self.host.set_content(
            main_panel(self._strings["stats_title"], content, self._strings)
        )
