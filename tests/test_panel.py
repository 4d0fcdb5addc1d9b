"""Tests for side panel rendering."""

import pytest

from tale_companion.debuglog import DebugLog
from tale_companion.models import VersionDescriptor
from tale_companion.panel import (
    InMemoryPanelHost,
    Panel,
    RenderError,
    changelog_content,
    main_panel,
    render,
    show_changelog,
    stats_content,
    text,
    text_box,
    title_case,
)
from tale_companion.strings import load_strings

STRINGS = load_strings()


@pytest.fixture
def panel(thread, panel_host):
    return Panel(panel_host, thread, strings=STRINGS, debug=DebugLog(thread))


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def test_render_substitutes_values():
    assert render("Hello {{name}}", {"name": "Mira"}) == "Hello Mira"


def test_render_error_wraps_template_failures():
    with pytest.raises(RenderError):
        render("{{#if title}}never closed", {})


def test_text_escapes_html():
    html = text("<b>bold</b>")
    assert "&lt;b&gt;bold&lt;/b&gt;" in html


def test_text_without_title_omits_heading():
    assert "font-weight: bold" not in text("body")
    assert "Heading" in text("body", title="Heading")


def test_text_alignment():
    assert "text-align: center;" in text("x", align="center")


def test_text_box_contains_title_and_description():
    html = text_box("rope", title="Inventory")
    assert "<h3" in html
    assert "Inventory" in html
    assert "rope" in html


def test_main_panel_embeds_content_unescaped():
    html = main_panel("Stats", "<p>inner</p>", STRINGS)
    assert "<p>inner</p>" in html
    assert "Stats" in html
    assert "Close Info Window" in html


def test_main_panel_default_title():
    assert "Character custom" in main_panel("", "", STRINGS)


def test_title_case():
    assert title_case("inventory") == "Inventory"
    assert title_case("") == ""


def test_stats_content_empty_summary():
    html = stats_content({}, STRINGS)
    assert "Nothing to show" in html
    assert "Start playing to see information" in html


def test_stats_content_one_box_per_property():
    html = stats_content({"inventory": "rope", "skills": ""}, STRINGS)
    assert html.count('class="property-item"') == 2
    assert "Inventory" in html
    assert "Skills" in html
    assert "(none)" in html


def test_changelog_content_lists_versions():
    html = changelog_content([
        VersionDescriptor(name="1.0", changelog="First"),
        VersionDescriptor(name="1.1", changelog="Second"),
    ])
    assert html.index("First") < html.index("Second")


# ---------------------------------------------------------------------------
# Hosts and screens
# ---------------------------------------------------------------------------

def test_in_memory_host():
    host = InMemoryPanelHost()
    host.show()
    host.set_content("<p/>")
    assert host.visible
    assert host.html == "<p/>"
    host.hide()
    assert not host.visible


def test_show_changelog(thread, panel_host):
    show_changelog(panel_host, thread, "<p>notes</p>")
    assert panel_host.visible
    assert "Changelog" in panel_host.html
    assert "<p>notes</p>" in panel_host.html


def test_show_changelog_respects_opt_out(thread, panel_host):
    thread.state.show_changelog = False
    show_changelog(panel_host, thread, "<p>notes</p>")
    assert not panel_host.visible
    assert panel_host.html == ""


def test_refresh_without_screen_draws_nothing(panel, panel_host):
    panel.refresh()
    assert panel_host.html == ""


def test_show_stats_screen(panel, panel_host, thread):
    thread.state.context_summary = {"location": "Harbor"}
    panel.show_stats_screen()
    assert panel.backstack == ["stats"]
    assert panel_host.visible
    assert "Harbor" in panel_host.html


def test_refresh_redraws_stats_screen(panel, panel_host, thread):
    panel.show_stats_screen()
    thread.state.context_summary = {"location": "Harbor"}
    panel.refresh()
    assert "Harbor" in panel_host.html
