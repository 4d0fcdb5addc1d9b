"""Locale string tables.

English is always loaded as the baseline; a locale table only needs the keys
it translates. Command literals live here too, so a locale may rename them.
"""

import logging

logger = logging.getLogger(__name__)

Strings = dict[str, str]

DEFAULT_LOCALE = "en"

_TABLES: dict[str, Strings] = {
    "en": {
        "main_panel_title": "Character custom",
        "close_button_aria_label": "Close Info Window",
        "stats_title": "Stats",
        "nothing_to_show_title": "Nothing to show",
        "nothing_to_show_message": "Start playing to see information",
        "empty_value": "(none)",
        "changelog_title": "Changelog",
        "version_fail_title": "Version FAIL",
        "version_fallback_message": "Using last valid version {version}",
        "version_not_found_message": "Version {version} not found!",
        "module_load_failed": "Failed to load required modules:",
        "module_timeout_hint": "Module loading timed out; a circular dependency between modules is the likely cause.",
        "unknown_character": "unknown character",
        "command_stats": "/stats",
        "command_reset_session": "/resetSession",
        "command_clear_all": "/clearAll",
        "command_debug": "/debug",
    },
    "de": {
        "main_panel_title": "Charakter",
        "close_button_aria_label": "Infofenster schließen",
        "stats_title": "Werte",
        "nothing_to_show_title": "Nichts anzuzeigen",
        "nothing_to_show_message": "Spiel los, um Informationen zu sehen",
        "empty_value": "(keine)",
        "changelog_title": "Änderungen",
        "version_fallback_message": "Verwende letzte gültige Version {version}",
        "version_not_found_message": "Version {version} nicht gefunden!",
        "unknown_character": "unbekannte Figur",
    },
}


def available_locales() -> list[str]:
    return sorted(_TABLES)


def load_strings(locale: str | None = DEFAULT_LOCALE) -> Strings:
    """Return the English table overlaid with the given locale's keys.

    None means English; an unknown locale falls back to English with a warning.
    """
    locale = locale or DEFAULT_LOCALE
    strings = dict(_TABLES[DEFAULT_LOCALE])
    if locale == DEFAULT_LOCALE:
        return strings
    overlay = _TABLES.get(locale)
    if overlay is None:
        logger.warning("Unknown locale %r, using %r strings", locale, DEFAULT_LOCALE)
        return strings
    strings.update(overlay)
    return strings


def command_literals(strings: Strings) -> list[str]:
    """The user commands, in dispatch order."""
    return [
        strings["command_stats"],
        strings["command_reset_session"],
        strings["command_clear_all"],
        strings["command_debug"],
    ]
