"""Core domain models.

Every stage, command and host adapter operates on these types.
Pydantic is used for validation and serialisation at every data boundary.

The thread is owned by the host platform; the plugin reads and mutates it in
place. Pipeline bookkeeping lives in explicit fields on Message and
ThreadState rather than in one open-ended bag.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Author = Literal["user", "ai", "system", "debug", "failed-init"]

Audience = Literal["ai", "user", "system"]

# Display name given to narration entries by the turn splitter
NARRATION_NAME = " "


class Message(BaseModel):
    """A single entry in a thread."""

    author: Author
    content: str = ""
    name: str | None = None
    hidden_from: set[Audience] = Field(default_factory=set)
    expects_reply: bool | None = None

    # Visibility snapshot taken before the plugin toggles hidden_from
    original_hidden_from: set[Audience] | None = None
    debug_shown: bool = False
    is_debug_log: bool = False
    is_summary: bool = False
    hide_message_info: bool = False
    hide_message_buttons: bool = False

    def visible_to(self, audience: Audience) -> bool:
        return audience not in self.hidden_from


class ShortcutButton(BaseModel):
    """A quick-action button rendered by the host above the input box."""

    name: str
    message: str
    autosend: bool = True
    clear_after_send: bool = True
    insertion_type: str = "replace"
    type: str = "message"


class ThreadState(BaseModel):
    """Thread-scoped plugin state."""

    context_summary: dict[str, str] = Field(default_factory=dict)
    is_debug: bool = False
    saved_shortcut_buttons: list[ShortcutButton] | None = None
    version: str | None = None  # installed (last known-good) module version
    repo_path: str | None = None
    locale: str | None = None  # seeded from Settings.locale by the plugin
    show_changelog: bool = True


class Thread(BaseModel):
    """Ordered conversation plus its attached state."""

    messages: list[Message] = Field(default_factory=list)
    shortcut_buttons: list[ShortcutButton] | None = None
    state: ThreadState = Field(default_factory=ThreadState)

    def remove_messages(self, predicate) -> None:
        """Drop every message for which predicate(message) is true, in place."""
        self.messages[:] = [m for m in self.messages if not predicate(m)]

    def remove_commands(self, command: str) -> None:
        self.remove_messages(lambda m: m.content.strip().startswith(command))


class VersionDescriptor(BaseModel):
    """One entry of the version catalogue."""

    name: str
    changelog: str = ""
    preview: bool = False
