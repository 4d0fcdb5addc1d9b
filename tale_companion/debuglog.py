"""Debug logger that mirrors entries into the thread while debug mode is on.

Entries always go to the standard logger. With `thread.state.is_debug` set
they are also appended to the thread as `debug` messages hidden from the AI
and flagged `is_debug_log`, so leaving debug mode can remove them again.
"""

import json
import logging
from typing import Any

from pydantic import BaseModel

from tale_companion.models import Message, Thread

logger = logging.getLogger(__name__)


def stringify(value: Any) -> str:
    """Render a value for a debug entry. Never raises."""
    if isinstance(value, str):
        return value
    try:
        if isinstance(value, BaseModel):
            return value.model_dump_json(indent=2)
        return json.dumps(value, indent=2)
    except (TypeError, ValueError):
        return str(value)


class DebugLog:
    def __init__(self, thread: Thread) -> None:
        self._thread = thread

    @property
    def enabled(self) -> bool:
        return self._thread.state.is_debug

    def log(self, value: Any = "Got here") -> None:
        content = stringify(value)
        logger.debug(content)
        if not self.enabled:
            return
        self._thread.messages.append(Message(
            author="debug",
            name="DEBUG",
            content=content,
            hidden_from={"ai"},
            original_hidden_from={"ai"},
            is_debug_log=True,
            expects_reply=False,
        ))
