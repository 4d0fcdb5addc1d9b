"""Plugin context handed explicitly to every stage and command handler."""

from dataclasses import dataclass

from tale_companion.config import Settings
from tale_companion.debuglog import DebugLog
from tale_companion.llm import InstructLLM
from tale_companion.models import Thread
from tale_companion.panel import Panel
from tale_companion.strings import Strings


@dataclass
class PluginContext:
    thread: Thread
    llm: InstructLLM
    panel: Panel
    debug: DebugLog
    strings: Strings
    settings: Settings

    @property
    def hide_from_user(self) -> bool:
        """Plugin bookkeeping is hidden from the user unless debug mode is on."""
        return not self.thread.state.is_debug
