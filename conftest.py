from dataclasses import dataclass

import pytest

from tale_companion.config import Settings
from tale_companion.context import PluginContext
from tale_companion.debuglog import DebugLog
from tale_companion.models import Message, Thread
from tale_companion.panel import InMemoryPanelHost, Panel
from tale_companion.strings import load_strings


@dataclass
class LLMCall:
    instruction: str
    start_with: str | None
    stop_sequences: list[str] | None


class StubLLM:
    """Records every call and returns canned responses in order ("" when exhausted)."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls: list[LLMCall] = []

    async def __call__(self, instruction, start_with=None, stop_sequences=None):
        self.calls.append(LLMCall(instruction, start_with, stop_sequences))
        if len(self.calls) <= len(self.responses):
            return self.responses[len(self.calls) - 1]
        return ""

    @property
    def call_count(self):
        return len(self.calls)


def ai(content, **kwargs) -> Message:
    return Message(author="ai", content=content, **kwargs)


def user(content, **kwargs) -> Message:
    return Message(author="user", content=content, **kwargs)


@pytest.fixture
def thread() -> Thread:
    return Thread()


@pytest.fixture
def stub_llm() -> StubLLM:
    return StubLLM()


@pytest.fixture
def panel_host() -> InMemoryPanelHost:
    return InMemoryPanelHost()


@pytest.fixture
def ctx(thread, stub_llm, panel_host) -> PluginContext:
    """A ready context over an empty thread; tests append messages as needed."""
    strings = load_strings()
    debug = DebugLog(thread)
    return PluginContext(
        thread=thread,
        llm=stub_llm,
        panel=Panel(panel_host, thread, strings=strings, debug=debug),
        debug=debug,
        strings=strings,
        settings=Settings(),
    )
