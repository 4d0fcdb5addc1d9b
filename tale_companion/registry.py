"""Built-in module graph.

  debug            DebugLog writing into the thread
  strings          string table for the thread's locale
  ui               Panel (needs debug, strings)
  ai_processing    stages for assistant messages
  user_processing  stages for user messages
"""

from tale_companion.commands import on_command
from tale_companion.debuglog import DebugLog
from tale_companion.models import Thread
from tale_companion.modules import ModuleResolver, StaticModuleSource
from tale_companion.panel import Panel, PanelHost
from tale_companion.pipeline import (
    format_and_name_messages,
    generate_context_summary,
    split_into_named_messages,
)
from tale_companion.strings import load_strings

REQUIRED_MODULES = ("debug", "strings", "ui", "ai_processing", "user_processing")

AI_STAGES = [
    generate_context_summary,
    format_and_name_messages,
    split_into_named_messages,
]

USER_STAGES = [
    on_command,
]


def build_module_source(thread: Thread, panel_host: PanelHost) -> StaticModuleSource:
    async def debug(resolver: ModuleResolver) -> DebugLog:
        return DebugLog(thread)

    async def strings(resolver: ModuleResolver) -> dict[str, str]:
        return load_strings(thread.state.locale)

    async def ui(resolver: ModuleResolver) -> Panel:
        return Panel(
            panel_host,
            thread,
            strings=await resolver.load("strings"),
            debug=await resolver.load("debug"),
        )

    async def ai_processing(resolver: ModuleResolver) -> list:
        return list(AI_STAGES)

    async def user_processing(resolver: ModuleResolver) -> list:
        return list(USER_STAGES)

    return StaticModuleSource({
        "debug": debug,
        "strings": strings,
        "ui": ui,
        "ai_processing": ai_processing,
        "user_processing": user_processing,
    })
