"""Slash-command dispatcher for user messages.

Commands are literal, case-sensitive prefixes of the trimmed message, tried
in order; the first match wins. Every recognised command halts the chain so
the command text never reaches the model. Anything else passes through.

  /stats         show the stats panel
  /resetSession  forget the player summary
  /clearAll      empty the thread
  /debug         toggle debug mode (reveals hidden entries, installs buttons)
"""

import logging
from collections.abc import Callable

from tale_companion.context import PluginContext
from tale_companion.models import ShortcutButton, Thread
from tale_companion.pipeline.core import Continue, Halt, ProcessingResult, StageInput
from tale_companion.strings import command_literals

logger = logging.getLogger(__name__)

Handler = Callable[[PluginContext, StageInput, str], ProcessingResult]


def handle_stats(ctx: PluginContext, inp: StageInput, command: str) -> ProcessingResult:
    ctx.thread.remove_commands(command)
    ctx.panel.show_stats_screen()
    return Halt(messages=inp.messages)


def handle_reset_session(ctx: PluginContext, inp: StageInput, command: str) -> ProcessingResult:
    ctx.thread.state.context_summary = {}
    ctx.panel.refresh()
    ctx.thread.remove_commands(command)
    ctx.debug.log(f"Session reset by {command} command")
    return Halt(messages=inp.messages)


def handle_clear_all(ctx: PluginContext, inp: StageInput, command: str) -> ProcessingResult:
    ctx.debug.log(f"All messages cleared by {command} command")
    ctx.thread.messages.clear()
    return Halt(messages=inp.messages)


def debug_buttons(commands: list[str]) -> list[ShortcutButton]:
    return [ShortcutButton(name=cmd.lstrip("/"), message=cmd) for cmd in commands]


def reveal_hidden_messages(thread: Thread) -> None:
    """Show every user-hidden message, remembering how it was hidden."""
    for msg in thread.messages:
        if "user" in msg.hidden_from:
            msg.original_hidden_from = set(msg.original_hidden_from or ()) | msg.hidden_from
            msg.hidden_from = msg.hidden_from - {"user"}
            msg.debug_shown = True
        elif msg.original_hidden_from is None:
            msg.original_hidden_from = set(msg.hidden_from)


def restore_hidden_messages(thread: Thread) -> None:
    """Undo reveal_hidden_messages and drop debug-log entries."""
    for msg in thread.messages:
        if msg.debug_shown:
            msg.hidden_from = msg.hidden_from | {"user"}
            msg.debug_shown = False
    thread.remove_messages(lambda m: m.is_debug_log)


def handle_debug(ctx: PluginContext, inp: StageInput, command: str) -> ProcessingResult:
    thread = ctx.thread
    state = thread.state

    if not state.is_debug:
        state.saved_shortcut_buttons = thread.shortcut_buttons
        state.is_debug = True
        thread.shortcut_buttons = debug_buttons(command_literals(ctx.strings))
        reveal_hidden_messages(thread)
        ctx.debug.log("Debug mode enabled")
    else:
        ctx.debug.log("Debug mode disabled")
        state.is_debug = False
        thread.shortcut_buttons = state.saved_shortcut_buttons
        state.saved_shortcut_buttons = None
        restore_hidden_messages(thread)

    logger.info("Debug mode %s", "on" if state.is_debug else "off")
    thread.remove_commands(command)
    ctx.panel.refresh()
    return Halt(messages=inp.messages)


def command_table(ctx: PluginContext) -> list[tuple[str, Handler]]:
    stats, reset, clear, debug = command_literals(ctx.strings)
    return [
        (stats, handle_stats),
        (reset, handle_reset_session),
        (clear, handle_clear_all),
        (debug, handle_debug),
    ]


async def on_command(ctx: PluginContext, inp: StageInput) -> ProcessingResult:
    ctx.debug.log("on_command")
    content = inp.original_message.content.strip()
    for command, handler in command_table(ctx):
        if content.startswith(command):
            return handler(ctx, inp, command)
    return Continue(messages=inp.messages)
