"""Turn splitter: one thread entry per labeled line, for display only.

Line format (parsed by parse_entries):
  Speaker Name: "Dialogue text"
  anything else is narration

Adjacent narration lines are merged into a single entry. Every entry is
hidden from the AI; the labeled original stays the AI's copy of the turn.
"""

import re

from tale_companion.context import PluginContext
from tale_companion.models import NARRATION_NAME, Message

from .core import Continue, ProcessingResult, StageInput

DIALOG_LINE = re.compile(r'^([^:]*):\s*"([^"]+)"$')


def _entry(source: Message, content: str, name: str, **hints: bool) -> Message:
    return source.model_copy(deep=True, update={
        "content": content,
        "name": name,
        "hidden_from": {"ai"},
        "original_hidden_from": {"ai"},
        "hide_message_info": hints.get("hide_message_info", False),
        "hide_message_buttons": hints.get("hide_message_buttons", False),
    })


def parse_entries(source: Message, unknown_name: str) -> list[Message]:
    """One entry per non-empty line of the source message."""
    entries: list[Message] = []
    for raw in source.content.split("\n"):
        line = raw.strip()
        if not line:
            continue

        match = DIALOG_LINE.match(line)
        if not match:
            entries.append(_entry(source, line, NARRATION_NAME, hide_message_info=True))
            continue

        name = match.group(1).strip()
        text = match.group(2).strip()
        if name:
            entries.append(_entry(source, text, name, hide_message_buttons=True))
        else:
            entries.append(_entry(source, text, unknown_name))
    return entries


def merge_narration(entries: list[Message]) -> list[Message]:
    """Fuse runs of consecutive narration entries, joining with a space."""
    merged: list[Message] = []
    for entry in entries:
        last = merged[-1] if merged else None
        if entry.name == NARRATION_NAME and last is not None and last.name == NARRATION_NAME:
            last.content += " " + entry.content
        else:
            merged.append(entry)
    return merged


async def split_into_named_messages(
    ctx: PluginContext, inp: StageInput
) -> ProcessingResult:
    ctx.debug.log("split_into_named_messages")
    sources = inp.messages or [inp.updated_message]
    unknown_name = ctx.strings["unknown_character"]

    parsed: list[Message] = []
    for source in sources:
        if source.content:
            parsed.extend(parse_entries(source, unknown_name))

    # Identity, not equality: two identical narration entries are both kept
    result = list(inp.messages)
    seen = {id(m) for m in result}
    for entry in merge_narration(parsed):
        if id(entry) not in seen:
            seen.add(id(entry))
            result.append(entry)
    return Continue(messages=result)
