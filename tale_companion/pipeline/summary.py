"""Player-state summarizer.

Keeps `thread.state.context_summary` (one free-text value per tracked
property) in step with the story. The model is asked to rewrite a markdown
block of `- Property: value` bullets; each value is recovered with a
line-anchored pattern, and a property the reply does not mention becomes "".
The raw reply is also kept in the thread as the single summary message.
"""

import logging
import re

from tale_companion.config import TRACKED_PROPERTIES
from tale_companion.context import PluginContext
from tale_companion.models import Message, Thread
from tale_companion.panel import title_case

from .core import Continue, ProcessingResult, StageInput

logger = logging.getLogger(__name__)

SUMMARY_HEADER = "**Player Character Details:**"
MIN_AI_MESSAGES = 2


def summary_key(prop: str) -> str:
    """Storage key for a property: "Inventory" -> "inventory"."""
    return prop[:1].lower() + prop[1:]


def extract_property(label: str, text: str) -> str:
    match = re.search(
        rf"^[ \t]*-[ \t]*{re.escape(label)}:[ \t]*([^\r\n]*)",
        text,
        re.IGNORECASE | re.MULTILINE,
    )
    return match.group(1).strip() if match else ""


def extract_summary(
    text: str, properties: dict[str, str] | None = None
) -> dict[str, str]:
    """Recover every tracked property from a reply. Never raises.

    The result always has one key per property; unrecognised bullets are
    ignored.
    """
    properties = TRACKED_PROPERTIES if properties is None else properties
    text = text or ""
    return {summary_key(prop): extract_property(prop, text) for prop in properties}


def format_summary(summary: dict[str, str]) -> str:
    if not summary:
        return f"{SUMMARY_HEADER}\n- No summary yet."
    bullets = "\n".join(f"- {title_case(k)}: {v}" for k, v in summary.items())
    return f"{SUMMARY_HEADER}\n{bullets}"


def format_history(thread: Thread, limit: int) -> str:
    visible = [m for m in thread.messages if m.visible_to("ai")]
    lines = []
    for m in visible[-limit:-1]:
        if m.author == "system":
            continue
        label = "[Game_Master]" if m.author == "ai" else "[Player]"
        lines.append(f"{label}: {m.content}")
    return "\n\n".join(lines)


def build_summary_instruction(
    history: str,
    summary: dict[str, str],
    development: str,
    properties: dict[str, str],
) -> str:
    names = "/".join(p.lower() for p in properties)
    expected = "\n".join(
        f" - {prop}: <write a comma-separated list of {instruction}>"
        for prop, instruction in properties.items()
    )
    return f"""\
Your task is to keep track of the Player's {names}/etc. based on the messages of the Player and the Game Master.

Here's the recent chat logs of the Player who is taking actions, and the "Game Master" describing the world:

---
{history}
---

Here's a summary of the player's {names}/etc:

---
{format_summary(summary)}
---

Update the summary based on this latest development:

---
{development}
---

If the player's data hasn't changed or if an invalid action was rejected, reply with the same summary unchanged.

Reply only with dot points for the properties below, no extra text.

{SUMMARY_HEADER}
{expected}
"""


def _replace_summary_message(thread: Thread, text: str, hide_from_user: bool) -> None:
    """Keep exactly one summary message, moved to the end of the thread."""
    previous = [m for m in thread.messages if m.is_summary]
    if previous:
        message = previous[-1]
        message.content = text
        thread.remove_messages(lambda m: m.is_summary)
    else:
        message = Message(
            author="system",
            content=text,
            is_summary=True,
            expects_reply=False,
            hidden_from={"user"} if hide_from_user else set(),
        )
    thread.messages.append(message)


async def generate_context_summary(
    ctx: PluginContext, inp: StageInput
) -> ProcessingResult:
    ctx.debug.log("generate_context_summary")
    thread = ctx.thread
    message = inp.updated_message

    ai_visible = [m for m in thread.messages if m.visible_to("ai") and m.author == "ai"]
    if len(ai_visible) < MIN_AI_MESSAGES or message.author != "ai":
        return Continue(messages=inp.messages)

    properties = ctx.settings.tracked_properties
    if not properties:
        return Continue(messages=inp.messages)

    instruction = build_summary_instruction(
        format_history(thread, ctx.settings.context_messages),
        thread.state.context_summary,
        message.content,
        properties,
    )
    first = next(iter(properties))
    response = await ctx.llm(
        instruction,
        start_with=f"{SUMMARY_HEADER}\n - {first}:",
        stop_sequences=["\n\n"],
    )

    thread.state.context_summary = extract_summary(response, properties)
    logger.debug("Context summary updated: %s", thread.state.context_summary)
    ctx.panel.refresh()

    _replace_summary_message(thread, response, ctx.hide_from_user)
    return Continue(messages=inp.messages)
