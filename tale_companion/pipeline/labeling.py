"""Dialogue labeling: prefix every quoted line with its speaker's name.

The narrative is first split so each quoted run sits on its own paragraph,
then a single instruct completion adds `Speaker Name: "..."` prefixes with
the recent thread as context. Narration must come back untouched, so the
reply is cut off after the last words of the input to drop anything the
model invents past the real end of the text.
"""

import logging
import re
from dataclasses import dataclass

from tale_companion.context import PluginContext
from tale_companion.models import Message, Thread

from .core import Continue, ProcessingResult, StageInput

logger = logging.getLogger(__name__)

SEED_WORDS = 5
TAIL_WORDS = 5

LABELING_INSTRUCTION = """\
You are a formatting assistant.

Recent context (only narration, no user messages):

{context}

Your task is to analyze the following text:

{text}

You MUST add the FULL speaker name AT THE START of each quoted dialogue line ONLY without changing any other text.

Absolute rules:
- DO NOT add speaker names to any narration or descriptive lines (non-quoted lines).
- DO NOT remove, merge, split, or otherwise change any narration or descriptive text.
- DO NOT change any text inside quoted dialogue lines, except to add the correct speaker prefix.
- Dialogue lines must be of the form: Speaker Name: "Exact dialogue text."
- Maintain all blank lines and formatting exactly as in the input.
- Use the recent context above and the text itself to assign speaker names accurately.
- DO NOT add explanations, comments, notes, or any extra content.
- Return the full text correctly labeled with narration intact and dialogue lines properly prefixed.
- If the actor introduces itself assign that name.

Strictly follow these instructions."""


@dataclass(frozen=True)
class Segment:
    text: str
    quoted: bool


def split_dialogue(text: str) -> list[Segment]:
    """Split text into narration and quoted-dialogue segments.

    A quoted run spans from a `"` to the next `"`; everything else is
    narration, trimmed but otherwise unchanged. A quote with no closing
    partner turns the rest of the text into narration.
    """
    segments: list[Segment] = []
    cursor = 0
    length = len(text)

    while cursor < length:
        if text[cursor] == '"':
            end = text.find('"', cursor + 1)
            if end == -1:
                rest = text[cursor:].strip()
                if rest:
                    segments.append(Segment(rest, quoted=False))
                cursor = length
            else:
                segments.append(Segment(text[cursor:end + 1].strip(), quoted=True))
                cursor = end + 1
        else:
            next_quote = text.find('"', cursor)
            part = text[cursor:] if next_quote == -1 else text[cursor:next_quote]
            part = part.strip()
            if part:
                segments.append(Segment(part, quoted=False))
            cursor = length if next_quote == -1 else next_quote

        while cursor < length and text[cursor].isspace():
            cursor += 1

    return segments


def preformat_dialogue(text: str) -> str:
    """One paragraph per segment, separated by blank lines."""
    return "\n\n".join(s.text for s in split_dialogue(text))


def dialogue_context(thread: Thread, limit: int) -> str:
    """Recent narration the AI can see, excluding the newest message."""
    visible = [
        m for m in thread.messages
        if m.visible_to("ai") and m.author not in ("system", "user")
    ]
    return "\n\n".join(m.content for m in visible[-limit:-1])


def start_with_seed(text: str) -> str:
    """Leading words to seed the completion with, or "" for dialogue-first text."""
    if text.strip().startswith('"'):
        return ""
    words: list[str] = []
    for match in re.finditer(r"\S+", text):
        if len(words) >= SEED_WORDS or '"' in match.group():
            break
        words.append(match.group())
    return " ".join(words)


def last_words(text: str, n: int = TAIL_WORDS) -> str:
    return " ".join(text.split()[-n:])


def clean_labeled_response(response: str, preformatted: str) -> str:
    """Trim the reply, unwrap single quotes, and cut it at the input's last words."""
    content = response.strip()
    if len(content) >= 2 and content.startswith("'") and content.endswith("'"):
        content = content[1:-1].strip()

    tail = last_words(preformatted)
    idx = content.rfind(tail) if tail else -1
    if idx != -1:
        content = content[:idx + len(tail)].strip()
    return content


def _apply_visibility(message: Message, content: str, hide_from_user: bool) -> Message:
    """Move a prior user-hidden flag into the snapshot, then apply debug policy."""
    hidden = set(message.hidden_from)
    original = set(message.original_hidden_from or ())
    if "user" in hidden:
        hidden.discard("user")
        original.add("user")
    if hide_from_user:
        hidden.add("user")
    return message.model_copy(update={
        "content": content,
        "hidden_from": hidden,
        "original_hidden_from": original,
    })


async def format_and_name_messages(
    ctx: PluginContext, inp: StageInput
) -> ProcessingResult:
    ctx.debug.log("format_and_name_messages")
    message = inp.updated_message
    if not message.content or not message.content.strip():
        return Continue(messages=inp.messages)

    preformatted = preformat_dialogue(message.content)
    context = dialogue_context(ctx.thread, ctx.settings.context_messages)
    instruction = LABELING_INSTRUCTION.format(context=context, text=preformatted)

    response = await ctx.llm(instruction, start_with=start_with_seed(preformatted) or None)
    if not response or not response.strip():
        logger.info("Labeling completion was empty; message left unchanged")
        return Continue(messages=inp.messages)

    content = clean_labeled_response(response, preformatted)
    updated = _apply_visibility(message, content, ctx.hide_from_user)

    ctx.debug.log("Message preformatted and labeled")
    ctx.debug.log(updated)
    return Continue(messages=inp.messages, updated_message=updated)
