"""Stage runner: threads one message through an ordered list of async stages.

Each stage receives the plugin context and a StageInput:
  messages          side messages queued by earlier stages (starts empty)
  original_message  the observed message, never mutated
  updated_message   the working copy, threaded through every stage

and returns Continue or Halt. A stage's `messages` replaces the queue; an
`updated_message` of None keeps the previous working copy. Halt applies the
stage's result and skips every later stage. The runner itself does no I/O.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from tale_companion.models import Message

if TYPE_CHECKING:
    from tale_companion.context import PluginContext


@dataclass(frozen=True)
class StageInput:
    messages: list[Message]
    original_message: Message
    updated_message: Message


@dataclass(frozen=True)
class Continue:
    """Hand the (possibly changed) state on to the next stage."""

    messages: list[Message] = field(default_factory=list)
    updated_message: Message | None = None


@dataclass(frozen=True)
class Halt:
    """Apply this result and stop the chain."""

    messages: list[Message] = field(default_factory=list)
    updated_message: Message | None = None


ProcessingResult = Union[Continue, Halt]

Stage = Callable[["PluginContext", StageInput], Awaitable[ProcessingResult]]


@dataclass(frozen=True)
class PipelineOutput:
    messages: list[Message]
    updated_message: Message


async def run_stages(
    ctx: PluginContext, message: Message, stages: Sequence[Stage]
) -> PipelineOutput:
    """Run stages in order and return the side messages plus the working copy."""
    messages: list[Message] = []
    updated = message.model_copy(deep=True)

    for stage in stages:
        result = await stage(ctx, StageInput(
            messages=messages,
            original_message=message,
            updated_message=updated,
        ))
        messages = list(result.messages)
        if result.updated_message is not None:
            updated = result.updated_message
        if isinstance(result, Halt):
            break

    return PipelineOutput(messages=messages, updated_message=updated)
