"""Tests for the turn splitter."""

from conftest import ai
from tale_companion.models import NARRATION_NAME
from tale_companion.pipeline import (
    Continue,
    StageInput,
    merge_narration,
    parse_entries,
    split_into_named_messages,
)

LABELED = (
    'The knight steps forward.\n\nSir Aldric: "I am ready,"\n\n'
    "said the knight, drawing his sword."
)


def test_parse_entries_narration_and_dialogue():
    entries = parse_entries(ai(LABELED), "unknown character")
    assert [(e.name, e.content) for e in entries] == [
        (NARRATION_NAME, "The knight steps forward."),
        ("Sir Aldric", "I am ready,"),
        (NARRATION_NAME, "said the knight, drawing his sword."),
    ]


def test_entries_hidden_from_ai_with_hints():
    narration, dialogue, _ = parse_entries(ai(LABELED), "unknown character")
    assert narration.hidden_from == {"ai"}
    assert narration.original_hidden_from == {"ai"}
    assert narration.hide_message_info
    assert not narration.hide_message_buttons
    assert dialogue.hide_message_buttons
    assert not dialogue.hide_message_info
    assert dialogue.author == "ai"


def test_empty_speaker_name_uses_unknown_character():
    (entry,) = parse_entries(ai(': "Who is there?"'), "unknown character")
    assert entry.name == "unknown character"
    assert entry.content == "Who is there?"
    assert not entry.hide_message_info
    assert not entry.hide_message_buttons


def test_unquoted_colon_line_is_narration():
    (entry,) = parse_entries(ai("Note: the door is locked."), "?")
    assert entry.name == NARRATION_NAME


def test_entries_do_not_share_state_with_source():
    source = ai("A line.", hidden_from={"user"})
    (entry,) = parse_entries(source, "?")
    entry.hidden_from.add("system")
    assert source.hidden_from == {"user"}


def test_merge_narration_joins_adjacent_runs():
    entries = parse_entries(ai("Rain falls.\nWind howls.\nMira: \"Hurry.\"\nThunder."), "?")
    merged = merge_narration(entries)
    assert [(e.name, e.content) for e in merged] == [
        (NARRATION_NAME, "Rain falls. Wind howls."),
        ("Mira", "Hurry."),
        (NARRATION_NAME, "Thunder."),
    ]


async def test_stage_splits_working_copy(ctx):
    msg = ai(LABELED)
    result = await split_into_named_messages(
        ctx, StageInput(messages=[], original_message=msg, updated_message=msg)
    )
    assert isinstance(result, Continue)
    assert [e.name for e in result.messages] == [NARRATION_NAME, "Sir Aldric", NARRATION_NAME]
    assert result.updated_message is None


async def test_stage_splits_queued_messages_and_keeps_them(ctx):
    queued = ai('Mira: "Hi."')
    msg = ai("ignored when messages are queued")
    result = await split_into_named_messages(
        ctx, StageInput(messages=[queued], original_message=msg, updated_message=msg)
    )
    assert result.messages[0] is queued
    assert [(e.name, e.content) for e in result.messages[1:]] == [("Mira", "Hi.")]


async def test_stage_ignores_empty_content(ctx):
    msg = ai("")
    result = await split_into_named_messages(
        ctx, StageInput(messages=[], original_message=msg, updated_message=msg)
    )
    assert result.messages == []
