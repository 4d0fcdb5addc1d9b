"""Message-processing pipeline.

An observed message is threaded through an ordered chain of async stages
(see core.run_stages). Two chains are configured, selected by author:

  assistant messages
    1. generate_context_summary: refresh the player-state summary.
    2. format_and_name_messages: prefix quoted dialogue with speaker names.
    3. split_into_named_messages: one display entry per labeled line.

  user messages
    1. on_command (tale_companion.commands): slash commands.

Labeled text format (parsed by the splitter):
  Narration text.
  Speaker Name: "Dialogue text."

Summary reply format (parsed by extract_summary):
  **Player Character Details:**
   - Inventory: sword, shield
   - Skills: ...
"""

from .core import (  # noqa: F401
    Continue,
    Halt,
    PipelineOutput,
    ProcessingResult,
    Stage,
    StageInput,
    run_stages,
)
from .labeling import (  # noqa: F401
    Segment,
    clean_labeled_response,
    dialogue_context,
    format_and_name_messages,
    last_words,
    preformat_dialogue,
    split_dialogue,
    start_with_seed,
)
from .splitter import (  # noqa: F401
    merge_narration,
    parse_entries,
    split_into_named_messages,
)
from .summary import (  # noqa: F401
    build_summary_instruction,
    extract_property,
    extract_summary,
    format_history,
    format_summary,
    generate_context_summary,
    summary_key,
)
