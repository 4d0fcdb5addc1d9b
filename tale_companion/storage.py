"""JSON file storage for threads.

The real host owns its threads; this store lets the bundled web host keep
them between requests. There is no database: every thread is one
JSON file validated through the pydantic models.

Directory layout:

    {base}/
      config.json           ← plugin settings (see tale_companion.config)
      threads/
        {slug}.json         ← Thread: messages, shortcut buttons, state
"""

from __future__ import annotations

import re
from pathlib import Path

from tale_companion.models import Thread

_SLUG = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class ThreadStorage:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._threads = base_path / "threads"
        self._threads.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _thread_file(self, slug: str) -> Path:
        if not _SLUG.match(slug):
            raise ValueError(f"Invalid thread slug {slug!r}")
        return self._threads / f"{slug}.json"

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def list_threads(self) -> list[str]:
        return sorted(p.stem for p in self._threads.glob("*.json"))

    def get_thread(self, slug: str) -> Thread | None:
        path = self._thread_file(slug)
        if not path.exists():
            return None
        return Thread.model_validate_json(path.read_text())

    def get_or_create_thread(self, slug: str) -> Thread:
        thread = self.get_thread(slug)
        if thread is None:
            thread = Thread()
            self.save_thread(slug, thread)
        return thread

    def save_thread(self, slug: str, thread: Thread) -> None:
        self._thread_file(slug).write_text(thread.model_dump_json(indent=2))

    def delete_thread(self, slug: str) -> bool:
        path = self._thread_file(slug)
        if not path.exists():
            return False
        path.unlink()
        return True
