"""Version catalogue and upgrade walk for the plugin's modules.

Versions are totally ordered by their position in the catalogue.

  "latest"          last entry not flagged preview
  "latest_preview"  last entry overall

Upgrading from the thread's recorded version to a later one walks every
adjacent pair in between and awaits the migration registered for that exact
pair, so no intermediate step is ever skipped. A thread with no recorded
version is treated as if it were `history_window` versions behind, which
bounds the changelog shown on first load.

On success the thread records the new version and the module resolver is
repointed at that version's base path. An unknown explicit version falls
back to the recorded version with a warning, or fails with
VersionNotFoundError when there is none.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tale_companion.models import Thread, VersionDescriptor
from tale_companion.modules import ModuleResolver
from tale_companion.panel import PanelHost, changelog_content, show_changelog, text
from tale_companion.strings import Strings, load_strings

logger = logging.getLogger(__name__)

LATEST = "latest"
LATEST_PREVIEW = "latest_preview"

BASE_PATH_TEMPLATE = "tale_companion@{version}"

VERSION_CATALOGUE: list[VersionDescriptor] = [
    VersionDescriptor(
        name="0.1.0",
        changelog="Player summary panel: inventory, skills, location and actors.",
    ),
    VersionDescriptor(
        name="0.2.0",
        changelog="Dialogue lines are labeled with the speaker's name.",
    ),
    VersionDescriptor(
        name="0.3.0",
        changelog="Labeled turns are split into one entry per line. "
                  "New commands: /stats, /resetSession, /clearAll, /debug.",
    ),
    VersionDescriptor(
        name="0.4.0",
        changelog="Modules load through a resolver that reports every failure at once.",
    ),
    VersionDescriptor(
        name="main",
        changelog="development",
        preview=True,
    ),
]

Migration = Callable[[Thread, str, str], Awaitable[None]]


class VersionNotFoundError(LookupError):
    """Raised when a requested version is unknown and no fallback exists."""


@dataclass(frozen=True)
class VersionUpgrade:
    updated: bool
    from_version: str
    to_version: str


class VersionManager:
    def __init__(
        self,
        thread: Thread,
        resolver: ModuleResolver,
        panel_host: PanelHost,
        catalogue: list[VersionDescriptor] | None = None,
        migrations: dict[tuple[str, str], Migration] | None = None,
        history_window: int = 10,
        base_path_template: str = BASE_PATH_TEMPLATE,
        strings: Strings | None = None,
    ) -> None:
        self._thread = thread
        self._resolver = resolver
        self._host = panel_host
        self.catalogue = list(VERSION_CATALOGUE if catalogue is None else catalogue)
        if not self.catalogue:
            raise ValueError("Version catalogue is empty")
        self.migrations: dict[tuple[str, str], Migration] = dict(migrations or {})
        self._history_window = history_window
        self._base_path_template = base_path_template
        self._strings = strings or load_strings(thread.state.locale)

    # ------------------------------------------------------------------
    # Catalogue lookups
    # ------------------------------------------------------------------

    def index(self, name: str | None) -> int:
        for i, v in enumerate(self.catalogue):
            if v.name == name:
                return i
        return -1

    def resolve_name(self, name: str) -> str:
        if name == LATEST:
            stable = [v for v in self.catalogue if not v.preview]
            return (stable or self.catalogue)[-1].name
        if name == LATEST_PREVIEW:
            return self.catalogue[-1].name
        return name

    def repo_path_for_version(self, name: str) -> str:
        return self._base_path_template.format(version=name)

    def _backfilled(self, final: str) -> str:
        idx = max(0, self.index(final) - self._history_window)
        return self.catalogue[idx].name

    def version_history(
        self, previous: str | None, final: str
    ) -> list[VersionDescriptor]:
        """Entries after `previous` up to and including `final`."""
        if previous is None:
            previous = self._backfilled(final)
        prev_idx, final_idx = self.index(previous), self.index(final)
        if prev_idx == -1 or final_idx == -1:
            return []
        return self.catalogue[prev_idx + 1:final_idx + 1]

    # ------------------------------------------------------------------
    # Migrations
    # ------------------------------------------------------------------

    def migration(self, from_version: str, to_version: str):
        """Decorator registering the migration for one adjacent version pair."""
        def register(func: Migration) -> Migration:
            self.migrations[(from_version, to_version)] = func
            return func
        return register

    async def upgrade(self, previous: str, final: str) -> None:
        """Apply every adjacent migration from previous up to final, in order."""
        for i in range(self.index(previous), self.index(final)):
            from_version = self.catalogue[i].name
            to_version = self.catalogue[i + 1].name
            step = self.migrations.get((from_version, to_version))
            if step is None:
                logger.info("No upgrade step for %s -> %s", from_version, to_version)
                continue
            logger.info("Upgrading thread %s -> %s", from_version, to_version)
            await step(self._thread, from_version, to_version)

    async def handle_versioning(self, target: str) -> VersionUpgrade:
        final = target if self.index(target) != -1 else self.catalogue[0].name
        previous = self._thread.state.version or self._backfilled(final)
        if self.index(previous) == -1:
            previous = self.catalogue[0].name

        if self.index(previous) < self.index(final):
            await self.upgrade(previous, final)
            return VersionUpgrade(updated=True, from_version=previous, to_version=final)
        return VersionUpgrade(updated=False, from_version=previous, to_version=final)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _switch_to(self, version: str) -> None:
        self._thread.state.version = version
        path = self.repo_path_for_version(version)
        self._thread.state.repo_path = path
        self._resolver.base_path = path

    def _show_notice(self, message: str) -> None:
        show_changelog(
            self._host, self._thread, text(message),
            title=self._strings["version_fail_title"], strings=self._strings,
        )

    async def load(self, name: str = LATEST) -> str:
        """Install the requested version on the thread; return its name."""
        target = self.resolve_name(name)
        installed = self._thread.state.version

        if self.index(target) != -1:
            result = await self.handle_versioning(target)
            self._switch_to(result.to_version)
            logger.info("Loaded version %s", result.to_version)
            if installed != result.to_version:
                history = self.version_history(result.from_version, result.to_version)
                show_changelog(
                    self._host, self._thread, changelog_content(history),
                    strings=self._strings,
                )
            return result.to_version

        if installed and self.index(installed) != -1:
            await self.handle_versioning(installed)
            self._switch_to(installed)
            logger.warning(
                "Version %s not found. Using last valid version %s", target, installed
            )
            self._show_notice(
                self._strings["version_fallback_message"].format(version=installed)
            )
            return installed

        logger.warning("Version %s not found. No loading performed.", target)
        self._show_notice(self._strings["version_not_found_message"].format(version=target))
        raise VersionNotFoundError(f"Version {target} not found.")
