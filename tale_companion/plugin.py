"""Plugin entry point: activation and the per-message handler.

Activation:
  1. Install the configured version on the thread (upgrade walk + changelog).
  2. Resolve every required module; any failure (or a timeout) appends one
     `failed-init` message listing all of them and leaves the plugin inactive.
  3. Build the PluginContext shared by every stage.

Per message: the newest thread message runs through the assistant or the
user chain; the working copy's content and visibility are written back to
the thread message and side messages are appended after it.
"""

import asyncio
import logging

from tale_companion.config import Settings
from tale_companion.context import PluginContext
from tale_companion.llm import InstructLLM, LLMError
from tale_companion.models import Message, Thread, VersionDescriptor
from tale_companion.modules import ModuleFailure, ModuleResolver, ModuleSource, ResolutionTimeout
from tale_companion.panel import PanelHost
from tale_companion.pipeline import run_stages
from tale_companion.registry import REQUIRED_MODULES, build_module_source
from tale_companion.strings import load_strings
from tale_companion.versions import Migration, VersionManager, VersionNotFoundError

logger = logging.getLogger(__name__)

_WRITE_BACK_FIELDS = (
    "content",
    "hidden_from",
    "original_hidden_from",
    "hide_message_info",
    "hide_message_buttons",
)


class PluginInactiveError(RuntimeError):
    """Raised when a message is handled before a successful start()."""


class Plugin:
    def __init__(
        self,
        thread: Thread,
        llm: InstructLLM,
        panel_host: PanelHost,
        settings: Settings | None = None,
        source: ModuleSource | None = None,
        catalogue: list[VersionDescriptor] | None = None,
        migrations: dict[tuple[str, str], Migration] | None = None,
    ) -> None:
        self.thread = thread
        self.settings = settings or Settings()
        if thread.state.locale is None:
            thread.state.locale = self.settings.locale
        self._llm = llm
        self._host = panel_host
        self.resolver = ModuleResolver(
            source or build_module_source(thread, panel_host),
            base_path=thread.state.repo_path or "",
            timeout=self.settings.module_timeout,
        )
        self.versions = VersionManager(
            thread,
            self.resolver,
            panel_host,
            catalogue=catalogue,
            migrations=migrations,
            history_window=self.settings.changelog_window,
        )
        self.ctx: PluginContext | None = None
        self._stages: dict[str, list] = {}
        self._lock = asyncio.Lock()

    @property
    def active(self) -> bool:
        return self.ctx is not None

    def _report_failure(self, content: str) -> None:
        self.thread.messages.append(Message(
            author="failed-init",
            content=content,
            hidden_from={"ai"},
            expects_reply=False,
        ))

    async def start(self) -> bool:
        """Activate the plugin. Returns False if required modules are missing."""
        strings = load_strings(self.thread.state.locale)
        try:
            await self.versions.load(self.settings.version)
        except VersionNotFoundError as e:
            self._report_failure(str(e))
            raise

        try:
            resolved = await self.resolver.resolve_all(REQUIRED_MODULES)
        except ResolutionTimeout as e:
            logger.error("%s", e)
            self._report_failure(f"{e}\n{strings['module_timeout_hint']}")
            return False

        if isinstance(resolved, list):
            self._report_failure(format_failures(resolved, strings["module_load_failed"]))
            return False

        self._stages = {
            "ai": resolved["ai_processing"],
            "user": resolved["user_processing"],
        }
        self.ctx = PluginContext(
            thread=self.thread,
            llm=self._llm,
            panel=resolved["ui"],
            debug=resolved["debug"],
            strings=resolved["strings"],
            settings=self.settings,
        )
        logger.info("Plugin active at %s", self.resolver.base_path)
        return True

    async def on_message_added(self) -> None:
        """Process the newest thread message."""
        async with self._lock:
            await self._handle_latest()

    async def post_message(self, message: Message) -> None:
        """Append a message the way the host does, then handle it."""
        async with self._lock:
            if self.ctx is None:
                raise PluginInactiveError("Plugin has not been started")
            self.thread.messages.append(message)
            await self._handle_latest()

    async def _handle_latest(self) -> None:
        if self.ctx is None:
            raise PluginInactiveError("Plugin has not been started")
        if not self.thread.messages:
            return
        message = self.thread.messages[-1]
        stages = self._stages.get(message.author)
        if not stages:
            return

        try:
            output = await run_stages(self.ctx, message, stages)
        except LLMError as e:
            logger.warning("Completion failed, message left unchanged: %s", e)
            return

        for name in _WRITE_BACK_FIELDS:
            setattr(message, name, getattr(output.updated_message, name))
        self.thread.messages.extend(output.messages)


def format_failures(failures: list[ModuleFailure], heading: str) -> str:
    lines = [heading]
    lines.extend(f"- {f.name}: {f.error}" for f in failures)
    return "\n".join(lines)
