"""One started plugin per thread for the web host.

Threads are loaded from storage on first use, the plugin is started (version
install + module resolution) and kept in memory; every handled message is
saved back to the thread file.
"""

import logging

from tale_companion.config import Settings
from tale_companion.llm import InstructLLM
from tale_companion.panel import InMemoryPanelHost
from tale_companion.plugin import Plugin
from tale_companion.storage import ThreadStorage

logger = logging.getLogger(__name__)


class Sessions:
    def __init__(self, storage: ThreadStorage, settings: Settings, llm: InstructLLM) -> None:
        self.storage = storage
        self.settings = settings
        self._llm = llm
        self._plugins: dict[str, Plugin] = {}
        self._hosts: dict[str, InMemoryPanelHost] = {}

    async def get(self, slug: str) -> Plugin:
        plugin = self._plugins.get(slug)
        if plugin is not None:
            return plugin

        thread = self.storage.get_or_create_thread(slug)
        host = InMemoryPanelHost()
        plugin = Plugin(thread, self._llm, host, self.settings)
        try:
            await plugin.start()
        finally:
            # failure diagnostics are part of the thread too
            self.storage.save_thread(slug, thread)
        self._plugins[slug] = plugin
        self._hosts[slug] = host
        logger.info("Session opened for thread %s (active=%s)", slug, plugin.active)
        return plugin

    def panel_host(self, slug: str) -> InMemoryPanelHost | None:
        return self._hosts.get(slug)

    def save(self, slug: str) -> None:
        plugin = self._plugins.get(slug)
        if plugin is not None:
            self.storage.save_thread(slug, plugin.thread)

    def close(self, slug: str) -> None:
        self._plugins.pop(slug, None)
        self._hosts.pop(slug, None)
