"""Capability module resolution with partial-failure aggregation.

Modules are named capabilities (debug log, strings, ui, processing chains)
produced by a ModuleSource for the resolver's current base path. A module's
factory may resolve its own dependencies through the resolver; loads are
memoized per name, so each module is built once per resolver.

resolve_all() never fails fast: it loads every requested module, and if any
failed returns the full list of failures so they can be reported together.
The whole resolution is bounded by a timeout. Two factories waiting on each
other never finish, so expiry is reported as a likely dependency cycle.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol, Union

logger = logging.getLogger(__name__)


class ModuleLoadError(Exception):
    """Raised when a module cannot be found or built."""


class ResolutionTimeout(Exception):
    """Raised when module resolution exceeds its time bound."""

    def __init__(self, names: Iterable[str], timeout: float) -> None:
        self.names = list(names)
        self.timeout = timeout
        super().__init__(
            f"Resolving modules {', '.join(self.names)} timed out after {timeout}s; "
            "a circular dependency between modules is the likely cause"
        )


@dataclass(frozen=True)
class Loaded:
    name: str
    module: Any


@dataclass(frozen=True)
class ModuleFailure:
    name: str
    error: str


Resolution = Union[Loaded, ModuleFailure]


@dataclass(frozen=True)
class ResolvedModules:
    modules: dict[str, Any]

    def __getitem__(self, name: str) -> Any:
        return self.modules[name]


class ModuleSource(Protocol):
    async def load(self, resolver: ModuleResolver, name: str) -> Any: ...


Factory = Callable[["ModuleResolver"], Awaitable[Any]]


class StaticModuleSource:
    """Modules built in-process from a fixed table of async factories."""

    def __init__(self, factories: dict[str, Factory]) -> None:
        self._factories = dict(factories)

    def names(self) -> list[str]:
        return list(self._factories)

    async def load(self, resolver: ModuleResolver, name: str) -> Any:
        factory = self._factories.get(name)
        if factory is None:
            raise ModuleLoadError(f"Module {name!r} not found at {resolver.base_path}")
        return await factory(resolver)


class ModuleResolver:
    def __init__(
        self, source: ModuleSource, base_path: str = "", timeout: float = 10.0
    ) -> None:
        self._source = source
        self._timeout = timeout
        self._tasks: dict[str, asyncio.Future] = {}
        self.base_path = base_path

    @property
    def base_path(self) -> str:
        return self._base_path

    @base_path.setter
    def base_path(self, value: str) -> None:
        """Repointing the resolver drops every module built for the old path."""
        self._base_path = value
        self._tasks.clear()

    async def load(self, name: str) -> Any:
        """Load a module, building it on first use. Raises on failure."""
        task = self._tasks.get(name)
        if task is None:
            task = asyncio.ensure_future(self._source.load(self, name))
            self._tasks[name] = task
        return await task

    async def resolve(self, name: str) -> Resolution:
        try:
            module = await self.load(name)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Module %r failed to load from %s: %s", name, self.base_path, e)
            return ModuleFailure(name=name, error=str(e) or type(e).__name__)
        return Loaded(name=name, module=module)

    async def resolve_all(
        self, names: Iterable[str]
    ) -> ResolvedModules | list[ModuleFailure]:
        """Resolve every name; return the modules, or every failure."""
        names = list(names)
        try:
            results = await asyncio.wait_for(
                asyncio.gather(*(self.resolve(n) for n in names)),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise ResolutionTimeout(names, self._timeout) from e

        failures = [r for r in results if isinstance(r, ModuleFailure)]
        if failures:
            return failures
        return ResolvedModules({r.name: r.module for r in results})
