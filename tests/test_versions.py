"""Tests for the version catalogue and upgrade walk."""

import logging

import pytest

from tale_companion.models import Thread, VersionDescriptor
from tale_companion.modules import ModuleResolver, StaticModuleSource
from tale_companion.panel import InMemoryPanelHost
from tale_companion.versions import (
    LATEST,
    LATEST_PREVIEW,
    VERSION_CATALOGUE,
    VersionManager,
    VersionNotFoundError,
)

CATALOGUE = [
    VersionDescriptor(name="1.0", changelog="First release"),
    VersionDescriptor(name="1.1", changelog="Added summaries"),
    VersionDescriptor(name="1.2", changelog="Added labeling"),
    VersionDescriptor(name="dev", changelog="development", preview=True),
]


@pytest.fixture
def host():
    return InMemoryPanelHost()


@pytest.fixture
def resolver():
    return ModuleResolver(StaticModuleSource({}))


@pytest.fixture
def manager(thread, resolver, host):
    return VersionManager(thread, resolver, host, catalogue=CATALOGUE)


# ---------------------------------------------------------------------------
# Catalogue lookups
# ---------------------------------------------------------------------------

def test_latest_skips_previews(manager):
    assert manager.resolve_name(LATEST) == "1.2"


def test_latest_preview_is_last_entry(manager):
    assert manager.resolve_name(LATEST_PREVIEW) == "dev"


def test_latest_when_every_entry_is_preview(thread, resolver, host):
    manager = VersionManager(thread, resolver, host, catalogue=[
        VersionDescriptor(name="a", preview=True),
        VersionDescriptor(name="b", preview=True),
    ])
    assert manager.resolve_name(LATEST) == "b"


def test_explicit_name_unchanged(manager):
    assert manager.resolve_name("1.1") == "1.1"


def test_empty_catalogue_rejected(thread, resolver, host):
    with pytest.raises(ValueError):
        VersionManager(thread, resolver, host, catalogue=[])


def test_version_history_after_previous(manager):
    assert [v.name for v in manager.version_history("1.0", "1.2")] == ["1.1", "1.2"]


def test_version_history_backfills_missing_previous(thread, resolver, host):
    manager = VersionManager(thread, resolver, host, catalogue=CATALOGUE, history_window=1)
    assert [v.name for v in manager.version_history(None, "1.2")] == ["1.2"]


def test_version_history_unknown_is_empty(manager):
    assert manager.version_history("0.9", "1.2") == []


def test_default_catalogue_latest_is_stable(thread, resolver, host):
    manager = VersionManager(thread, resolver, host)
    assert manager.resolve_name(LATEST) == [v for v in VERSION_CATALOGUE if not v.preview][-1].name


# ---------------------------------------------------------------------------
# Upgrades
# ---------------------------------------------------------------------------

async def test_upgrade_walks_every_adjacent_pair(thread, manager):
    applied = []

    @manager.migration("1.0", "1.1")
    async def first(t, frm, to):
        applied.append((frm, to))

    @manager.migration("1.1", "1.2")
    async def second(t, frm, to):
        assert t is thread
        applied.append((frm, to))

    thread.state.version = "1.0"
    await manager.load("1.2")

    assert applied == [("1.0", "1.1"), ("1.1", "1.2")]


async def test_missing_step_is_logged_and_skipped(thread, manager, caplog):
    applied = []

    @manager.migration("1.1", "1.2")
    async def second(t, frm, to):
        applied.append((frm, to))

    thread.state.version = "1.0"
    with caplog.at_level(logging.INFO, logger="tale_companion.versions"):
        await manager.load("1.2")

    assert "No upgrade step for 1.0 -> 1.1" in caplog.text
    assert applied == [("1.1", "1.2")]


async def test_no_upgrade_when_already_current(thread, manager):
    thread.state.version = "1.2"
    result = await manager.handle_versioning("1.2")
    assert not result.updated


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

async def test_load_records_version_and_repoints_resolver(thread, manager, resolver):
    assert await manager.load(LATEST) == "1.2"
    assert thread.state.version == "1.2"
    assert thread.state.repo_path == "tale_companion@1.2"
    assert resolver.base_path == "tale_companion@1.2"


async def test_load_shows_changelog_since_previous(thread, manager, host):
    thread.state.version = "1.0"
    await manager.load("1.2")
    assert host.visible
    assert "Changelog" in host.html
    assert "Added summaries" in host.html
    assert "Added labeling" in host.html
    assert "First release" not in host.html


async def test_no_changelog_when_version_unchanged(thread, manager, host):
    thread.state.version = "1.2"
    await manager.load("1.2")
    assert not host.visible
    assert host.html == ""


async def test_changelog_suppressed_when_opted_out(thread, manager, host):
    thread.state.show_changelog = False
    await manager.load("1.2")
    assert not host.visible


async def test_unknown_version_falls_back_to_installed(thread, manager, host, caplog):
    thread.state.version = "1.1"
    with caplog.at_level(logging.WARNING, logger="tale_companion.versions"):
        assert await manager.load("9.9") == "1.1"

    assert thread.state.version == "1.1"
    assert "Version 9.9 not found. Using last valid version 1.1" in caplog.text
    assert "Version FAIL" in host.html
    assert "Using last valid version 1.1" in host.html


async def test_unknown_version_without_fallback_raises(thread, manager, host):
    with pytest.raises(VersionNotFoundError):
        await manager.load("9.9")
    assert thread.state.version is None
    assert "Version 9.9 not found!" in host.html


# ---------------------------------------------------------------------------
# Three-entry catalogue with a preview head
# ---------------------------------------------------------------------------

THREE = [
    VersionDescriptor(name="v1"),
    VersionDescriptor(name="v2"),
    VersionDescriptor(name="v3", preview=True),
]


def test_three_entry_resolution(thread, resolver, host):
    manager = VersionManager(thread, resolver, host, catalogue=THREE)
    assert manager.resolve_name(LATEST) == "v2"
    assert manager.resolve_name(LATEST_PREVIEW) == "v3"


async def test_single_migration_then_noop(thread, resolver, host, caplog):
    manager = VersionManager(thread, resolver, host, catalogue=THREE)
    applied = []

    @manager.migration("v1", "v2")
    async def step(t, frm, to):
        applied.append((frm, to))

    thread.state.version = "v1"
    with caplog.at_level(logging.INFO, logger="tale_companion.versions"):
        assert await manager.load(LATEST_PREVIEW) == "v3"

    assert applied == [("v1", "v2")]
    assert "No upgrade step for v2 -> v3" in caplog.text
    assert thread.state.version == "v3"
