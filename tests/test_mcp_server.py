"""Tests for the MCP tools over stored threads."""

import json

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

import tale_companion.mcp_server as mcp_server
from tale_companion.models import Thread
from tale_companion.storage import ThreadStorage
from tale_companion.versions import VERSION_CATALOGUE


@pytest.fixture(autouse=True)
def storage(tmp_path):
    """Give each test its own store so threads don't bleed across tests."""
    store = ThreadStorage(tmp_path)
    mcp_server.set_storage(store)
    return store


def test_player_summary_title_cases_keys(storage):
    thread = Thread()
    thread.state.context_summary = {"inventory": "rope", "location": ""}
    storage.save_thread("tavern", thread)

    assert mcp_server.get_player_summary("tavern") == {"Inventory": "rope", "Location": ""}


def test_player_summary_unknown_thread(storage):
    with pytest.raises(ValueError, match="not found"):
        mcp_server.get_player_summary("missing")


def test_list_versions():
    assert mcp_server.list_versions() == [v.model_dump() for v in VERSION_CATALOGUE]


async def test_tools_over_client_session(storage):
    thread = Thread()
    thread.state.context_summary = {"skills": "fencing"}
    storage.save_thread("tavern", thread)

    async with create_connected_server_and_client_session(mcp_server.mcp._mcp_server) as client:
        tools = await client.list_tools()
        assert {t.name for t in tools.tools} == {"get_player_summary", "list_versions"}

        result = await client.call_tool("get_player_summary", {"slug": "tavern"})
        assert not result.isError
        assert json.loads(result.content[0].text) == {"Skills": "fencing"}
