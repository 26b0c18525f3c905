"""Tests for the correlation index."""

import logging

import pytest

from application.services.correlation_index import MAX_TAG_FILTER_VALUES, CorrelationIndex
from tests.fixtures.factories import FakeResourceClient, TemplateFactory


@pytest.fixture
def client():
    return FakeResourceClient()


@pytest.fixture
def index(client):
    return CorrelationIndex(client)


@pytest.mark.asyncio
async def test_find_live_returns_correlated_resources(client, index):
    # Arrange
    first = client.add_resource("vm-1")
    second = client.add_resource("vm-2", state="pending", address=None)
    client.add_resource(None, tags={"Name": "untagged"})

    # Act
    found = await index.find_live(["vm-1", "vm-2", "vm-3"])

    # Assert
    assert set(found) == {"vm-1", "vm-2"}
    assert found["vm-1"].provider_id == first.provider_id
    assert found["vm-2"].provider_id == second.provider_id


@pytest.mark.asyncio
async def test_find_live_excludes_terminal_resources(client, index):
    client.add_resource("vm-1", state="terminated")
    client.add_resource("vm-2", state="shutting-down")

    assert await index.find_live(["vm-1", "vm-2"]) == {}


@pytest.mark.asyncio
async def test_live_resource_preferred_over_terminated_one(client, index):
    client.add_resource("vm-1", state="terminated")
    live = client.add_resource("vm-1", state="running")
    client.add_resource("vm-1", state="terminated")

    found = await index.find_all(["vm-1"])

    assert found["vm-1"].provider_id == live.provider_id


@pytest.mark.asyncio
async def test_duplicate_live_resources_are_logged(client, index, caplog):
    first = client.add_resource("vm-1")
    client.add_resource("vm-1")

    with caplog.at_level(logging.ERROR):
        found = await index.find_live(["vm-1"])

    assert found["vm-1"].provider_id == first.provider_id
    assert "multiple live resources" in caplog.text


@pytest.mark.asyncio
async def test_find_all_includes_terminal_resources(client, index):
    terminated = client.add_resource("vm-1", state="terminated")

    found = await index.find_all(["vm-1"])

    assert found["vm-1"].provider_id == terminated.provider_id


@pytest.mark.asyncio
async def test_lookups_are_chunked(client, index):
    ids = [f"vm-{i}" for i in range(MAX_TAG_FILTER_VALUES * 2 + 1)]

    await index.find_live(ids)

    assert [len(chunk) for chunk in client.describe_by_tag_calls] == [MAX_TAG_FILTER_VALUES, MAX_TAG_FILTER_VALUES, 1]


@pytest.mark.asyncio
async def test_lookup_has_no_side_effects(client, index):
    client.add_resource("vm-1")

    await index.find_live(["vm-1", "vm-2"])

    assert client.launch_calls == []
    assert client.tag_calls == []
    assert client.terminate_calls == []


@pytest.mark.asyncio
async def test_empty_lookup_skips_provider(client, index):
    assert await index.find_live([]) == {}
    assert client.describe_by_tag_calls == []


@pytest.mark.asyncio
async def test_mismatching_resource_is_reported_not_rejected(client, index, caplog):
    client.add_resource("vm-1", image_id="ami-other", instance_type="t3.micro", tags={"alloc:template": "other"})
    template = TemplateFactory.ec2(name="workers")

    with caplog.at_level(logging.WARNING):
        found = await index.find_live(["vm-1"], template)

    assert "vm-1" in found
    assert "ami-other" in caplog.text
    assert "t3.micro" in caplog.text
    assert "'other'" in caplog.text
