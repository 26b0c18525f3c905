"""Tests for allocate instances command."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from application.commands.allocate_instances_command import (
    AllocateInstancesCommand,
    AllocateInstancesCommandHandler,
)
from application.services.allocation_reconciler import AllocationReconciler
from domain.exceptions import AllocationShortfallException
from domain.value_object import AllocationResult, ResourceRecord
from integration.exceptions import EC2AuthenticationException, TagValidationException
from tests.fixtures.factories import TemplateFactory


@pytest.fixture
def mock_reconciler():
    """Create a mock allocation reconciler."""
    reconciler = MagicMock(spec=AllocationReconciler)
    reconciler.allocate = AsyncMock()
    return reconciler


@pytest.fixture
def command_handler(mock_reconciler):
    return AllocateInstancesCommandHandler(allocation_reconciler=mock_reconciler)


def ready_record(virtual_instance_id: str, provider_id: str) -> ResourceRecord:
    record = ResourceRecord(virtual_instance_id=virtual_instance_id, provider_id=provider_id)
    record.mark_ready("10.0.0.1")
    return record


@pytest.mark.asyncio
async def test_allocate_success(command_handler, mock_reconciler):
    """Test successful allocation returns ready resources and failures."""
    # Arrange
    gone = ResourceRecord(virtual_instance_id="vm-2", provider_id="i-2")
    gone.mark_gone("resource i-2 is terminated")
    mock_reconciler.allocate.return_value = AllocationResult.from_records([ready_record("vm-1", "i-1"), gone])
    command = AllocateInstancesCommand(template=TemplateFactory.ec2(), virtual_instance_ids=["vm-1", "vm-2"], min_count=1)

    # Act
    result = await command_handler.handle_async(command)

    # Assert
    assert result.is_success
    assert result.data["ready"]["vm-1"]["provider_id"] == "i-1"
    assert result.data["ready"]["vm-1"]["lifecycle"] == "ready"
    assert result.data["failures"] == [
        {
            "virtual_instance_id": "vm-2",
            "lifecycle": "gone",
            "reason": "resource i-2 is terminated",
            "provider_id": "i-2",
        }
    ]
    request = mock_reconciler.allocate.call_args.args[0]
    assert request.virtual_instance_ids == ("vm-1", "vm-2")
    assert request.min_count == 1


@pytest.mark.asyncio
async def test_min_count_defaults_to_all_ids(command_handler, mock_reconciler):
    mock_reconciler.allocate.return_value = AllocationResult()
    command = AllocateInstancesCommand(template=TemplateFactory.ec2(), virtual_instance_ids=["vm-1", "vm-2"])

    await command_handler.handle_async(command)

    assert mock_reconciler.allocate.call_args.args[0].min_count == 2


@pytest.mark.asyncio
async def test_invalid_request_returns_bad_request(command_handler, mock_reconciler):
    """Test duplicate IDs are rejected without calling the reconciler."""
    command = AllocateInstancesCommand(template=TemplateFactory.ec2(), virtual_instance_ids=["vm-1", "vm-1"])

    result = await command_handler.handle_async(command)

    assert not result.is_success
    assert result.status == 400
    assert "unique" in result.detail.lower()
    mock_reconciler.allocate.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_tags_return_bad_request(command_handler, mock_reconciler):
    mock_reconciler.allocate.side_effect = TagValidationException("Tag key 'aws:x' uses the reserved 'aws:' prefix")
    command = AllocateInstancesCommand(template=TemplateFactory.ec2(), virtual_instance_ids=["vm-1"])

    result = await command_handler.handle_async(command)

    assert not result.is_success
    assert "reserved" in result.detail.lower()


@pytest.mark.asyncio
async def test_shortfall_returns_bad_request_with_every_id(command_handler, mock_reconciler):
    """Test a shortfall reports the status of every requested ID."""
    failed = ResourceRecord(virtual_instance_id="vm-2")
    failed.mark_failed("capacity not available")
    mock_reconciler.allocate.side_effect = AllocationShortfallException(2, [ready_record("vm-1", "i-1"), failed])
    command = AllocateInstancesCommand(template=TemplateFactory.ec2(), virtual_instance_ids=["vm-1", "vm-2"])

    result = await command_handler.handle_async(command)

    assert not result.is_success
    assert result.status == 400
    assert "vm-1=ready" in result.detail
    assert "vm-2=failed (capacity not available)" in result.detail


@pytest.mark.asyncio
async def test_integration_error_returns_bad_request(command_handler, mock_reconciler):
    mock_reconciler.allocate.side_effect = EC2AuthenticationException("Authentication failed")
    command = AllocateInstancesCommand(template=TemplateFactory.ec2(), virtual_instance_ids=["vm-1"])

    result = await command_handler.handle_async(command)

    assert not result.is_success
    assert "authentication failed" in result.detail.lower()


@pytest.mark.asyncio
async def test_unexpected_error_returns_server_error(command_handler, mock_reconciler):
    mock_reconciler.allocate.side_effect = RuntimeError("boom")
    command = AllocateInstancesCommand(template=TemplateFactory.ec2(), virtual_instance_ids=["vm-1"])

    result = await command_handler.handle_async(command)

    assert not result.is_success
    assert result.status == 500
    assert "boom" in result.detail
