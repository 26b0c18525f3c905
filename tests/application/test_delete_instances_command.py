"""Tests for delete instances command."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from application.commands.delete_instances_command import DeleteInstancesCommand, DeleteInstancesCommandHandler
from application.services.allocation_reconciler import AllocationReconciler
from integration.exceptions import EC2InstanceOperationException


@pytest.fixture
def mock_reconciler():
    reconciler = MagicMock(spec=AllocationReconciler)
    reconciler.delete = AsyncMock()
    return reconciler


@pytest.fixture
def command_handler(mock_reconciler):
    return DeleteInstancesCommandHandler(allocation_reconciler=mock_reconciler)


@pytest.mark.asyncio
async def test_delete_success(command_handler, mock_reconciler):
    # Arrange
    mock_reconciler.delete.return_value = {"vm-1": "i-1"}

    # Act
    result = await command_handler.handle_async(DeleteInstancesCommand(virtual_instance_ids=["vm-1", "vm-2"]))

    # Assert
    assert result.is_success
    assert result.data == {"vm-1": "i-1"}
    mock_reconciler.delete.assert_called_once_with(["vm-1", "vm-2"])


@pytest.mark.asyncio
async def test_delete_nothing_is_success(command_handler, mock_reconciler):
    mock_reconciler.delete.return_value = {}

    result = await command_handler.handle_async(DeleteInstancesCommand(virtual_instance_ids=["vm-1"]))

    assert result.is_success
    assert result.data == {}


@pytest.mark.asyncio
async def test_delete_failure_returns_bad_request(command_handler, mock_reconciler):
    mock_reconciler.delete.side_effect = EC2InstanceOperationException("Terminate failed")

    result = await command_handler.handle_async(DeleteInstancesCommand(virtual_instance_ids=["vm-1"]))

    assert not result.is_success
    assert "terminate failed" in result.detail.lower()
