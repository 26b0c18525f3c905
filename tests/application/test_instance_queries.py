"""Tests for FindInstancesQuery and GetInstanceStateQuery."""

from unittest.mock import MagicMock

import pytest

from application.queries.find_instances_query import FindInstancesQuery, FindInstancesQueryHandler
from application.queries.get_instance_state_query import GetInstanceStateQuery, GetInstanceStateQueryHandler
from application.services.allocation_reconciler import AllocationReconciler
from domain.enums import InstanceStatus
from domain.value_object import ResourceRecord
from integration.exceptions import IntegrationException
from tests.fixtures.mixins import BaseTestCase


class TestFindInstancesQuery(BaseTestCase):
    """Test FindInstancesQuery handler."""

    @pytest.fixture
    def mock_reconciler(self) -> MagicMock:
        return MagicMock(spec=AllocationReconciler)

    @pytest.fixture
    def handler(self, mock_reconciler: MagicMock) -> FindInstancesQueryHandler:
        return FindInstancesQueryHandler(allocation_reconciler=mock_reconciler)

    @pytest.mark.asyncio
    async def test_find_returns_records(self, handler: FindInstancesQueryHandler, mock_reconciler: MagicMock) -> None:
        # Arrange
        record = ResourceRecord(virtual_instance_id="vm-1", provider_id="i-1", state="running")
        record.mark_ready("10.0.0.1")
        mock_reconciler.find = self.create_async_mock(return_value={"vm-1": record})

        # Act
        result = await handler.handle_async(FindInstancesQuery(virtual_instance_ids=["vm-1", "vm-2"]))

        # Assert
        assert result.is_success
        assert list(result.data) == ["vm-1"]
        assert result.data["vm-1"]["provider_id"] == "i-1"
        assert result.data["vm-1"]["address"] == "10.0.0.1"
        assert result.data["vm-1"]["lifecycle"] == "ready"

    @pytest.mark.asyncio
    async def test_find_error(self, handler: FindInstancesQueryHandler, mock_reconciler: MagicMock) -> None:
        mock_reconciler.find = self.create_async_mock(side_effect=IntegrationException("describe failed"))

        result = await handler.handle_async(FindInstancesQuery(virtual_instance_ids=["vm-1"]))

        assert not result.is_success
        assert "describe failed" in result.detail


class TestGetInstanceStateQuery(BaseTestCase):
    """Test GetInstanceStateQuery handler."""

    @pytest.fixture
    def mock_reconciler(self) -> MagicMock:
        return MagicMock(spec=AllocationReconciler)

    @pytest.fixture
    def handler(self, mock_reconciler: MagicMock) -> GetInstanceStateQueryHandler:
        return GetInstanceStateQueryHandler(allocation_reconciler=mock_reconciler)

    @pytest.mark.asyncio
    async def test_states_are_returned_as_values(
        self, handler: GetInstanceStateQueryHandler, mock_reconciler: MagicMock
    ) -> None:
        mock_reconciler.get_instance_state = self.create_async_mock(
            return_value={"vm-1": InstanceStatus.RUNNING, "vm-2": InstanceStatus.UNKNOWN}
        )

        result = await handler.handle_async(GetInstanceStateQuery(virtual_instance_ids=["vm-1", "vm-2"]))

        assert result.is_success
        assert result.data == {"vm-1": "running", "vm-2": "unknown"}

    @pytest.mark.asyncio
    async def test_unexpected_error(self, handler: GetInstanceStateQueryHandler, mock_reconciler: MagicMock) -> None:
        mock_reconciler.get_instance_state = self.create_async_mock(side_effect=RuntimeError("boom"))

        result = await handler.handle_async(GetInstanceStateQuery(virtual_instance_ids=["vm-1"]))

        assert not result.is_success
        assert result.status == 500
