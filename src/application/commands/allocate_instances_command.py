"""Allocate instances command with handler."""

import logging
from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Command, CommandHandler
from neuroglia.observability.tracing import add_span_attributes

from application.mappers import allocation_result_to_dict
from application.services.allocation_reconciler import AllocationReconciler
from domain.exceptions import AllocationShortfallException, InvalidAllocationRequestException
from domain.value_object import AllocationRequest
from integration.exceptions import IntegrationException, TagValidationException
from integration.models import ResourceTemplate

log = logging.getLogger(__name__)


@dataclass
class AllocateInstancesCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to allocate one resource per virtual instance ID.

    Args:
        template: Template of the resources to allocate
        virtual_instance_ids: Caller-assigned IDs, unique within the request
        min_count: Minimum number of ready resources; defaults to all of them
    """

    template: ResourceTemplate
    virtual_instance_ids: list[str]
    min_count: int | None = None


class AllocateInstancesCommandHandler(CommandHandler[AllocateInstancesCommand, OperationResult[dict[str, Any]]]):
    """Handle allocating resources through the allocation reconciler."""

    def __init__(self, allocation_reconciler: AllocationReconciler):
        super().__init__()
        self.allocation_reconciler = allocation_reconciler

    async def handle_async(self, request: AllocateInstancesCommand) -> OperationResult[dict[str, Any]]:
        """Handle allocate instances command.

        Returns:
            OperationResult with the ready resources and the per-ID failures,
            or bad request when fewer than ``min_count`` resources became ready
        """
        command = request
        min_count = len(command.virtual_instance_ids) if command.min_count is None else command.min_count

        add_span_attributes(
            {
                "allocation.template": command.template.name,
                "allocation.requested_count": len(command.virtual_instance_ids),
                "allocation.min_count": min_count,
            }
        )

        try:
            allocation_request = AllocationRequest(
                template=command.template,
                virtual_instance_ids=tuple(command.virtual_instance_ids),
                min_count=min_count,
            )
            result = await self.allocation_reconciler.allocate(allocation_request)
            add_span_attributes({"allocation.ready_count": len(result)})
            return self.ok(allocation_result_to_dict(result))

        except (InvalidAllocationRequestException, TagValidationException) as e:
            log.error(f"Invalid allocation request: {e}")
            return self.bad_request(str(e))

        except AllocationShortfallException as e:
            add_span_attributes({"allocation.ready_count": e.ready_count})
            log.error(f"Allocation of {len(command.virtual_instance_ids)} instance(s) failed: {e}")
            return self.bad_request(str(e))

        except IntegrationException as e:
            log.error(f"Failed to allocate instances: {e}")
            return self.bad_request(str(e))

        except Exception as e:
            log.exception("Unexpected error allocating instances")
            return self.internal_server_error(f"Unexpected error: {str(e)}")
