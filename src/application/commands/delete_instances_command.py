"""Delete instances command with handler."""

import logging
from dataclasses import dataclass

from neuroglia.core import OperationResult
from neuroglia.mediation import Command, CommandHandler
from neuroglia.observability.tracing import add_span_attributes

from application.services.allocation_reconciler import AllocationReconciler
from integration.exceptions import IntegrationException

log = logging.getLogger(__name__)


@dataclass
class DeleteInstancesCommand(Command[OperationResult[dict[str, str]]]):
    """Command to terminate the resources of virtual instance IDs.

    IDs without a resource are ignored, so repeating the command is harmless.
    """

    virtual_instance_ids: list[str]


class DeleteInstancesCommandHandler(CommandHandler[DeleteInstancesCommand, OperationResult[dict[str, str]]]):
    """Handle terminating resources by virtual instance ID."""

    def __init__(self, allocation_reconciler: AllocationReconciler):
        super().__init__()
        self.allocation_reconciler = allocation_reconciler

    async def handle_async(self, request: DeleteInstancesCommand) -> OperationResult[dict[str, str]]:
        command = request
        add_span_attributes({"deletion.requested_count": len(command.virtual_instance_ids)})

        try:
            terminated = await self.allocation_reconciler.delete(command.virtual_instance_ids)
            add_span_attributes({"deletion.terminated_count": len(terminated)})
            return self.ok(terminated)

        except IntegrationException as e:
            log.error(f"Failed to delete instances {command.virtual_instance_ids}: {e}")
            return self.bad_request(str(e))

        except Exception as e:
            log.exception("Unexpected error deleting instances")
            return self.internal_server_error(f"Unexpected error: {str(e)}")
