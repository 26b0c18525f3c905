"""Get instance state query with handler."""

import logging
from dataclasses import dataclass

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.services.allocation_reconciler import AllocationReconciler
from integration.exceptions import IntegrationException

logger = logging.getLogger(__name__)


@dataclass
class GetInstanceStateQuery(Query[OperationResult[dict[str, str]]]):
    """Query to retrieve the abstract status of virtual instance IDs."""

    virtual_instance_ids: list[str]


class GetInstanceStateQueryHandler(QueryHandler[GetInstanceStateQuery, OperationResult[dict[str, str]]]):
    """Handle retrieving instance statuses; every requested ID gets one."""

    def __init__(self, allocation_reconciler: AllocationReconciler):
        super().__init__()
        self.allocation_reconciler = allocation_reconciler

    async def handle_async(self, request: GetInstanceStateQuery) -> OperationResult[dict[str, str]]:
        try:
            statuses = await self.allocation_reconciler.get_instance_state(request.virtual_instance_ids)
            return self.ok({vid: status.value for vid, status in statuses.items()})

        except IntegrationException as e:
            logger.error(f"Error retrieving instance state: {e}")
            return self.bad_request(str(e))

        except Exception as e:
            logger.error(f"Error retrieving instance state: {e}", exc_info=True)
            return self.internal_server_error(str(e))
