"""Find instances query with handler."""

import logging
from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.mappers import record_to_dict
from application.services.allocation_reconciler import AllocationReconciler
from integration.exceptions import IntegrationException

logger = logging.getLogger(__name__)


@dataclass
class FindInstancesQuery(Query[OperationResult[dict[str, Any]]]):
    """Query to look up the current records of virtual instance IDs."""

    virtual_instance_ids: list[str]


class FindInstancesQueryHandler(QueryHandler[FindInstancesQuery, OperationResult[dict[str, Any]]]):
    """Handle finding resources; IDs without a live resource are omitted."""

    def __init__(self, allocation_reconciler: AllocationReconciler):
        super().__init__()
        self.allocation_reconciler = allocation_reconciler

    async def handle_async(self, request: FindInstancesQuery) -> OperationResult[dict[str, Any]]:
        try:
            records = await self.allocation_reconciler.find(request.virtual_instance_ids)
            logger.info(f"Found {len(records)} of {len(request.virtual_instance_ids)} instance(s)")
            return self.ok({vid: record_to_dict(record) for vid, record in records.items()})

        except IntegrationException as e:
            logger.error(f"Error finding instances: {e}")
            return self.bad_request(str(e))

        except Exception as e:
            logger.error(f"Error finding instances: {e}", exc_info=True)
            return self.internal_server_error(str(e))
