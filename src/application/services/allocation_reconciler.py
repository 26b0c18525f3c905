"""Allocation reconciler: brings a set of virtual instance IDs to ready resources."""

import asyncio
import logging

from opentelemetry import trace

from application.services.correlation_index import CorrelationIndex
from application.services.instance_launcher import InstanceLauncher
from application.services.readiness_poller import ReadinessPoller
from application.settings import Settings
from domain.enums import InstanceStatus
from domain.exceptions import AllocationShortfallException
from domain.services import map_instance_state
from domain.value_object import AllocationRequest, AllocationResult, ResourceRecord
from integration.exceptions import IntegrationException
from integration.models import ProviderResourceDto
from integration.services.resource_client import ResourceClient
from integration.services.tag_helper import AllocationTagHelper, validate_virtual_instance_id

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class AllocationReconciler:
    """Allocates, finds, inspects and deletes the resources of virtual instance IDs.

    ``allocate`` is idempotent: IDs that already have a live correlated
    resource are adopted instead of launched again, so a caller can safely
    repeat a call after a crash or a timeout.
    """

    def __init__(
        self,
        resource_client: ResourceClient,
        correlation_index: CorrelationIndex,
        launcher: InstanceLauncher,
        poller: ReadinessPoller,
        delete_on_allocation_failure: bool = True,
    ):
        self._client = resource_client
        self._index = correlation_index
        self._launcher = launcher
        self._poller = poller
        self.delete_on_allocation_failure = delete_on_allocation_failure

    @staticmethod
    def create(resource_client: ResourceClient, settings: Settings) -> "AllocationReconciler":
        """Build a reconciler and its collaborators from application settings."""
        return AllocationReconciler(
            resource_client=resource_client,
            correlation_index=CorrelationIndex(resource_client),
            launcher=InstanceLauncher(
                resource_client,
                AllocationTagHelper(settings.default_tags),
                tag_on_create=settings.tag_on_create,
                max_concurrent_launches=settings.max_concurrent_launches,
                tag_visibility_timeout_seconds=settings.tag_visibility_timeout_seconds,
                tag_retry_delay_seconds=settings.poll_interval_seconds,
            ),
            poller=ReadinessPoller(
                resource_client,
                poll_interval_seconds=settings.poll_interval_seconds,
                readiness_timeout_seconds=settings.readiness_timeout_seconds,
            ),
            delete_on_allocation_failure=settings.delete_on_allocation_failure,
        )

    async def allocate(self, request: AllocationRequest) -> AllocationResult:
        """Ensure one ready resource per virtual instance ID, or fail below ``min_count``.

        Args:
            request: Template, virtual instance IDs and minimum ready count

        Returns:
            The ready resources keyed by virtual instance ID, with the
            failures of the IDs that did not make it

        Raises:
            TagValidationException: If an ID or the template tags are not valid tags
            AllocationShortfallException: If fewer than ``min_count`` resources became ready
        """
        virtual_instance_ids = list(request.virtual_instance_ids)
        for virtual_instance_id in virtual_instance_ids:
            validate_virtual_instance_id(virtual_instance_id)

        with tracer.start_as_current_span("allocation_reconciler.allocate") as span:
            span.set_attribute("template", request.template.name)
            span.set_attribute("requested_count", len(virtual_instance_ids))
            span.set_attribute("min_count", request.min_count)

            existing = await self._index.find_live(virtual_instance_ids, request.template)
            working_set: dict[str, ResourceRecord] = {}
            for virtual_instance_id, resource in existing.items():
                working_set[virtual_instance_id] = self._to_record(virtual_instance_id, resource)

            needs_launch = [vid for vid in virtual_instance_ids if vid not in existing]
            span.set_attribute("adopted_count", len(existing))
            span.set_attribute("launch_count", len(needs_launch))
            log.info(
                f"Allocating {len(virtual_instance_ids)} resource(s) from template '{request.template.name}': "
                f"{len(existing)} already exist, {len(needs_launch)} to launch"
            )

            for record in await self._launcher.launch(request.template, needs_launch):
                working_set[record.virtual_instance_id] = record

            records = [working_set[vid] for vid in virtual_instance_ids]
            await self._poller.wait_until_ready(records)

            result = AllocationResult.from_records(records)
            span.set_attribute("ready_count", len(result))

            if len(result) < request.min_count:
                log.error(
                    f"Allocation failed: {len(result)} ready, {request.min_count} required "
                    f"out of {len(virtual_instance_ids)} requested"
                )
                if self.delete_on_allocation_failure:
                    await self._terminate_quietly(records)
                raise AllocationShortfallException(request.min_count, records)

            for failure in result.failures:
                log.warning(
                    f"Virtual instance {failure.virtual_instance_id} was not allocated "
                    f"({failure.lifecycle.value}): {failure.reason}"
                )
            log.info(f"Allocated {len(result)}/{len(virtual_instance_ids)} resource(s)")
            return result

    async def find(self, virtual_instance_ids: list[str]) -> dict[str, ResourceRecord]:
        """Return the current record of each ID with a live resource; IDs without one are absent.

        Records of running resources with an address are ready, the others stay pending.
        """
        with tracer.start_as_current_span("allocation_reconciler.find"):
            resources = await self._index.find_live(list(virtual_instance_ids))
            records = {}
            for virtual_instance_id, resource in resources.items():
                record = self._to_record(virtual_instance_id, resource)
                status = map_instance_state(self._client.resource_type, resource.state)
                if status == InstanceStatus.RUNNING and resource.address:
                    record.mark_ready(resource.address)
                records[virtual_instance_id] = record
            return records

    async def get_instance_state(self, virtual_instance_ids: list[str]) -> dict[str, InstanceStatus]:
        """Return the abstract status of every ID; IDs without a resource are ``unknown``."""
        with tracer.start_as_current_span("allocation_reconciler.get_instance_state") as span:
            span.set_attribute("requested_count", len(virtual_instance_ids))
            resources = await self._index.find_all(list(virtual_instance_ids))
            return {
                virtual_instance_id: (
                    map_instance_state(self._client.resource_type, resources[virtual_instance_id].state)
                    if virtual_instance_id in resources
                    else InstanceStatus.UNKNOWN
                )
                for virtual_instance_id in virtual_instance_ids
            }

    async def delete(self, virtual_instance_ids: list[str]) -> dict[str, str]:
        """Terminate the resources of the given IDs; IDs without a resource are ignored.

        Returns:
            Provider IDs of the terminated resources keyed by virtual instance ID
        """
        with tracer.start_as_current_span("allocation_reconciler.delete") as span:
            span.set_attribute("requested_count", len(virtual_instance_ids))
            resources = await self._index.find_live(list(virtual_instance_ids))
            if not resources:
                log.info(f"No live resources to delete for {len(virtual_instance_ids)} virtual instance ID(s)")
                return {}

            provider_ids = {virtual_instance_id: resource.provider_id for virtual_instance_id, resource in resources.items()}
            await asyncio.to_thread(self._client.terminate, list(provider_ids.values()))
            span.set_attribute("terminated_count", len(provider_ids))
            log.info(f"Terminated {len(provider_ids)} resource(s): {provider_ids}")
            return provider_ids

    @staticmethod
    def _to_record(virtual_instance_id: str, resource: ProviderResourceDto) -> ResourceRecord:
        record = ResourceRecord(virtual_instance_id=virtual_instance_id, provider_id=resource.provider_id)
        record.observe(resource.state, resource.address, resource.raw)
        return record

    async def _terminate_quietly(self, records: list[ResourceRecord]) -> None:
        provider_ids = [record.provider_id for record in records if record.provider_id]
        if not provider_ids:
            return
        try:
            log.info(f"Terminating {len(provider_ids)} resource(s) of the failed allocation: {provider_ids}")
            await asyncio.to_thread(self._client.terminate, provider_ids)
        except IntegrationException as e:
            log.error(f"Failed to terminate resources of the failed allocation {provider_ids}: {e}")
