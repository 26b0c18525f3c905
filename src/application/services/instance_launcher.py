"""Concurrent creation of one provider resource per virtual instance ID."""

import asyncio
import logging

from opentelemetry import trace

from application.decorators import retry_until_timeout
from domain.value_object import ResourceRecord
from integration.exceptions import IntegrationException, ResourceNotFoundException
from integration.models import ResourceTemplate
from integration.services.resource_client import ResourceClient
from integration.services.tag_helper import AllocationTagHelper

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class InstanceLauncher:
    """Launches resources concurrently and tags them with their virtual instance ID.

    With ``tag_on_create`` the tags are part of the creation request. Otherwise
    the resource is created untagged and tagged by a separate call, retried
    while the provider does not see the new resource yet. A resource that can
    never be tagged cannot be correlated, so it is terminated.
    """

    def __init__(
        self,
        resource_client: ResourceClient,
        tag_helper: AllocationTagHelper,
        tag_on_create: bool = True,
        max_concurrent_launches: int = 10,
        tag_visibility_timeout_seconds: float = 60.0,
        tag_retry_delay_seconds: float = 2.0,
    ):
        self._client = resource_client
        self._tag_helper = tag_helper
        self.tag_on_create = tag_on_create
        self.max_concurrent_launches = max_concurrent_launches
        self.tag_visibility_timeout_seconds = tag_visibility_timeout_seconds
        self.tag_retry_delay_seconds = tag_retry_delay_seconds

    async def launch(self, template: ResourceTemplate, virtual_instance_ids: list[str]) -> list[ResourceRecord]:
        """Launch one resource per virtual instance ID.

        Per-ID failures are captured on the returned records (``failed``) and
        never abort the other launches.

        Raises:
            TagValidationException: If the tags for any ID are invalid, before anything is launched.
        """
        if not virtual_instance_ids:
            return []

        # Validate every tag set up front so an invalid request launches nothing
        tags_by_id = {
            virtual_instance_id: self._tag_helper.get_instance_tags(template, virtual_instance_id)
            for virtual_instance_id in virtual_instance_ids
        }

        with tracer.start_as_current_span("instance_launcher.launch") as span:
            span.set_attribute("launch_count", len(virtual_instance_ids))
            span.set_attribute("tag_on_create", self.tag_on_create)

            semaphore = asyncio.Semaphore(self.max_concurrent_launches)

            async def launch_with_semaphore(virtual_instance_id: str) -> ResourceRecord:
                async with semaphore:
                    record = ResourceRecord(virtual_instance_id=virtual_instance_id)
                    try:
                        await self._launch_one(template, record, tags_by_id[virtual_instance_id])
                    except Exception as e:
                        log.error(f"Failed to launch resource for {virtual_instance_id}: {e}")
                        record.mark_failed(str(e))
                    return record

            records = await asyncio.gather(*[launch_with_semaphore(vid) for vid in virtual_instance_ids])

            failed = sum(1 for record in records if not record.is_pending)
            span.set_attribute("failed_count", failed)
            log.info(f"Launched {len(records) - failed}/{len(records)} resource(s) from template '{template.name}'")
            return list(records)

    async def _launch_one(self, template: ResourceTemplate, record: ResourceRecord, tags: dict[str, str]) -> None:
        virtual_instance_id = record.virtual_instance_id

        if self.tag_on_create:
            resource = await asyncio.to_thread(self._client.launch, template, virtual_instance_id, tags)
            record.provider_id = resource.provider_id
            record.observe(resource.state, resource.address, resource.raw)
            return

        resource = await asyncio.to_thread(self._client.launch, template, virtual_instance_id, None)
        record.provider_id = resource.provider_id
        record.observe(resource.state, resource.address, resource.raw)

        try:
            await self._tag_when_visible(resource.provider_id, tags)
        except IntegrationException as e:
            log.error(f"Could not tag {resource.provider_id} for {virtual_instance_id}: {e}")
            record.mark_failed(f"tagging failed: {e}")
            await self._terminate_untagged(resource.provider_id)

    async def _tag_when_visible(self, provider_id: str, tags: dict[str, str]) -> None:
        @retry_until_timeout(
            ResourceNotFoundException,
            timeout_seconds=self.tag_visibility_timeout_seconds,
            initial_delay=self.tag_retry_delay_seconds,
        )
        async def tag_resource() -> None:
            await asyncio.to_thread(self._client.tag, provider_id, tags)

        await tag_resource()

    async def _terminate_untagged(self, provider_id: str) -> None:
        try:
            await asyncio.to_thread(self._client.terminate, [provider_id])
            log.info(f"Terminated untagged resource {provider_id}")
        except IntegrationException as e:
            log.error(f"Failed to terminate untagged resource {provider_id}, it must be removed manually: {e}")
