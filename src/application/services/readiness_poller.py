"""Polls launched resources until they are ready, gone or the wait times out."""

import asyncio
import logging

from opentelemetry import trace

from domain.enums import InstanceStatus
from domain.services import is_gone, map_instance_state
from domain.value_object import ResourceRecord
from integration.exceptions import IntegrationException, ResourceNotFoundException
from integration.services.resource_client import ResourceClient

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ReadinessPoller:
    """Drives pending records to ready, gone or timed out.

    Each cycle issues a single describe-by-id for every still-pending
    resource. A record is ready once its resource is running and has a
    network address, and gone once the resource is terminating, terminated
    or failed. Gone records are never retried or replaced. A describe call that still fails after the client retries fails every
    record that was pending.
    """

    def __init__(
        self,
        resource_client: ResourceClient,
        poll_interval_seconds: float = 5.0,
        readiness_timeout_seconds: float = 600.0,
    ):
        self._client = resource_client
        self.poll_interval_seconds = poll_interval_seconds
        self.readiness_timeout_seconds = readiness_timeout_seconds

    async def wait_until_ready(self, records: list[ResourceRecord]) -> list[ResourceRecord]:
        """Poll until no record is pending; returns the same records, updated in place."""
        pending: dict[str, ResourceRecord] = {}
        for record in records:
            if not record.is_pending:
                continue
            if record.provider_id is None:
                record.mark_failed("no provider resource was created")
                continue
            pending[record.provider_id] = record

        with tracer.start_as_current_span("readiness_poller.wait_until_ready") as span:
            span.set_attribute("pending_count", len(pending))

            loop = asyncio.get_running_loop()
            deadline = loop.time() + self.readiness_timeout_seconds
            cycles = 0

            while pending:
                cycles += 1
                await self._poll_once(pending)
                if not pending:
                    break

                remaining = deadline - loop.time()
                if remaining <= 0:
                    log.warning(
                        f"Readiness wait timed out after {self.readiness_timeout_seconds}s, "
                        f"{len(pending)} resource(s) still pending: {list(pending)}"
                    )
                    for record in pending.values():
                        record.mark_timed_out()
                    pending.clear()
                    break

                log.debug(f"Waiting for {len(pending)} resource(s) to become ready: {list(pending)}")
                await asyncio.sleep(min(self.poll_interval_seconds, remaining))

            span.set_attribute("poll_cycles", cycles)
            span.set_attribute("ready_count", sum(1 for record in records if record.is_ready))
            return records

    async def _poll_once(self, pending: dict[str, ResourceRecord]) -> None:
        try:
            resources = await asyncio.to_thread(self._client.describe_by_id, list(pending))
        except ResourceNotFoundException as e:
            # New resources may not be visible yet
            log.debug(f"Resources not visible yet: {e}")
            return
        except IntegrationException as e:
            # Client-level retries are already exhausted
            log.error(f"Failed to describe pending resources {list(pending)}: {e}")
            for record in pending.values():
                record.mark_failed(f"describe failed: {e}")
            pending.clear()
            return

        ready: list[ResourceRecord] = []
        for resource in resources:
            record = pending.get(resource.provider_id)
            if record is None:
                continue

            record.observe(resource.state, resource.address, resource.raw)
            status = map_instance_state(self._client.resource_type, resource.state)

            if is_gone(status):
                log.warning(f"Resource {resource.provider_id} for {record.virtual_instance_id} is {resource.state}")
                record.mark_gone(f"resource {resource.provider_id} is {resource.state}")
                del pending[resource.provider_id]
            elif status == InstanceStatus.RUNNING and resource.address:
                log.info(f"Resource {resource.provider_id} for {record.virtual_instance_id} is ready at {resource.address}")
                record.mark_ready(resource.address)
                del pending[resource.provider_id]
                ready.append(record)

        if ready:
            await asyncio.gather(*(self._fetch_extended_attributes(record) for record in ready))

    async def _fetch_extended_attributes(self, record: ResourceRecord) -> None:
        try:
            record.extended_attributes = await asyncio.to_thread(
                self._client.describe_extended_attributes, record.provider_id
            )
        except Exception as e:
            log.warning(f"Could not fetch extended attributes of {record.provider_id}: {e}")
            record.extended_attributes = {}
