"""Correlation index: resolves virtual instance IDs to provider resources by tag.

The correlation tag on the remote resource is the only state the engine
relies on, which is what makes a repeated allocation call idempotent.
"""

import asyncio
import logging

from opentelemetry import trace

from domain.services import is_terminal_state
from integration.models import Ec2InstanceTemplate, ProviderResourceDto, ResourceTemplate
from integration.services.resource_client import ResourceClient
from integration.services.tag_helper import CORRELATION_TAG_KEY, TEMPLATE_TAG_KEY, AllocationTagHelper

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Provider limit on the number of values in a single tag filter
MAX_TAG_FILTER_VALUES = 200


class CorrelationIndex:
    """Read-only lookup of the resources carrying a correlation tag."""

    def __init__(self, resource_client: ResourceClient):
        self._client = resource_client

    async def find_live(
        self,
        virtual_instance_ids: list[str],
        template: ResourceTemplate | None = None,
    ) -> dict[str, ProviderResourceDto]:
        """Return the live resource of every virtual instance ID that has one.

        Terminal resources (terminated, shutting down, deleted, failed) are
        excluded. IDs without a live resource are absent from the result.

        Args:
            virtual_instance_ids: Virtual instance IDs to resolve
            template: When given, resources that do not match it are reported

        Returns:
            Live resources keyed by virtual instance ID
        """
        with tracer.start_as_current_span("correlation_index.find_live") as span:
            span.set_attribute("requested_count", len(virtual_instance_ids))

            resolved = await self.find_all(virtual_instance_ids)
            live = {
                virtual_instance_id: resource
                for virtual_instance_id, resource in resolved.items()
                if not is_terminal_state(self._client.resource_type, resource.state)
            }

            if template is not None:
                for virtual_instance_id, resource in live.items():
                    self._check_ownership(virtual_instance_id, resource, template)

            span.set_attribute("live_count", len(live))
            log.info(f"Found {len(live)} live resource(s) out of {len(virtual_instance_ids)} virtual instance ID(s)")
            return live

    async def find_all(self, virtual_instance_ids: list[str]) -> dict[str, ProviderResourceDto]:
        """Return one resource per correlated virtual instance ID, terminal ones included.

        When several resources carry the same ID, a non-terminal resource wins
        over a terminal one.
        """
        if not virtual_instance_ids:
            return {}

        resources: list[ProviderResourceDto] = []
        unique_ids = list(dict.fromkeys(virtual_instance_ids))
        for start in range(0, len(unique_ids), MAX_TAG_FILTER_VALUES):
            chunk = unique_ids[start : start + MAX_TAG_FILTER_VALUES]
            resources.extend(await asyncio.to_thread(self._client.describe_by_tag, CORRELATION_TAG_KEY, chunk))

        wanted = set(unique_ids)
        resolved: dict[str, ProviderResourceDto] = {}
        for resource in resources:
            virtual_instance_id = AllocationTagHelper.get_virtual_instance_id(resource.tags)
            if virtual_instance_id not in wanted:
                continue

            current = resolved.get(virtual_instance_id)
            if current is None:
                resolved[virtual_instance_id] = resource
                continue

            current_terminal = is_terminal_state(self._client.resource_type, current.state)
            candidate_terminal = is_terminal_state(self._client.resource_type, resource.state)
            if current_terminal and not candidate_terminal:
                resolved[virtual_instance_id] = resource
            elif not current_terminal and not candidate_terminal:
                log.error(
                    f"Found multiple live resources for virtual instance ID {virtual_instance_id}: "
                    f"{current.provider_id} and {resource.provider_id}, keeping {current.provider_id}"
                )

        return resolved

    @staticmethod
    def _check_ownership(virtual_instance_id: str, resource: ProviderResourceDto, template: ResourceTemplate) -> None:
        """Warn when a correlated resource does not look like it came from ``template``."""
        template_name = resource.tags.get(TEMPLATE_TAG_KEY)
        if template_name and template_name != template.name:
            log.warning(
                f"Resource {resource.provider_id} for {virtual_instance_id} was created from template "
                f"'{template_name}', not '{template.name}'"
            )
        if isinstance(template, Ec2InstanceTemplate):
            if resource.image_id and resource.image_id != template.image_id:
                log.warning(
                    f"Resource {resource.provider_id} for {virtual_instance_id} runs image {resource.image_id}, "
                    f"expected {template.image_id}"
                )
            if resource.instance_type and resource.instance_type != template.instance_type:
                log.warning(
                    f"Resource {resource.provider_id} for {virtual_instance_id} is a {resource.instance_type}, "
                    f"expected {template.instance_type}"
                )
