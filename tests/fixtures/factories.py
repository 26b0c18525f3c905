"""Test factories: resource templates and an in-memory resource client."""

import itertools
import threading
from typing import Any

from domain.enums import ResourceType
from integration.exceptions import EC2InstanceCreationException, EC2InstanceNotFoundException, EC2TagOperationException
from integration.models import Ec2InstanceTemplate, ProviderResourceDto, ResourceTemplate
from integration.services.resource_client import ResourceClient


class TemplateFactory:
    """Factory for resource templates."""

    @staticmethod
    def ec2(name: str = "worker", **overrides: Any) -> Ec2InstanceTemplate:
        values: dict[str, Any] = {
            "name": name,
            "image_id": "ami-0123456789abcdef0",
            "instance_type": "m5.large",
            "subnet_id": "subnet-0123456789abcdef0",
            "security_group_ids": ["sg-0123456789abcdef0"],
        }
        values.update(overrides)
        return Ec2InstanceTemplate(**values)


class FakeResourceClient(ResourceClient):
    """In-memory EC2-like resource client.

    Launched resources start ``pending`` and become ``running`` with a private
    address after ``ready_after_polls`` describe-by-id calls. IDs listed in
    ``terminate_on_poll`` are terminated instead, as if the provider reclaimed them.
    """

    resource_type = ResourceType.EC2_INSTANCE.value

    def __init__(self, ready_after_polls: int = 1):
        self.ready_after_polls = ready_after_polls
        self.resources: dict[str, ProviderResourceDto] = {}
        self.launch_calls: list[tuple[str, dict[str, str] | None]] = []
        self.tag_calls: list[tuple[str, dict[str, str]]] = []
        self.terminate_calls: list[list[str]] = []
        self.describe_by_id_calls: list[list[str]] = []
        self.describe_by_tag_calls: list[list[str]] = []

        self.fail_launch_for: set[str] = set()
        self.terminate_on_poll: set[str] = set()
        self.tag_not_visible_times = 0
        self.tag_always_fails = False
        self.extended_attributes_error: Exception | None = None

        self._polls: dict[str, int] = {}
        self._launched_for: dict[str, str] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def add_resource(
        self,
        virtual_instance_id: str | None,
        state: str = "running",
        address: str | None = "10.0.0.100",
        tags: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> ProviderResourceDto:
        """Seed a resource as if it had been created by an earlier call."""
        all_tags = dict(tags or {})
        if virtual_instance_id is not None:
            all_tags["alloc:virtual-instance-id"] = virtual_instance_id
        with self._lock:
            provider_id = f"i-{next(self._ids):017x}"
        resource = ProviderResourceDto(
            provider_id=provider_id,
            state=state,
            address=address,
            resource_type=self.resource_type,
            tags=all_tags,
            **kwargs,
        )
        self.resources[provider_id] = resource
        return resource

    def provider_id_of(self, virtual_instance_id: str) -> str:
        """Return the provider ID of the most recent resource tagged with the ID."""
        matches = [
            resource.provider_id
            for resource in self.resources.values()
            if resource.tags.get("alloc:virtual-instance-id") == virtual_instance_id
        ]
        return matches[-1]

    def launch(
        self,
        template: ResourceTemplate,
        virtual_instance_id: str,
        tags: dict[str, str] | None = None,
    ) -> ProviderResourceDto:
        with self._lock:
            self.launch_calls.append((virtual_instance_id, tags))
            if virtual_instance_id in self.fail_launch_for:
                raise EC2InstanceCreationException(f"capacity not available for {virtual_instance_id}")
            provider_id = f"i-{next(self._ids):017x}"
            resource = ProviderResourceDto(
                provider_id=provider_id,
                state="pending",
                resource_type=self.resource_type,
                image_id=getattr(template, "image_id", None),
                instance_type=getattr(template, "instance_type", None),
                tags=dict(tags or {}),
            )
            self.resources[provider_id] = resource
            self._polls[provider_id] = 0
            self._launched_for[provider_id] = virtual_instance_id
            return ProviderResourceDto(**vars(resource))

    def describe_by_tag(self, tag_key: str, values: list[str]) -> list[ProviderResourceDto]:
        with self._lock:
            self.describe_by_tag_calls.append(list(values))
            wanted = set(values)
            return [
                ProviderResourceDto(**vars(resource))
                for resource in self.resources.values()
                if resource.tags.get(tag_key) in wanted
            ]

    def describe_by_id(self, provider_ids: list[str]) -> list[ProviderResourceDto]:
        with self._lock:
            self.describe_by_id_calls.append(list(provider_ids))
            described = []
            for provider_id in provider_ids:
                resource = self.resources.get(provider_id)
                if resource is None:
                    continue
                self._advance(resource)
                described.append(ProviderResourceDto(**vars(resource)))
            return described

    def _advance(self, resource: ProviderResourceDto) -> None:
        if resource.provider_id not in self._polls or resource.state != "pending":
            return
        self._polls[resource.provider_id] += 1
        virtual_instance_id = self._launched_for.get(resource.provider_id)
        if virtual_instance_id in self.terminate_on_poll:
            resource.state = "terminated"
        elif self._polls[resource.provider_id] >= self.ready_after_polls:
            resource.state = "running"
            resource.address = f"10.0.0.{len(self._polls)}"

    def tag(self, provider_id: str, tags: dict[str, str]) -> None:
        with self._lock:
            self.tag_calls.append((provider_id, tags))
            if self.tag_always_fails:
                raise EC2TagOperationException(f"tagging {provider_id} is not allowed")
            if self.tag_not_visible_times > 0:
                self.tag_not_visible_times -= 1
                raise EC2InstanceNotFoundException(f"The instance ID '{provider_id}' does not exist")
            self.resources[provider_id].tags.update(tags)

    def terminate(self, provider_ids: list[str]) -> None:
        with self._lock:
            self.terminate_calls.append(list(provider_ids))
            for provider_id in provider_ids:
                resource = self.resources.get(provider_id)
                if resource is not None:
                    resource.state = "terminated"

    def describe_extended_attributes(self, provider_id: str) -> dict[str, Any]:
        if self.extended_attributes_error is not None:
            raise self.extended_attributes_error
        return {"sriov_net_support": "simple"}
