"""Resource Client Service Provider Interface (SPI).

Abstraction layer for the provider operations the allocation engine needs.
Calls are synchronous (boto3); the engine runs them off the event loop.
"""

from abc import ABC, abstractmethod
from typing import Any

from integration.models import ProviderResourceDto, ResourceTemplate


class ResourceClient(ABC):
    """
    Abstract interface for provider resource operations.

    Implementations:
    - AwsEc2Client: AWS EC2 on-demand instances
    - AwsRdsClient: AWS RDS DB instances

    Every method may raise an IntegrationException subclass once the SDK's own
    retries are exhausted.
    """

    # Key into the provider state vocabularies of domain.services.instance_state_mapper
    resource_type: str = "resource"

    @abstractmethod
    def launch(
        self,
        template: ResourceTemplate,
        virtual_instance_id: str,
        tags: dict[str, str] | None = None,
    ) -> ProviderResourceDto:
        """
        Request creation of one resource.

        Args:
            template: Template describing the resource shape
            virtual_instance_id: Virtual instance ID the resource is created for
            tags: Tags to attach atomically at creation time, or None to create untagged

        Returns:
            The created resource with its initial state
        """
        pass

    @abstractmethod
    def describe_by_tag(self, tag_key: str, values: list[str]) -> list[ProviderResourceDto]:
        """
        Describe resources whose tag ``tag_key`` has one of ``values``.

        Args:
            tag_key: Tag key to filter on
            values: Accepted tag values

        Returns:
            Matching resources in any state (terminal ones included)
        """
        pass

    @abstractmethod
    def describe_by_id(self, provider_ids: list[str]) -> list[ProviderResourceDto]:
        """
        Describe resources by provider ID.

        Args:
            provider_ids: Provider resource IDs

        Returns:
            The resources that currently exist
        """
        pass

    @abstractmethod
    def tag(self, provider_id: str, tags: dict[str, str]) -> None:
        """
        Attach tags to an existing resource.

        Args:
            provider_id: Provider resource ID
            tags: Tags to attach
        """
        pass

    @abstractmethod
    def terminate(self, provider_ids: list[str]) -> None:
        """
        Terminate resources. Resources that no longer exist are ignored.

        Args:
            provider_ids: Provider resource IDs
        """
        pass

    def describe_extended_attributes(self, provider_id: str) -> dict[str, Any]:
        """
        Fetch auxiliary display attributes for one resource.

        Not required for readiness; callers treat failures as missing data.
        """
        return {}
