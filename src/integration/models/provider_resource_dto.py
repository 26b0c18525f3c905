"""Data Transfer Object for a provider resource as seen by a describe call.

This module provides the DTO returned by every resource client operation
(launch, describe by tag, describe by id) regardless of the underlying
provider service.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ProviderResourceDto:
    """DTO representing one provider resource (EC2 instance, RDS DB instance).

    Attributes:
        provider_id: Provider-assigned identifier (e.g. 'i-1234567890abcdef0')
        state: Raw provider state name (e.g. 'pending', 'running', 'available')
        address: Network address used to reach the resource, once assigned
        resource_type: Provider resource type (e.g. 'ec2:instance', 'rds:db-instance')
        image_id: Image / engine the resource was launched from, when known
        instance_type: Instance type / DB instance class, when known
        tags: Dictionary of tags attached to the resource
        raw: Raw provider metadata snapshot from the last describe call
    """

    provider_id: str
    state: str
    address: str | None = None
    resource_type: str | None = None
    image_id: str | None = None
    instance_type: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)
