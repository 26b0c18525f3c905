"""Allocation request and result value objects."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from domain.enums import ResourceLifecycle
from domain.exceptions import InvalidAllocationRequestException
from domain.value_object.resource_record import ResourceRecord

if TYPE_CHECKING:
    from integration.models import ResourceTemplate


@dataclass(frozen=True)
class ResourceFailure:
    """Per-resource failure accumulated during an allocation call."""

    virtual_instance_id: str
    lifecycle: ResourceLifecycle
    reason: str
    provider_id: str | None = None


@dataclass(frozen=True)
class AllocationRequest:
    """Request to allocate one resource per virtual instance ID."""

    template: "ResourceTemplate"
    virtual_instance_ids: tuple[str, ...]
    min_count: int

    def __post_init__(self) -> None:
        """Validate request invariants."""
        # Accept any iterable of IDs but store a tuple
        object.__setattr__(self, "virtual_instance_ids", tuple(self.virtual_instance_ids))
        if not self.virtual_instance_ids:
            raise InvalidAllocationRequestException("At least one virtual instance ID is required")
        if len(set(self.virtual_instance_ids)) != len(self.virtual_instance_ids):
            raise InvalidAllocationRequestException("Virtual instance IDs must be unique within a request")
        if self.min_count < 0:
            raise InvalidAllocationRequestException("min_count cannot be negative")
        if self.min_count > len(self.virtual_instance_ids):
            raise InvalidAllocationRequestException(
                f"min_count ({self.min_count}) cannot exceed the number of "
                f"virtual instance IDs ({len(self.virtual_instance_ids)})"
            )


@dataclass
class AllocationResult:
    """Outcome of a successful allocation call.

    Attributes:
        ready: Ready records keyed by virtual instance ID
        records: Every requested record with its terminal lifecycle
        failures: Per-resource failures, surfaced even on overall success
    """

    ready: dict[str, ResourceRecord] = field(default_factory=dict)
    records: dict[str, ResourceRecord] = field(default_factory=dict)
    failures: list[ResourceFailure] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[ResourceRecord]) -> "AllocationResult":
        result = cls()
        for record in records:
            result.records[record.virtual_instance_id] = record
            if record.is_ready:
                result.ready[record.virtual_instance_id] = record
            else:
                result.failures.append(
                    ResourceFailure(
                        virtual_instance_id=record.virtual_instance_id,
                        lifecycle=record.lifecycle,
                        reason=record.failure_reason or record.lifecycle.value,
                        provider_id=record.provider_id,
                    )
                )
        return result

    def __len__(self) -> int:
        return len(self.ready)
