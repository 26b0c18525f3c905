"""Domain exceptions raised by the allocation engine."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.value_object.resource_record import ResourceRecord


class DomainException(Exception):
    """Base exception for domain errors."""
    pass


class InvalidAllocationRequestException(DomainException):
    """Raised when an allocation request violates its invariants."""
    pass


class AllocationShortfallException(DomainException):
    """Raised when fewer resources became ready than the requested minimum.

    Carries every requested record so the caller can see the terminal status
    (ready, gone, failed, timed_out) and the reason of each virtual instance ID.
    """

    def __init__(self, min_count: int, records: list["ResourceRecord"]):
        self.min_count = min_count
        self.records = records
        self.ready_count = sum(1 for record in records if record.is_ready)
        super().__init__(self._build_message())

    @property
    def statuses(self) -> dict[str, str]:
        """Terminal lifecycle per virtual instance ID."""
        return {record.virtual_instance_id: record.lifecycle.value for record in self.records}

    @property
    def failed_virtual_instance_ids(self) -> list[str]:
        """Virtual instance IDs that did not become ready."""
        return [record.virtual_instance_id for record in self.records if not record.is_ready]

    def _build_message(self) -> str:
        details = "; ".join(
            f"{record.virtual_instance_id}={record.lifecycle.value}"
            + (f" ({record.failure_reason})" if record.failure_reason else "")
            for record in self.records
        )
        return (
            f"Problem allocating instances: {self.ready_count} ready, "
            f"{self.min_count} required out of {len(self.records)} requested [{details}]"
        )
