"""Mapper functions from allocation value objects to plain dictionaries.

Handlers return these dictionaries as OperationResult data so that callers
(and the CLI) never depend on the in-memory record types.
"""

from typing import Any

from domain.value_object import AllocationResult, ResourceRecord


def record_to_dict(record: ResourceRecord) -> dict[str, Any]:
    return {
        "virtual_instance_id": record.virtual_instance_id,
        "provider_id": record.provider_id,
        "lifecycle": record.lifecycle.value,
        "state": record.state,
        "address": record.address,
        "extended_attributes": dict(record.extended_attributes),
        "failure_reason": record.failure_reason,
    }


def allocation_result_to_dict(result: AllocationResult) -> dict[str, Any]:
    """Map an allocation result, keeping failures visible next to the ready resources."""
    return {
        "ready": {vid: record_to_dict(record) for vid, record in result.ready.items()},
        "failures": [
            {
                "virtual_instance_id": failure.virtual_instance_id,
                "lifecycle": failure.lifecycle.value,
                "reason": failure.reason,
                "provider_id": failure.provider_id,
            }
            for failure in result.failures
        ],
    }
