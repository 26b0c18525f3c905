from .allocation import AllocationRequest, AllocationResult, ResourceFailure
from .resource_record import ResourceRecord

__all__ = [
    "AllocationRequest",
    "AllocationResult",
    "ResourceFailure",
    "ResourceRecord",
]
