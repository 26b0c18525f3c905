"""Resource record tracked for one virtual instance ID during an allocation call."""

from dataclasses import dataclass, field
from typing import Any

from domain.enums import ResourceLifecycle


@dataclass
class ResourceRecord:
    """In-memory record of the resource allocated for a virtual instance ID.

    Owned by a single allocation call and discarded at its end. The provider
    resource itself outlives the call and is found again by its correlation tag.
    """

    virtual_instance_id: str
    provider_id: str | None = None
    lifecycle: ResourceLifecycle = ResourceLifecycle.PENDING
    state: str | None = None  # Raw provider state from the last describe
    address: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)
    extended_attributes: dict[str, Any] = field(default_factory=dict)
    failure_reason: str | None = None

    def __post_init__(self) -> None:
        if not self.virtual_instance_id:
            raise ValueError("virtual_instance_id cannot be empty")

    @property
    def is_pending(self) -> bool:
        return self.lifecycle == ResourceLifecycle.PENDING

    @property
    def is_ready(self) -> bool:
        return self.lifecycle == ResourceLifecycle.READY

    def observe(self, state: str, address: str | None, raw: dict[str, Any] | None = None) -> None:
        """Record the latest provider snapshot without changing the lifecycle."""
        self.state = state
        if address:
            self.address = address
        if raw is not None:
            self.raw = raw

    def mark_ready(self, address: str) -> None:
        self.address = address
        self.lifecycle = ResourceLifecycle.READY

    def mark_gone(self, reason: str) -> None:
        self.lifecycle = ResourceLifecycle.GONE
        self.failure_reason = reason

    def mark_failed(self, reason: str) -> None:
        self.lifecycle = ResourceLifecycle.FAILED
        self.failure_reason = reason

    def mark_timed_out(self) -> None:
        self.lifecycle = ResourceLifecycle.TIMED_OUT
        self.failure_reason = "readiness wait timed out"
