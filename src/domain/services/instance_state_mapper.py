"""Mapping from provider state vocabularies to abstract instance statuses.

The mapping is total: any state not listed for a resource type, a missing
state or an unknown resource type maps to ``InstanceStatus.UNKNOWN``.
"""

from domain.enums import InstanceStatus, ResourceType
from integration.enums import Ec2InstanceStateName, RdsInstanceStatus

EC2_INSTANCE_STATE_MAP: dict[str, InstanceStatus] = {
    Ec2InstanceStateName.PENDING.value: InstanceStatus.PENDING,
    Ec2InstanceStateName.RUNNING.value: InstanceStatus.RUNNING,
    Ec2InstanceStateName.SHUTTING_DOWN.value: InstanceStatus.DELETING,
    Ec2InstanceStateName.TERMINATED.value: InstanceStatus.DELETED,
    Ec2InstanceStateName.STOPPING.value: InstanceStatus.STOPPING,
    Ec2InstanceStateName.STOPPED.value: InstanceStatus.STOPPED,
}

RDS_INSTANCE_STATE_MAP: dict[str, InstanceStatus] = {
    RdsInstanceStatus.AVAILABLE.value: InstanceStatus.RUNNING,
    RdsInstanceStatus.BACKING_UP.value: InstanceStatus.PENDING,
    RdsInstanceStatus.CONFIGURING_ENHANCED_MONITORING.value: InstanceStatus.PENDING,
    RdsInstanceStatus.CREATING.value: InstanceStatus.PENDING,
    RdsInstanceStatus.MAINTENANCE.value: InstanceStatus.PENDING,
    RdsInstanceStatus.MODIFYING.value: InstanceStatus.PENDING,
    RdsInstanceStatus.REBOOTING.value: InstanceStatus.PENDING,
    RdsInstanceStatus.RENAMING.value: InstanceStatus.PENDING,
    RdsInstanceStatus.RESETTING_MASTER_CREDENTIALS.value: InstanceStatus.PENDING,
    RdsInstanceStatus.STARTING.value: InstanceStatus.PENDING,
    RdsInstanceStatus.STORAGE_OPTIMIZATION.value: InstanceStatus.PENDING,
    RdsInstanceStatus.UPGRADING.value: InstanceStatus.PENDING,
    RdsInstanceStatus.STOPPING.value: InstanceStatus.STOPPING,
    RdsInstanceStatus.STOPPED.value: InstanceStatus.STOPPED,
    RdsInstanceStatus.DELETING.value: InstanceStatus.DELETING,
    RdsInstanceStatus.DELETED.value: InstanceStatus.DELETED,
    RdsInstanceStatus.FAILED.value: InstanceStatus.FAILED,
    RdsInstanceStatus.INACCESSIBLE_ENCRYPTION_CREDENTIALS.value: InstanceStatus.FAILED,
    RdsInstanceStatus.INCOMPATIBLE_NETWORK.value: InstanceStatus.FAILED,
    RdsInstanceStatus.INCOMPATIBLE_OPTION_GROUP.value: InstanceStatus.FAILED,
    RdsInstanceStatus.INCOMPATIBLE_PARAMETERS.value: InstanceStatus.FAILED,
    RdsInstanceStatus.INCOMPATIBLE_RESTORE.value: InstanceStatus.FAILED,
    RdsInstanceStatus.STORAGE_FULL.value: InstanceStatus.FAILED,
}

STATE_MAPS: dict[str, dict[str, InstanceStatus]] = {
    ResourceType.EC2_INSTANCE.value: EC2_INSTANCE_STATE_MAP,
    ResourceType.RDS_DB_INSTANCE.value: RDS_INSTANCE_STATE_MAP,
}

GONE_STATUSES = frozenset({InstanceStatus.DELETING, InstanceStatus.DELETED, InstanceStatus.FAILED})


def map_instance_state(resource_type: ResourceType | str, state: str | None) -> InstanceStatus:
    """Return the abstract status for a raw provider state."""
    if state is None:
        return InstanceStatus.UNKNOWN
    if isinstance(resource_type, ResourceType):
        resource_type = resource_type.value
    state_map = STATE_MAPS.get(resource_type, {})
    return state_map.get(state.lower(), InstanceStatus.UNKNOWN)


def is_gone(status: InstanceStatus) -> bool:
    """Whether a status is terminal and unusable (terminated, terminating or failed)."""
    return status in GONE_STATUSES


def is_terminal_state(resource_type: ResourceType | str, state: str | None) -> bool:
    """Whether a raw provider state means the resource is dead for good."""
    return is_gone(map_instance_state(resource_type, state))
