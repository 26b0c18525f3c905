from enum import Enum


class RdsInstanceStatus(str, Enum):
    """RDS DB instance statuses as reported by DescribeDBInstances."""

    AVAILABLE = "available"
    BACKING_UP = "backing-up"
    CONFIGURING_ENHANCED_MONITORING = "configuring-enhanced-monitoring"
    CREATING = "creating"
    DELETING = "deleting"
    DELETED = "deleted"
    FAILED = "failed"
    INACCESSIBLE_ENCRYPTION_CREDENTIALS = "inaccessible-encryption-credentials"
    INCOMPATIBLE_NETWORK = "incompatible-network"
    INCOMPATIBLE_OPTION_GROUP = "incompatible-option-group"
    INCOMPATIBLE_PARAMETERS = "incompatible-parameters"
    INCOMPATIBLE_RESTORE = "incompatible-restore"
    MAINTENANCE = "maintenance"
    MODIFYING = "modifying"
    REBOOTING = "rebooting"
    RENAMING = "renaming"
    RESETTING_MASTER_CREDENTIALS = "resetting-master-credentials"
    STARTING = "starting"
    STOPPED = "stopped"
    STOPPING = "stopping"
    STORAGE_FULL = "storage-full"
    STORAGE_OPTIMIZATION = "storage-optimization"
    UPGRADING = "upgrading"
