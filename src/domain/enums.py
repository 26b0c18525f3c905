from enum import Enum


class InstanceStatus(str, Enum):
    """Provider independent status of an allocated resource."""
    PENDING = "pending"  # Being created or transitioning, not usable yet
    RUNNING = "running"  # Up and usable once it has an address
    STOPPING = "stopping"  # Being stopped
    STOPPED = "stopped"  # Stopped, can be started again
    DELETING = "deleting"  # Being terminated / deleted
    DELETED = "deleted"  # Terminated / deleted
    FAILED = "failed"  # Unrecoverable provider failure
    UNKNOWN = "unknown"  # Status cannot be determined


class ResourceLifecycle(str, Enum):
    """Lifecycle of a resource record within one allocation call."""
    PENDING = "pending"  # Launched or found, waiting for readiness
    READY = "ready"  # Running with a network address
    GONE = "gone"  # Terminated or failed on the provider side before readiness
    FAILED = "failed"  # Launch, tagging or describe failed for this record
    TIMED_OUT = "timed_out"  # Still pending when the readiness wait ran out


class ResourceType(str, Enum):
    """Provider resource types the engine knows state vocabularies for."""
    EC2_INSTANCE = "ec2:instance"
    RDS_DB_INSTANCE = "rds:db-instance"
