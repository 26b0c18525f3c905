from enum import Enum


class Ec2InstanceStateName(str, Enum):
    """EC2 instance state names as reported by DescribeInstances."""

    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Ec2InstanceAttributeName(str, Enum):
    """Attributes fetched through DescribeInstanceAttribute for display only."""

    SRIOV_NET_SUPPORT = "sriovNetSupport"
