from .allocation_reconciler import AllocationReconciler
from .correlation_index import CorrelationIndex
from .instance_launcher import InstanceLauncher
from .readiness_poller import ReadinessPoller

__all__ = [
    "AllocationReconciler",
    "CorrelationIndex",
    "InstanceLauncher",
    "ReadinessPoller",
]
