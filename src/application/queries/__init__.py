"""Application queries package."""

from .find_instances_query import FindInstancesQuery, FindInstancesQueryHandler
from .get_instance_state_query import GetInstanceStateQuery, GetInstanceStateQueryHandler

__all__ = [
    "FindInstancesQuery",
    "FindInstancesQueryHandler",
    "GetInstanceStateQuery",
    "GetInstanceStateQueryHandler",
]
