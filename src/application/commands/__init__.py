"""Application commands package."""

from .allocate_instances_command import AllocateInstancesCommand, AllocateInstancesCommandHandler
from .delete_instances_command import DeleteInstancesCommand, DeleteInstancesCommandHandler

__all__ = [
    "AllocateInstancesCommand",
    "AllocateInstancesCommandHandler",
    "DeleteInstancesCommand",
    "DeleteInstancesCommandHandler",
]
