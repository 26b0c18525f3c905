from .provider_resource_dto import ProviderResourceDto
from .resource_templates import Ec2InstanceTemplate, RdsInstanceTemplate, ResourceTemplate

__all__ = [
    "ProviderResourceDto",
    "ResourceTemplate",
    "Ec2InstanceTemplate",
    "RdsInstanceTemplate",
]
