from .aws_regions import AwsRegion
from .ec2_instance import Ec2InstanceAttributeName, Ec2InstanceStateName
from .rds_instance import RdsInstanceStatus

__all__ = [
    "AwsRegion",
    "Ec2InstanceAttributeName",
    "Ec2InstanceStateName",
    "RdsInstanceStatus",
]  # Re-export enums (prevents flake8 F401 unused import warnings)
