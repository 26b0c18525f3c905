"""Templates describing the desired shape of the resources to allocate."""

from dataclasses import dataclass, field


@dataclass(kw_only=True)
class ResourceTemplate:
    """Provider independent part of a resource template.

    Attributes:
        name: Template name, written to every resource as the template tag
        tags: User-defined tags applied to every resource of the template
    """

    name: str
    tags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("template name cannot be empty")


@dataclass(kw_only=True)
class Ec2InstanceTemplate(ResourceTemplate):
    """Template for on-demand EC2 instances."""

    image_id: str
    instance_type: str
    subnet_id: str
    security_group_ids: list[str] = field(default_factory=list)
    key_name: str | None = None
    iam_profile_name: str | None = None
    availability_zone: str | None = None
    placement_group: str | None = None
    tenancy: str = "default"
    root_device_name: str = "/dev/sda1"
    root_volume_size_gb: int = 50
    root_volume_type: str = "gp3"
    ebs_optimized: bool = False
    associate_public_ip_address: bool = False
    user_data: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.image_id:
            raise ValueError("image_id cannot be empty")
        if not self.instance_type:
            raise ValueError("instance_type cannot be empty")


@dataclass(kw_only=True)
class RdsInstanceTemplate(ResourceTemplate):
    """Template for RDS DB instances."""

    engine: str
    engine_version: str | None = None
    instance_class: str
    allocated_storage_gb: int = 20
    master_username: str
    master_user_password: str
    db_name: str | None = None
    db_subnet_group_name: str | None = None
    vpc_security_group_ids: list[str] = field(default_factory=list)
    port: int | None = None
    multi_az: bool = False
    storage_encrypted: bool = False
    publicly_accessible: bool = False
    backup_retention_period: int | None = None
    identifier_prefix: str = "alloc"

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.engine:
            raise ValueError("engine cannot be empty")
        if not self.instance_class:
            raise ValueError("instance_class cannot be empty")
