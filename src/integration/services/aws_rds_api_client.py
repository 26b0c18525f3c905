import hashlib
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from botocore.config import Config  # type: ignore
from botocore.exceptions import ClientError, ParamValidationError  # type: ignore

from domain.enums import ResourceType
from integration.enums import AwsRegion
from integration.exceptions import (
    IntegrationException,
    RDSInstanceCreationException,
    RDSInstanceNotFoundException,
    RDSInstanceOperationException,
)
from integration.models import ProviderResourceDto, RdsInstanceTemplate, ResourceTemplate
from integration.services.aws_ec2_api_client import (
    AwsAccountCredentials,
    build_boto3_session,
    chunked,
    from_aws_tags,
    to_aws_tags,
)
from integration.services.resource_client import ResourceClient

log = logging.getLogger(__name__)

MAX_FILTER_VALUES = 100


class AwsRdsClient(ResourceClient):
    """RDS implementation of the resource client.

    The provider ID of a DB instance is its DBInstanceIdentifier.
    """

    resource_type = ResourceType.RDS_DB_INSTANCE.value

    def __init__(
        self,
        aws_account_credentials: AwsAccountCredentials,
        aws_region: AwsRegion = AwsRegion.US_EAST_1,
        max_attempts: int = 5,
        skip_final_snapshot: bool = False,
    ):
        self.aws_account_credentials = aws_account_credentials
        self.aws_region = aws_region
        self.skip_final_snapshot = skip_final_snapshot
        session = build_boto3_session(aws_account_credentials, aws_region)
        self._rds = session.client(
            "rds",
            config=Config(retries={"max_attempts": max_attempts, "mode": "standard"}),
        )

    def _parse_aws_error(self, error: ClientError, operation: str) -> Exception:
        error_code = error.response.get("Error", {}).get("Code", "")
        error_message = error.response.get("Error", {}).get("Message", str(error))

        if error_code in ("DBInstanceNotFound", "DBInstanceNotFoundFault"):
            return RDSInstanceNotFoundException(f"{operation} - DB instance not found: {error_message}")

        if error_code in (
            "InstanceQuotaExceeded",
            "StorageQuotaExceeded",
            "InsufficientDBInstanceCapacity",
            "DBInstanceAlreadyExists",
            "InvalidParameterValue",
            "InvalidParameterCombination",
            "DBSubnetGroupNotFoundFault",
        ):
            return RDSInstanceCreationException(f"{operation} - [{error_code}]: {error_message}")

        if error_code in ("InvalidDBInstanceState", "InvalidDBInstanceStateFault"):
            return RDSInstanceOperationException(f"{operation} - Invalid DB instance state: {error_message}")

        return IntegrationException(f"{operation} - AWS error [{error_code}]: {error_message}")

    @staticmethod
    def build_db_instance_identifier(prefix: str, virtual_instance_id: str) -> str:
        """Return a valid DB instance identifier for a virtual instance ID.

        Identifiers must start with a letter, contain only letters, digits and
        single hyphens, and be at most 63 characters long.
        """
        digest = hashlib.md5(virtual_instance_id.encode("utf-8")).hexdigest()[:12]
        return f"{prefix}-{digest}-{uuid.uuid4().hex[:8]}"

    def _to_dto(self, db_instance: dict[str, Any]) -> ProviderResourceDto:
        return ProviderResourceDto(
            provider_id=db_instance["DBInstanceIdentifier"],
            state=db_instance.get("DBInstanceStatus", "creating"),
            address=(db_instance.get("Endpoint") or {}).get("Address"),
            resource_type=self.resource_type,
            instance_type=db_instance.get("DBInstanceClass"),
            tags=from_aws_tags(db_instance.get("TagList")),
            raw=db_instance,
        )

    def launch(
        self,
        template: ResourceTemplate,
        virtual_instance_id: str,
        tags: dict[str, str] | None = None,
    ) -> ProviderResourceDto:
        """Create one DB instance for a virtual instance ID."""
        if not isinstance(template, RdsInstanceTemplate):
            raise RDSInstanceCreationException(f"Expected an RDS instance template, got {type(template).__name__}")

        identifier = self.build_db_instance_identifier(template.identifier_prefix, virtual_instance_id)
        request: dict[str, Any] = {
            "DBInstanceIdentifier": identifier,
            "DBInstanceClass": template.instance_class,
            "Engine": template.engine,
            "AllocatedStorage": template.allocated_storage_gb,
            "MasterUsername": template.master_username,
            "MasterUserPassword": template.master_user_password,
            "MultiAZ": template.multi_az,
            "StorageEncrypted": template.storage_encrypted,
            "PubliclyAccessible": template.publicly_accessible,
        }
        if template.engine_version:
            request["EngineVersion"] = template.engine_version
        if template.db_name:
            request["DBName"] = template.db_name
        if template.db_subnet_group_name:
            request["DBSubnetGroupName"] = template.db_subnet_group_name
        if template.vpc_security_group_ids:
            request["VpcSecurityGroupIds"] = template.vpc_security_group_ids
        if template.port:
            request["Port"] = template.port
        if template.backup_retention_period is not None:
            request["BackupRetentionPeriod"] = template.backup_retention_period
        if tags:
            request["Tags"] = to_aws_tags(tags)

        try:
            log.info(f">> Creating DB instance {identifier} for {virtual_instance_id} ({template.engine})")
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/rds/client/create_db_instance.html
            response = self._rds.create_db_instance(**request)
            dto = self._to_dto(response["DBInstance"])
            log.info(f"<< DB instance {dto.provider_id} requested for {virtual_instance_id} (status={dto.state})")
            return dto
        except ParamValidationError as e:
            log.error(f"Invalid parameters for DB instance {identifier}: {e}")
            raise RDSInstanceCreationException(f"Invalid parameters for DB instance creation: {e}")
        except ClientError as e:
            log.error(f"Error creating DB instance {identifier} for {virtual_instance_id}: {e}")
            raise self._parse_aws_error(e, f"Create DB instance for {virtual_instance_id}")

    def _describe(self, operation: str, **kwargs) -> list[ProviderResourceDto]:
        try:
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/rds/client/describe_db_instances.html
            paginator = self._rds.get_paginator("describe_db_instances")
            resources = []
            for page in paginator.paginate(**kwargs):
                for db_instance in page.get("DBInstances", []):
                    resources.append(self._to_dto(db_instance))
            return resources
        except ClientError as e:
            log.error(f"{operation} failed: {e}")
            raise self._parse_aws_error(e, operation)

    def describe_by_tag(self, tag_key: str, values: list[str]) -> list[ProviderResourceDto]:
        """Describe DB instances whose tag ``tag_key`` is one of ``values``.

        DescribeDBInstances cannot filter on tags, so matching happens on the
        TagList of every DB instance in the region.
        """
        wanted = set(values)
        if not wanted:
            return []
        return [
            resource
            for resource in self._describe(f"Describe DB instances by tag {tag_key}")
            if resource.tags.get(tag_key) in wanted
        ]

    def describe_by_id(self, provider_ids: list[str]) -> list[ProviderResourceDto]:
        resources = []
        for chunk in chunked(list(provider_ids), MAX_FILTER_VALUES):
            resources.extend(
                self._describe(
                    "Describe DB instances by id",
                    Filters=[{"Name": "db-instance-id", "Values": chunk}],
                )
            )
        return resources

    def tag(self, provider_id: str, tags: dict[str, str]) -> None:
        """Attach tags to a DB instance, resolving its ARN first."""
        try:
            response = self._rds.describe_db_instances(DBInstanceIdentifier=provider_id)
            db_instances = response.get("DBInstances", [])
            if not db_instances:
                raise RDSInstanceNotFoundException(f"DB instance {provider_id} not found")
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/rds/client/add_tags_to_resource.html
            self._rds.add_tags_to_resource(ResourceName=db_instances[0]["DBInstanceArn"], Tags=to_aws_tags(tags))
            log.info(f"Tagged DB instance {provider_id} with {len(tags)} tag(s)")
        except ClientError as e:
            error = self._parse_aws_error(e, f"Add tags to DB instance {provider_id}")
            if isinstance(error, RDSInstanceNotFoundException):
                raise error
            log.error(f"Error adding tags to DB instance {provider_id}: {e}")
            raise RDSInstanceOperationException(str(error))

    def terminate(self, provider_ids: list[str]) -> None:
        """Delete DB instances; missing or already deleting ones are skipped."""
        for provider_id in provider_ids:
            request: dict[str, Any] = {"DBInstanceIdentifier": provider_id, "DeleteAutomatedBackups": True}
            if self.skip_final_snapshot:
                request["SkipFinalSnapshot"] = True
            else:
                timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
                request["SkipFinalSnapshot"] = False
                request["FinalDBSnapshotIdentifier"] = f"{provider_id}-final-{timestamp}"

            try:
                log.info(f">> Deleting DB instance {provider_id}")
                # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/rds/client/delete_db_instance.html
                response = self._rds.delete_db_instance(**request)
                log.info(f"<< DB instance {provider_id} is {response['DBInstance'].get('DBInstanceStatus')}")
            except ClientError as e:
                error = self._parse_aws_error(e, f"Delete DB instance {provider_id}")
                if isinstance(error, RDSInstanceNotFoundException):
                    log.warning(f"DB instance {provider_id} not found, assuming already deleted")
                    continue
                if isinstance(error, RDSInstanceOperationException) and "already being deleted" in str(error):
                    log.info(f"DB instance {provider_id} is already being deleted")
                    continue
                log.error(f"Error deleting DB instance {provider_id}: {e}")
                raise error
