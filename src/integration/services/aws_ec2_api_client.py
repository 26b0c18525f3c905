import logging
import uuid
from dataclasses import dataclass
from typing import Any

import boto3  # type: ignore
from botocore.config import Config  # type: ignore
from botocore.exceptions import ClientError, ParamValidationError  # type: ignore

from domain.enums import ResourceType
from integration.enums import AwsRegion, Ec2InstanceAttributeName
from integration.exceptions import (
    EC2AuthenticationException,
    EC2InstanceCreationException,
    EC2InstanceNotFoundException,
    EC2InstanceOperationException,
    EC2InvalidParameterException,
    EC2QuotaExceededException,
    EC2TagOperationException,
    IntegrationException,
)
from integration.models import Ec2InstanceTemplate, ProviderResourceDto, ResourceTemplate
from integration.services.resource_client import ResourceClient

log = logging.getLogger(__name__)
logging.getLogger("botocore").setLevel(logging.INFO)
logging.getLogger("urllib3").setLevel(logging.INFO)

# AWS limits the number of values in a single describe filter
MAX_FILTER_VALUES = 200


@dataclass
class AwsAccountCredentials:
    aws_access_key_id: str | None = None

    aws_secret_access_key: str | None = None


def chunked(values: list[str], size: int) -> list[list[str]]:
    """Split values into lists of at most ``size`` elements."""
    return [values[i : i + size] for i in range(0, len(values), size)]


def to_aws_tags(tags: dict[str, str]) -> list[dict[str, str]]:
    return [{"Key": key, "Value": value} for key, value in tags.items()]


def from_aws_tags(tags: list[dict[str, str]] | None) -> dict[str, str]:
    return {tag["Key"]: tag["Value"] for tag in tags or []}


def build_boto3_session(aws_account_credentials: AwsAccountCredentials, aws_region: AwsRegion) -> boto3.Session:
    """Create a boto3 session, falling back to the default credential chain."""
    session_kwargs: dict[str, Any] = {"region_name": aws_region.value}
    if aws_account_credentials.aws_access_key_id and aws_account_credentials.aws_secret_access_key:
        session_kwargs["aws_access_key_id"] = aws_account_credentials.aws_access_key_id
        session_kwargs["aws_secret_access_key"] = aws_account_credentials.aws_secret_access_key
    return boto3.Session(**session_kwargs)


class AwsEc2Client(ResourceClient):
    """EC2 implementation of the resource client for on-demand instances.

    Transient errors (throttling, timeouts) are retried by botocore according
    to ``max_attempts``; anything still failing surfaces as an
    IntegrationException subclass.
    """

    resource_type = ResourceType.EC2_INSTANCE.value

    aws_account_credentials: AwsAccountCredentials

    def __init__(
        self,
        aws_account_credentials: AwsAccountCredentials,
        aws_region: AwsRegion = AwsRegion.US_EAST_1,
        max_attempts: int = 5,
    ):
        self.aws_account_credentials = aws_account_credentials
        self.aws_region = aws_region
        session = build_boto3_session(aws_account_credentials, aws_region)
        # Clients are thread-safe, sessions are not: create the client once
        self._ec2 = session.client(
            "ec2",
            config=Config(retries={"max_attempts": max_attempts, "mode": "standard"}),
        )

    def _parse_aws_error(self, error: ClientError, operation: str) -> Exception:
        """Parse AWS ClientError and return appropriate specific exception.

        Args:
            error: The boto3 ClientError
            operation: Description of the operation that failed

        Returns:
            Specific exception type based on error code
        """
        error_code = error.response.get("Error", {}).get("Code", "")
        error_message = error.response.get("Error", {}).get("Message", str(error))

        # Authentication/Authorization errors
        if error_code in (
            "UnauthorizedOperation",
            "InvalidClientTokenId",
            "SignatureDoesNotMatch",
            "AccessDenied",
        ):
            return EC2AuthenticationException(f"{operation} - Authentication failed: {error_message}")

        # Instance not found
        if error_code in ("InvalidInstanceID.NotFound", "InvalidInstanceId.NotFound"):
            return EC2InstanceNotFoundException(f"{operation} - Instance not found: {error_message}")

        # Quota/Limit errors
        if error_code in (
            "InstanceLimitExceeded",
            "InsufficientInstanceCapacity",
            "RequestLimitExceeded",
            "VcpuLimitExceeded",
        ):
            return EC2QuotaExceededException(f"{operation} - AWS quota exceeded: {error_message}")

        # Invalid parameters
        if error_code in (
            "InvalidParameterValue",
            "InvalidParameter",
            "InvalidParameterCombination",
            "InvalidAMIID.NotFound",
            "InvalidAMIID.Malformed",
            "InvalidGroup.NotFound",
            "InvalidSubnetID.NotFound",
            "InvalidKeyPair.NotFound",
        ):
            return EC2InvalidParameterException(f"{operation} - Invalid parameter: {error_message}")

        # Generic AWS error
        return IntegrationException(f"{operation} - AWS error [{error_code}]: {error_message}")

    def _to_dto(self, instance: dict[str, Any]) -> ProviderResourceDto:
        return ProviderResourceDto(
            provider_id=instance["InstanceId"],
            state=instance.get("State", {}).get("Name", "pending"),
            address=instance.get("PrivateIpAddress"),
            resource_type=self.resource_type,
            image_id=instance.get("ImageId"),
            instance_type=instance.get("InstanceType"),
            tags=from_aws_tags(instance.get("Tags")),
            raw=instance,
        )

    def _build_run_instances_request(
        self,
        template: Ec2InstanceTemplate,
        tags: dict[str, str] | None,
    ) -> dict[str, Any]:
        """Build the RunInstances parameters for a single instance."""
        network_interface: dict[str, Any] = {
            "DeviceIndex": 0,
            "SubnetId": template.subnet_id,
            "Groups": template.security_group_ids,
            "DeleteOnTermination": True,
            "AssociatePublicIpAddress": template.associate_public_ip_address,
        }

        placement: dict[str, Any] = {"Tenancy": template.tenancy}
        if template.availability_zone:
            placement["AvailabilityZone"] = template.availability_zone
        if template.placement_group:
            placement["GroupName"] = template.placement_group

        request: dict[str, Any] = {
            "ImageId": template.image_id,
            "InstanceType": template.instance_type,
            "MinCount": 1,
            "MaxCount": 1,
            "ClientToken": str(uuid.uuid4()),
            "NetworkInterfaces": [network_interface],
            "BlockDeviceMappings": [
                {
                    "DeviceName": template.root_device_name,
                    "Ebs": {
                        "VolumeSize": template.root_volume_size_gb,
                        "VolumeType": template.root_volume_type,
                        "DeleteOnTermination": True,
                    },
                }
            ],
            "EbsOptimized": template.ebs_optimized,
            "Placement": placement,
        }

        if template.key_name:
            request["KeyName"] = template.key_name
        if template.iam_profile_name:
            request["IamInstanceProfile"] = {"Name": template.iam_profile_name}
        if template.user_data:
            request["UserData"] = template.user_data
        if tags:
            # Volumes get the same tags so they can be traced back to the virtual instance
            request["TagSpecifications"] = [
                {"ResourceType": "instance", "Tags": to_aws_tags(tags)},
                {"ResourceType": "volume", "Tags": to_aws_tags(tags)},
            ]

        return request

    def launch(
        self,
        template: ResourceTemplate,
        virtual_instance_id: str,
        tags: dict[str, str] | None = None,
    ) -> ProviderResourceDto:
        """Launch a single on-demand EC2 instance.

        Args:
            template: EC2 instance template
            virtual_instance_id: Virtual instance ID (logging only, tags carry the correlation)
            tags: Tags applied at creation, or None to launch untagged

        Returns:
            ProviderResourceDto for the new instance (usually in 'pending' state)

        Raises:
            IntegrationException: If instance creation fails.
        """
        if not isinstance(template, Ec2InstanceTemplate):
            raise EC2InvalidParameterException(f"Expected an EC2 instance template, got {type(template).__name__}")

        try:
            request = self._build_run_instances_request(template, tags)
            log.info(
                f">> Requesting instance for {virtual_instance_id}: type={template.instance_type}, image={template.image_id}"
            )
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/run_instances.html
            response = self._ec2.run_instances(**request)
            instances = response.get("Instances", [])
            if not instances:
                raise EC2InstanceCreationException(f"No instance returned for {virtual_instance_id}")

            dto = self._to_dto(instances[0])
            log.info(f"<< Instance {dto.provider_id} requested for {virtual_instance_id} (state={dto.state})")
            return dto

        except ParamValidationError as e:
            log.error(f"Error creating instance for {virtual_instance_id} - invalid parameters: {e}")
            raise EC2InvalidParameterException(f"Invalid parameters for instance creation: {e}")
        except ClientError as e:
            log.error(f"Error creating instance for {virtual_instance_id} in region {self.aws_region.value}: {e}")
            raise self._parse_aws_error(e, f"Create instance for {virtual_instance_id}")

    def _describe(self, filters: list[dict[str, Any]], operation: str) -> list[ProviderResourceDto]:
        try:
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/describe_instances.html
            paginator = self._ec2.get_paginator("describe_instances")
            resources = []
            for page in paginator.paginate(Filters=filters):
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        resources.append(self._to_dto(instance))
            return resources
        except ParamValidationError as e:
            log.error(f"{operation} - invalid parameters: {e}")
            raise EC2InvalidParameterException(f"Invalid describe parameters: {e}")
        except ClientError as e:
            log.error(f"{operation} failed: {e}")
            raise self._parse_aws_error(e, operation)

    def describe_by_tag(self, tag_key: str, values: list[str]) -> list[ProviderResourceDto]:
        """Describe instances whose tag ``tag_key`` is one of ``values``."""
        resources = []
        for chunk in chunked(list(values), MAX_FILTER_VALUES):
            resources.extend(
                self._describe([{"Name": f"tag:{tag_key}", "Values": chunk}], f"Describe instances by tag {tag_key}")
            )
        log.debug(f"Found {len(resources)} instance(s) tagged {tag_key} for {len(values)} value(s)")
        return resources

    def describe_by_id(self, provider_ids: list[str]) -> list[ProviderResourceDto]:
        """Describe instances by ID.

        Uses an ``instance-id`` filter rather than ``InstanceIds`` so that an
        instance not visible yet is simply absent instead of failing the whole
        batch with InvalidInstanceID.NotFound.
        """
        resources = []
        for chunk in chunked(list(provider_ids), MAX_FILTER_VALUES):
            resources.extend(self._describe([{"Name": "instance-id", "Values": chunk}], "Describe instances by id"))
        return resources

    def tag(self, provider_id: str, tags: dict[str, str]) -> None:
        """Attach tags to an instance.

        Raises:
            EC2InstanceNotFoundException: If the instance is not visible yet.
            EC2TagOperationException: If tagging fails otherwise.
        """
        try:
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/create_tags.html
            self._ec2.create_tags(Resources=[provider_id], Tags=to_aws_tags(tags))
            log.info(f"Tagged instance {provider_id} with {len(tags)} tag(s)")
        except ParamValidationError as e:
            log.error(f"Invalid tag parameters for instance {provider_id}: {e}")
            raise EC2InvalidParameterException(f"Invalid tag parameters: {e}")
        except ClientError as e:
            error = self._parse_aws_error(e, f"Add tags to instance {provider_id}")
            if isinstance(error, (EC2InstanceNotFoundException, EC2AuthenticationException)):
                raise error
            log.error(f"Error adding tags to instance {provider_id}: {e}")
            raise EC2TagOperationException(str(error))

    def terminate(self, provider_ids: list[str]) -> None:
        """Terminate instances; instances that no longer exist are skipped."""
        if not provider_ids:
            return

        for chunk in chunked(list(provider_ids), MAX_FILTER_VALUES):
            try:
                self._terminate_chunk(chunk)
            except EC2InstanceNotFoundException as error:
                if len(chunk) == 1:
                    log.warning(f"Instance {chunk[0]} was not found, assuming already terminated: {error}")
                    continue
                # The whole request is rejected when any ID is unknown
                log.warning(f"Some of {chunk} were not found, terminating them one by one: {error}")
                for provider_id in chunk:
                    try:
                        self._terminate_chunk([provider_id])
                    except EC2InstanceNotFoundException:
                        log.warning(f"Instance {provider_id} was not found, assuming already terminated")

    def _terminate_chunk(self, chunk: list[str]) -> None:
        try:
            log.info(f">> Terminating {chunk}")
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/terminate_instances.html
            response = self._ec2.terminate_instances(InstanceIds=chunk)
            transitions = {
                item["InstanceId"]: item.get("CurrentState", {}).get("Name")
                for item in response.get("TerminatingInstances", [])
            }
            log.info(f"<< Result {transitions}")
        except ParamValidationError as e:
            log.error(f"Invalid instance IDs provided for termination: {e}")
            raise EC2InvalidParameterException(f"Invalid instance ID provided: {e}")
        except ClientError as e:
            error = self._parse_aws_error(e, f"Terminate instances {chunk}")
            if isinstance(error, EC2InstanceNotFoundException):
                raise error
            log.error(f"Error terminating instances {chunk}: {e}")
            if isinstance(error, (EC2AuthenticationException, EC2InvalidParameterException)):
                raise error
            raise EC2InstanceOperationException(str(error))

    def describe_extended_attributes(self, provider_id: str) -> dict[str, Any]:
        """Fetch the SR-IOV support attribute used for display.

        Users may lack the DescribeInstanceAttribute permission; callers treat
        any error raised here as missing data.
        """
        try:
            # https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/ec2/client/describe_instance_attribute.html
            response = self._ec2.describe_instance_attribute(
                InstanceId=provider_id,
                Attribute=Ec2InstanceAttributeName.SRIOV_NET_SUPPORT.value,
            )
            sriov_net_support = response.get("SriovNetSupport", {}).get("Value")
            return {"sriov_net_support": sriov_net_support} if sriov_net_support else {}
        except ClientError as e:
            raise self._parse_aws_error(e, f"Describe attributes of instance {provider_id}")
