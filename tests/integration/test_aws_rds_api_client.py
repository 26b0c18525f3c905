"""Tests for the RDS resource client."""

import re
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from integration.exceptions import RDSInstanceCreationException, RDSInstanceNotFoundException
from integration.models import RdsInstanceTemplate
from integration.services.aws_ec2_api_client import AwsAccountCredentials
from integration.services.aws_rds_api_client import AwsRdsClient
from tests.fixtures.factories import TemplateFactory


def client_error(code: str, message: str = "error", operation: str = "CreateDBInstance") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def db_instance(identifier: str = "alloc-1", status: str = "creating", **extra) -> dict:
    return {
        "DBInstanceIdentifier": identifier,
        "DBInstanceArn": f"arn:aws:rds:us-east-1:123456789012:db:{identifier}",
        "DBInstanceStatus": status,
        "DBInstanceClass": "db.t3.micro",
        "TagList": [{"Key": "alloc:virtual-instance-id", "Value": "vm-1"}],
        **extra,
    }


@pytest.fixture
def template():
    return RdsInstanceTemplate(
        name="db",
        engine="postgres",
        engine_version="16.3",
        instance_class="db.t3.micro",
        master_username="admin",
        master_user_password="secret-password",  # pragma: allowlist secret
        vpc_security_group_ids=["sg-1"],
    )


@pytest.fixture
def rds():
    return MagicMock()


def create_client(rds, **kwargs) -> AwsRdsClient:
    with patch("integration.services.aws_ec2_api_client.boto3.Session") as session_class:
        session_class.return_value.client.return_value = rds
        return AwsRdsClient(AwsAccountCredentials(), **kwargs)


def test_db_instance_identifier_is_valid():
    identifier = AwsRdsClient.build_db_instance_identifier("alloc", "some virtual id/with:odd chars")

    assert re.fullmatch(r"[a-z][a-z0-9]*(-[a-z0-9]+)*", identifier)
    assert len(identifier) <= 63


def test_db_instance_identifier_is_unique_per_launch():
    assert AwsRdsClient.build_db_instance_identifier("alloc", "vm-1") != AwsRdsClient.build_db_instance_identifier(
        "alloc", "vm-1"
    )


def test_launch(rds, template):
    # Arrange
    rds.create_db_instance.return_value = {"DBInstance": db_instance()}
    client = create_client(rds)

    # Act
    dto = client.launch(template, "vm-1", {"alloc:virtual-instance-id": "vm-1"})

    # Assert
    assert dto.provider_id == "alloc-1"
    assert dto.state == "creating"
    assert dto.address is None
    assert dto.resource_type == "rds:db-instance"
    request = rds.create_db_instance.call_args.kwargs
    assert request["Engine"] == "postgres"
    assert request["EngineVersion"] == "16.3"
    assert request["VpcSecurityGroupIds"] == ["sg-1"]
    assert request["Tags"] == [{"Key": "alloc:virtual-instance-id", "Value": "vm-1"}]
    assert request["DBInstanceIdentifier"].startswith("alloc-")


def test_launch_rejects_other_templates(rds):
    with pytest.raises(RDSInstanceCreationException):
        create_client(rds).launch(TemplateFactory.ec2(), "vm-1")


def test_launch_errors_are_translated(rds, template):
    rds.create_db_instance.side_effect = client_error("StorageQuotaExceeded")

    with pytest.raises(RDSInstanceCreationException):
        create_client(rds).launch(template, "vm-1")


def test_describe_by_tag_filters_client_side(rds):
    rds.get_paginator.return_value.paginate.return_value = [
        {
            "DBInstances": [
                db_instance("alloc-1", "available", Endpoint={"Address": "db1.example.com", "Port": 5432}),
                db_instance("other", "available", TagList=[]),
            ]
        }
    ]

    resources = create_client(rds).describe_by_tag("alloc:virtual-instance-id", ["vm-1"])

    assert [r.provider_id for r in resources] == ["alloc-1"]
    assert resources[0].address == "db1.example.com"


def test_describe_by_id(rds):
    paginator = rds.get_paginator.return_value
    paginator.paginate.return_value = [{"DBInstances": [db_instance("alloc-1", "backing-up")]}]

    resources = create_client(rds).describe_by_id(["alloc-1"])

    assert resources[0].state == "backing-up"
    paginator.paginate.assert_called_once_with(Filters=[{"Name": "db-instance-id", "Values": ["alloc-1"]}])


def test_tag_uses_arn(rds):
    rds.describe_db_instances.return_value = {"DBInstances": [db_instance("alloc-1")]}

    create_client(rds).tag("alloc-1", {"k": "v"})

    rds.add_tags_to_resource.assert_called_once_with(
        ResourceName="arn:aws:rds:us-east-1:123456789012:db:alloc-1", Tags=[{"Key": "k", "Value": "v"}]
    )


def test_tag_not_visible_yet(rds):
    rds.describe_db_instances.side_effect = client_error("DBInstanceNotFound", operation="DescribeDBInstances")

    with pytest.raises(RDSInstanceNotFoundException):
        create_client(rds).tag("alloc-1", {"k": "v"})


def test_terminate_with_final_snapshot(rds):
    rds.delete_db_instance.return_value = {"DBInstance": db_instance("alloc-1", "deleting")}

    create_client(rds).terminate(["alloc-1"])

    request = rds.delete_db_instance.call_args.kwargs
    assert request["SkipFinalSnapshot"] is False
    assert request["FinalDBSnapshotIdentifier"].startswith("alloc-1-final-")


def test_terminate_skipping_final_snapshot(rds):
    rds.delete_db_instance.return_value = {"DBInstance": db_instance("alloc-1", "deleting")}

    create_client(rds, skip_final_snapshot=True).terminate(["alloc-1"])

    request = rds.delete_db_instance.call_args.kwargs
    assert request["SkipFinalSnapshot"] is True
    assert "FinalDBSnapshotIdentifier" not in request


def test_terminate_ignores_missing_and_deleting_instances(rds):
    rds.delete_db_instance.side_effect = [
        client_error("DBInstanceNotFound", operation="DeleteDBInstance"),
        client_error("InvalidDBInstanceState", "Instance alloc-2 is already being deleted.", "DeleteDBInstance"),
    ]

    create_client(rds).terminate(["alloc-1", "alloc-2"])

    assert rds.delete_db_instance.call_count == 2
