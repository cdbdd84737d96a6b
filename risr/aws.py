"""
boto3 binding of the AutoScaling and target health ports.

This is the only module that imports boto3. Credentials and region come
from the standard AWS environment discovery unless a region is given.
"""

import logging
from contextlib import contextmanager

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from risr.errors import (
    AlreadyExistsError,
    InvalidParameterError,
    ProviderError,
    TransportError,
)
from risr.ports import (
    AutoScalingGroup,
    AutoScalingGroupInput,
    Instance,
    LaunchConfigInput,
    PageVisitor,
    Tag,
    TargetHealth,
)

logger = logging.getLogger(__name__)

INVALID_PARAMETER_CODES = {"ValidationError", "InvalidParameter", "InvalidParameterValue", "InvalidParameterCombination"}


@contextmanager
def translate_errors(operation: str):
    """Re-raise botocore failures as risr provider errors."""
    try:
        yield
    except ClientError as e:
        error = e.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message") or str(e)
        if code == "AlreadyExists":
            raise AlreadyExistsError(operation, message, code) from e
        if code in INVALID_PARAMETER_CODES:
            raise InvalidParameterError(operation, message, code) from e
        raise ProviderError(operation, message, code) from e
    except BotoCoreError as e:
        raise TransportError(operation, str(e)) from e


def _parse_group(raw: dict) -> AutoScalingGroup:
    return AutoScalingGroup(
        name=raw["AutoScalingGroupName"],
        desired_capacity=raw.get("DesiredCapacity", 0),
        instances=tuple(
            Instance(
                id=instance["InstanceId"],
                health_status=instance.get("HealthStatus", ""),
                lifecycle_state=instance.get("LifecycleState", ""),
            )
            for instance in raw.get("Instances", [])
        ),
        tags=tuple(
            Tag(
                key=tag.get("Key", ""),
                value=tag.get("Value", ""),
                propagate_at_launch=tag.get("PropagateAtLaunch", False),
            )
            for tag in raw.get("Tags", [])
        ),
    )


class AwsAutoScaling:
    def __init__(self, client):
        self.client = client

    def create_launch_config(self, input: LaunchConfigInput) -> None:
        with translate_errors("CreateLaunchConfiguration"):
            self.client.create_launch_configuration(**input.to_request())

    def create_auto_scaling_group(self, input: AutoScalingGroupInput) -> None:
        with translate_errors("CreateAutoScalingGroup"):
            self.client.create_auto_scaling_group(**input.to_request())

    def describe_auto_scaling_groups(self, names) -> list[AutoScalingGroup]:
        with translate_errors("DescribeAutoScalingGroups"):
            response = self.client.describe_auto_scaling_groups(AutoScalingGroupNames=list(names))
        return [_parse_group(raw) for raw in response.get("AutoScalingGroups", [])]

    def describe_auto_scaling_groups_paged(self, visitor: PageVisitor) -> None:
        paginator = self.client.get_paginator("describe_auto_scaling_groups")
        with translate_errors("DescribeAutoScalingGroups"):
            pages = iter(paginator.paginate())
            page = next(pages, None)
            while page is not None:
                following = next(pages, None)
                groups = [_parse_group(raw) for raw in page.get("AutoScalingGroups", [])]
                if not visitor(groups, following is None):
                    break
                page = following

    def delete_auto_scaling_group(self, name: str, force: bool = True) -> None:
        with translate_errors("DeleteAutoScalingGroup"):
            self.client.delete_auto_scaling_group(AutoScalingGroupName=name, ForceDelete=force)


class AwsTargetHealth:
    def __init__(self, client):
        self.client = client

    def describe_target_health(self, target_group_arn: str) -> list[TargetHealth]:
        with translate_errors("DescribeTargetHealth"):
            response = self.client.describe_target_health(TargetGroupArn=target_group_arn)

        return [
            TargetHealth(
                id=description.get("Target", {}).get("Id"),
                state=description.get("TargetHealth", {}).get("State"),
            )
            for description in response.get("TargetHealthDescriptions", [])
        ]


def make_clients(region: str | None = None) -> tuple[AwsAutoScaling, AwsTargetHealth]:
    with translate_errors("CreateSession"):
        session = boto3.session.Session(region_name=region)
        autoscaling = session.client("autoscaling")
        elbv2 = session.client("elbv2")
    logger.debug(f"Using AWS region {session.region_name}")
    return AwsAutoScaling(autoscaling), AwsTargetHealth(elbv2)
