"""
The two seams between risr and the cloud provider.

Everything the deployment controller knows about AWS goes through
AutoScalingPort and TargetHealthPort. The production binding lives in
risr.aws; tests inject fakes.
"""

from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence

CONTROL_TAG_KEY = "v1alpha1.risr.stack"


@dataclass(frozen=True)
class Tag:
    key: str
    value: str
    propagate_at_launch: bool = True

    def to_request(self) -> dict:
        return {
            "Key": self.key,
            "Value": self.value,
            "PropagateAtLaunch": self.propagate_at_launch,
        }


def control_tag(stack_name: str) -> Tag:
    """The tag that marks an AutoScaling group as a generation of stack_name."""
    return Tag(key=CONTROL_TAG_KEY, value=stack_name, propagate_at_launch=True)


@dataclass(frozen=True)
class Instance:
    id: str
    health_status: str
    lifecycle_state: str


@dataclass(frozen=True)
class AutoScalingGroup:
    name: str
    desired_capacity: int
    instances: tuple[Instance, ...] = ()
    tags: tuple[Tag, ...] = ()

    @property
    def instance_ids(self) -> set[str]:
        return {instance.id for instance in self.instances}


@dataclass(frozen=True)
class TargetHealth:
    id: str | None
    state: str | None = None


@dataclass(frozen=True)
class LaunchConfigInput:
    name: str
    image_id: str
    instance_type: str
    key_name: str | None = None
    iam_instance_profile: str | None = None
    security_groups: tuple[str, ...] | None = None
    user_data: str | None = None

    def to_request(self) -> dict:
        request = {
            "LaunchConfigurationName": self.name,
            "ImageId": self.image_id,
            "InstanceType": self.instance_type,
        }
        if self.key_name is not None:
            request["KeyName"] = self.key_name
        if self.iam_instance_profile is not None:
            request["IamInstanceProfile"] = self.iam_instance_profile
        if self.security_groups is not None:
            request["SecurityGroups"] = list(self.security_groups)
        if self.user_data is not None:
            request["UserData"] = self.user_data
        return request


@dataclass(frozen=True)
class AutoScalingGroupInput:
    name: str
    launch_config_name: str
    min_size: int
    max_size: int
    desired_capacity: int
    health_check_grace_period: int
    vpc_zone_identifier: str
    health_check_type: str = "ELB"
    target_group_arns: tuple[str, ...] = ()
    tags: tuple[Tag, ...] = field(default=())

    def to_request(self) -> dict:
        return {
            "AutoScalingGroupName": self.name,
            "LaunchConfigurationName": self.launch_config_name,
            "MinSize": self.min_size,
            "MaxSize": self.max_size,
            "DesiredCapacity": self.desired_capacity,
            "HealthCheckType": self.health_check_type,
            "HealthCheckGracePeriod": self.health_check_grace_period,
            "VPCZoneIdentifier": self.vpc_zone_identifier,
            "TargetGroupARNs": list(self.target_group_arns),
            "Tags": [tag.to_request() for tag in self.tags],
        }


# Receives one page of groups and whether it is the last one. Returning
# False stops the pagination.
PageVisitor = Callable[[Sequence[AutoScalingGroup], bool], bool]


class AutoScalingPort(Protocol):
    def create_launch_config(self, input: LaunchConfigInput) -> None: ...

    def create_auto_scaling_group(self, input: AutoScalingGroupInput) -> None: ...

    def describe_auto_scaling_groups(self, names: Sequence[str]) -> list[AutoScalingGroup]: ...

    def describe_auto_scaling_groups_paged(self, visitor: PageVisitor) -> None: ...

    def delete_auto_scaling_group(self, name: str, force: bool = True) -> None: ...


class TargetHealthPort(Protocol):
    def describe_target_health(self, target_group_arn: str) -> list[TargetHealth]: ...
