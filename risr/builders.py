"""Translate a Stack into the requests needed to create a new generation."""

import uuid

from risr.ports import (
    CONTROL_TAG_KEY,
    AutoScalingGroupInput,
    LaunchConfigInput,
    Tag,
    control_tag,
)
from risr.stacks import Stack

DEFAULT_HEALTH_CHECK_GRACE_PERIOD = 60


def generation_name(stack_name: str) -> str:
    # Six characters keep names short; a collision fails on create.
    return f"{stack_name}-{str(uuid.uuid4())[:6]}"


def build_launch_config_input(stack: Stack) -> LaunchConfigInput:
    return LaunchConfigInput(
        name=generation_name(stack.name),
        image_id=stack.ami,
        instance_type=stack.instance_type,
        key_name=stack.key_name,
        iam_instance_profile=stack.iam_instance_profile,
        security_groups=stack.security_group_ids,
        user_data=stack.user_data,
    )


def build_asg_tags(stack: Stack) -> tuple[Tag, ...]:
    """User tags plus the control tag risr uses to find old generations."""
    tags = [
        Tag(key=key, value=value, propagate_at_launch=True)
        for key, value in stack.tags.items()
        if key != CONTROL_TAG_KEY
    ]
    tags.append(control_tag(stack.name))
    return tuple(tags)


def build_asg_input(stack: Stack, launch_config_name: str) -> AutoScalingGroupInput:
    grace_period = stack.health_check_grace_period
    if grace_period is None:
        grace_period = DEFAULT_HEALTH_CHECK_GRACE_PERIOD

    target_group_arns = (stack.target_group_arn,) if stack.target_group_arn is not None else ()

    return AutoScalingGroupInput(
        name=generation_name(stack.name),
        launch_config_name=launch_config_name,
        min_size=stack.replicas,
        max_size=stack.replicas,
        desired_capacity=stack.replicas,
        health_check_type="ELB",
        health_check_grace_period=grace_period,
        vpc_zone_identifier=",".join(stack.subnet_ids),
        target_group_arns=target_group_arns,
        tags=build_asg_tags(stack),
    )
