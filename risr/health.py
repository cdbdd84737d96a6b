import logging

from risr.errors import GroupNotFoundError
from risr.ports import AutoScalingGroup, AutoScalingPort, TargetHealthPort
from risr.stacks import Stack

logger = logging.getLogger(__name__)

HEALTHY_TARGET_STATE = "healthy"
HEALTHY_INSTANCE_STATUS = "Healthy"
IN_SERVICE = "InService"


class HealthEvaluator:
    """Decides whether a freshly created AutoScaling group is ready.

    Groups attached to a target group are judged by the load balancer's
    view of their instances; every other group by the EC2 instance status
    reported through AutoScaling.
    """

    def __init__(self, autoscaling: AutoScalingPort, target_health: TargetHealthPort):
        self.autoscaling = autoscaling
        self.target_health = target_health

    def is_healthy(self, stack: Stack, asg_name: str) -> bool:
        if stack.target_group_arn is not None:
            logger.debug("Checking health of ASG using Target Groups API", extra={"asg_name": asg_name})
            return self.target_group_health(asg_name, stack.target_group_arn)

        logger.debug("Checking health of ASG using EC2 instance checks", extra={"asg_name": asg_name})
        return self.instance_health(asg_name)

    def _describe_group(self, asg_name: str) -> AutoScalingGroup:
        groups = self.autoscaling.describe_auto_scaling_groups([asg_name])
        if not groups:
            raise GroupNotFoundError(asg_name)
        return groups[0]

    def target_group_health(self, asg_name: str, target_group_arn: str) -> bool:
        asg = self._describe_group(asg_name)
        member_ids = asg.instance_ids

        registered = 0
        for description in self.target_health.describe_target_health(target_group_arn):
            # Other groups may share the target group; only our members count.
            if description.id is None or description.id not in member_ids:
                continue

            if description.state != HEALTHY_TARGET_STATE:
                logger.info(
                    f"Target {description.id} is {description.state or 'without state'}",
                    extra={"asg_name": asg_name},
                )
                return False

            registered += 1

        if registered < asg.desired_capacity:
            logger.info(
                f"Target Group health check: not at full capacity ({registered}/{asg.desired_capacity})",
                extra={"asg_name": asg_name},
            )
            return False

        return True

    def instance_health(self, asg_name: str) -> bool:
        asg = self._describe_group(asg_name)

        for instance in asg.instances:
            if instance.health_status != HEALTHY_INSTANCE_STATUS or instance.lifecycle_state != IN_SERVICE:
                logger.info(
                    f"Instance {instance.id} is {instance.health_status}/{instance.lifecycle_state}",
                    extra={"asg_name": asg_name},
                )
                return False

        if len(asg.instances) < asg.desired_capacity:
            logger.info(
                f"EC2 health check: not at full capacity ({len(asg.instances)}/{asg.desired_capacity})",
                extra={"asg_name": asg_name},
            )
            return False

        return True
