import logging
from typing import Sequence

from risr import metrics
from risr.ports import CONTROL_TAG_KEY, AutoScalingGroup, AutoScalingPort

logger = logging.getLogger(__name__)


class Reaper:
    """Deletes the previous generations of a Stack.

    Generations are found by the control tag, so groups left behind by a
    failed cleanup are picked up again by the next successful deployment.
    """

    def __init__(self, autoscaling: AutoScalingPort):
        self.autoscaling = autoscaling

    def find_old_groups(self, stack_name: str, new_asg: str) -> list[str]:
        old_groups: list[str] = []

        def visit(page: Sequence[AutoScalingGroup], last_page: bool) -> bool:
            for asg in page:
                if asg.name == new_asg:
                    continue
                if any(tag.key == CONTROL_TAG_KEY and tag.value == stack_name for tag in asg.tags):
                    old_groups.append(asg.name)
            return True

        self.autoscaling.describe_auto_scaling_groups_paged(visit)
        return old_groups

    def drop_old_groups(self, stack_name: str, new_asg: str) -> list[str]:
        # Enumerate everything first so no delete runs while paging.
        old_groups = self.find_old_groups(stack_name, new_asg)
        if not old_groups:
            logger.info("No old ASGs to delete", extra={"stack": stack_name})
            return []

        deleted = []
        for name in old_groups:
            logger.info(f"Deleting old ASG: {name}", extra={"stack": stack_name, "asg_name": name})
            self.autoscaling.delete_auto_scaling_group(name, force=True)
            metrics.record_deleted_group(stack_name)
            deleted.append(name)

        return deleted
