"""
Blue/green deployment of a Stack.

The manager creates a new Launch Configuration and AutoScaling group for
the Stack, waits until the new group is healthy, and only then deletes
the groups left behind by previous deployments of the same Stack.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from risr import metrics
from risr.builders import build_asg_input, build_launch_config_input
from risr.errors import DeploymentCancelled, PollTimeoutError
from risr.health import HealthEvaluator
from risr.ports import AutoScalingPort, TargetHealthPort
from risr.reaper import Reaper
from risr.stacks import Stack

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


class Phase(str, Enum):
    START = "start"
    LC_CREATED = "lc_created"
    ASG_CREATED = "asg_created"
    POLLING = "polling"
    REAPING = "reaping"
    DONE = "done"
    FAILED = "failed"


@dataclass
class Deployment:
    """What a single call to deploy_stack produced."""

    stack: str
    phase: Phase = Phase.START
    launch_config_name: str | None = None
    asg_name: str | None = None
    attempts: int = 0
    deleted_groups: list[str] = field(default_factory=list)


class DeploymentManager:
    def __init__(
        self,
        autoscaling: AutoScalingPort,
        target_health: TargetHealthPort,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.autoscaling = autoscaling
        self.health = HealthEvaluator(autoscaling, target_health)
        self.reaper = Reaper(autoscaling)
        self.poll_interval = poll_interval
        self.clock = clock

    @classmethod
    def from_environment(cls, settings) -> "DeploymentManager":
        # Imported here so the controller itself never needs boto3.
        from risr.aws import make_clients

        autoscaling, target_health = make_clients(settings.AWS_REGION)
        return cls(autoscaling, target_health, poll_interval=settings.POLL_INTERVAL_SECONDS)

    def deploy_stack(
        self,
        stack: Stack,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> Deployment:
        cancel = cancel if cancel is not None else threading.Event()
        deployment = Deployment(stack=stack.name)
        started = self.clock()

        try:
            self._create_generation(stack, deployment)
            self._wait_until_healthy(stack, deployment, cancel, timeout)

            deployment.phase = Phase.REAPING
            logger.info("ASG healthy, dropping old groups", extra=self._extra(deployment))
            deployment.deleted_groups = self.reaper.drop_old_groups(stack.name, deployment.asg_name)
        except Exception:
            failed_in = deployment.phase
            deployment.phase = Phase.FAILED
            logger.error(
                f"Deployment of {stack.name} failed during {failed_in.value}",
                extra=self._extra(deployment),
            )
            metrics.record_deployment(stack.name, "failed", self.clock() - started)
            raise

        deployment.phase = Phase.DONE
        metrics.record_deployment(stack.name, "succeeded", self.clock() - started)
        logger.info(f"Stack {stack.name} deployed", extra=self._extra(deployment))
        return deployment

    def _create_generation(self, stack: Stack, deployment: Deployment) -> None:
        lc_input = build_launch_config_input(stack)
        logger.info(f"Creating Launch Configuration: {lc_input.name}", extra={"stack": stack.name})
        self.autoscaling.create_launch_config(lc_input)
        deployment.launch_config_name = lc_input.name
        deployment.phase = Phase.LC_CREATED

        asg_input = build_asg_input(stack, lc_input.name)
        logger.info(f"Creating AutoScaling Group: {asg_input.name}", extra={"stack": stack.name})
        try:
            self.autoscaling.create_auto_scaling_group(asg_input)
        except Exception:
            # TODO: delete the orphaned launch configuration once risr can
            # tell a name collision apart from a half-applied request.
            logger.warning(
                f"Launch Configuration {lc_input.name} left behind",
                extra={"stack": stack.name, "launch_config": lc_input.name},
            )
            raise
        deployment.asg_name = asg_input.name
        deployment.phase = Phase.ASG_CREATED

    def _wait_until_healthy(
        self,
        stack: Stack,
        deployment: Deployment,
        cancel: threading.Event,
        timeout: float | None,
    ) -> None:
        deployment.phase = Phase.POLLING
        deadline = self.clock() + timeout if timeout is not None else None
        logger.info("Waiting for ASG to be healthy", extra=self._extra(deployment))

        while True:
            if cancel.is_set():
                raise DeploymentCancelled(f"deployment of {stack.name} cancelled while polling")
            if deadline is not None and self.clock() >= deadline:
                raise PollTimeoutError(
                    f"{deployment.asg_name} not healthy after {timeout}s ({deployment.attempts} attempts)"
                )

            deployment.attempts += 1
            logger.info(f"Attempts: {deployment.attempts}", extra=self._extra(deployment))

            healthy = self.health.is_healthy(stack, deployment.asg_name)
            metrics.record_health_check(stack.name, healthy)
            if healthy:
                return

            wait_for = self.poll_interval
            if deadline is not None:
                wait_for = max(0.0, min(wait_for, deadline - self.clock()))
            logger.info(
                f"ASG not healthy, sleeping for {wait_for:g} seconds",
                extra=self._extra(deployment),
            )
            cancel.wait(wait_for)

    @staticmethod
    def _extra(deployment: Deployment) -> dict:
        return {
            "stack": deployment.stack,
            "launch_config": deployment.launch_config_name,
            "asg_name": deployment.asg_name,
            "attempt": deployment.attempts or None,
            "phase": deployment.phase.value,
        }
