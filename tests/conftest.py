"""
In-memory AutoScaling and target health backends.

Both fakes append to a shared `calls` list so tests can assert on the
order of provider calls across the two ports.
"""

import threading

import pytest

from risr.ports import AutoScalingGroup, Instance, Tag, TargetHealth, control_tag
from risr.stacks import Stack


def healthy_instances(count: int, prefix: str = "i-new") -> tuple[Instance, ...]:
    return tuple(Instance(f"{prefix}{n}", "Healthy", "InService") for n in range(count))


class FakeAutoScaling:
    def __init__(self, calls: list, page_size: int = 2):
        self.calls = calls
        self.page_size = page_size
        self.groups: dict[str, AutoScalingGroup] = {}
        self.launch_configs = []
        self.created_groups = []
        self.lc_error: Exception | None = None
        self.asg_error: Exception | None = None
        self.describe_error: Exception | None = None
        self.delete_errors: dict[str, Exception] = {}
        # Raised by the paged describe once the first page has been visited.
        self.page_error: Exception | None = None
        self.deleted: list[tuple[str, bool]] = []
        # Instance snapshots returned for the new group on each describe;
        # the last one repeats. Empty means healthy at full capacity.
        self.new_group_states: list[tuple[Instance, ...]] = []
        self.hide_new_group = False
        self._describes = 0

    def add_group(self, name: str, tags=(), instances=(), desired_capacity: int = 0) -> None:
        self.groups[name] = AutoScalingGroup(name, desired_capacity, tuple(instances), tuple(tags))

    def create_launch_config(self, input) -> None:
        self.calls.append(("create_launch_config", input.name))
        if self.lc_error is not None:
            raise self.lc_error
        self.launch_configs.append(input)

    def create_auto_scaling_group(self, input) -> None:
        self.calls.append(("create_auto_scaling_group", input.name))
        if self.asg_error is not None:
            raise self.asg_error
        self.created_groups.append(input)
        self.groups[input.name] = AutoScalingGroup(input.name, input.desired_capacity, (), input.tags)

    def describe_auto_scaling_groups(self, names) -> list[AutoScalingGroup]:
        self.calls.append(("describe_auto_scaling_groups", tuple(names)))
        if self.describe_error is not None:
            raise self.describe_error

        found = []
        for name in names:
            if name not in self.groups:
                continue
            if self.created_groups and name == self.created_groups[-1].name:
                if self.hide_new_group:
                    continue
                found.append(self._new_group_snapshot(name))
            else:
                found.append(self.groups[name])
        return found

    def _new_group_snapshot(self, name: str) -> AutoScalingGroup:
        group = self.groups[name]
        if self.new_group_states:
            index = min(self._describes, len(self.new_group_states) - 1)
            instances = self.new_group_states[index]
        else:
            instances = healthy_instances(group.desired_capacity)
        self._describes += 1
        return AutoScalingGroup(name, group.desired_capacity, instances, group.tags)

    def describe_auto_scaling_groups_paged(self, visitor) -> None:
        self.calls.append(("describe_auto_scaling_groups_paged", None))
        groups = list(self.groups.values())
        pages = [groups[i:i + self.page_size] for i in range(0, len(groups), self.page_size)] or [[]]
        for number, page in enumerate(pages):
            if not visitor(page, number == len(pages) - 1):
                break
            if self.page_error is not None:
                raise self.page_error

    def delete_auto_scaling_group(self, name: str, force: bool = True) -> None:
        self.calls.append(("delete_auto_scaling_group", name))
        if name in self.delete_errors:
            raise self.delete_errors[name]
        self.deleted.append((name, force))
        self.groups.pop(name, None)


class FakeTargetHealth:
    def __init__(self, calls: list):
        self.calls = calls
        self.descriptions: list[TargetHealth] = []

    def describe_target_health(self, target_group_arn: str) -> list[TargetHealth]:
        self.calls.append(("describe_target_health", target_group_arn))
        return list(self.descriptions)


class VirtualClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class RecordingEvent(threading.Event):
    """Cancellation event whose waits advance a virtual clock instead of sleeping."""

    def __init__(self, clock: VirtualClock, cancel_after_waits: int | None = None):
        super().__init__()
        self.clock = clock
        self.waits: list[float] = []
        self.cancel_after_waits = cancel_after_waits

    def wait(self, timeout=None) -> bool:
        self.waits.append(timeout)
        self.clock.now += timeout or 0
        if self.cancel_after_waits is not None and len(self.waits) >= self.cancel_after_waits:
            self.set()
        return self.is_set()


@pytest.fixture
def calls():
    return []


@pytest.fixture
def autoscaling(calls):
    return FakeAutoScaling(calls)


@pytest.fixture
def target_health(calls):
    return FakeTargetHealth(calls)


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def web_stack():
    return Stack(name="web", ami="ami-1", instanceType="t3.small", replicas=2, subnetIDs=["s-a", "s-b"])


@pytest.fixture
def old_web_group():
    return dict(tags=[control_tag("web"), Tag("team", "platform")], instances=healthy_instances(2, "i-old"))
