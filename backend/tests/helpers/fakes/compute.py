from collections.abc import Iterable

from greenrun.domain.enums.execution import HostStatus
from greenrun.infrastructure.compute import ComputeHostError, HostConfig


class FakeComputeHost:
    """ComputeHost that records calls; `describe` walks through `statuses` and then repeats the last one."""

    def __init__(self, statuses: Iterable[HostStatus] = (HostStatus.IN_SERVICE,)) -> None:
        self.statuses = list(statuses)
        self.created: list[HostConfig] = []
        self.described: list[str] = []
        self.stopped: list[str] = []
        self.deleted: list[str] = []
        self.fail_create = False
        self.fail_stop = False

    def create_and_start(self, config: HostConfig) -> str:
        if self.fail_create:
            raise ComputeHostError("Injected create failure")
        self.created.append(config)
        return f"notebook-{config.execution_id}"

    def describe(self, handle: str) -> HostStatus:
        self.described.append(handle)
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    def stop(self, handle: str) -> None:
        if self.fail_stop:
            raise ComputeHostError("Injected stop failure")
        self.stopped.append(handle)

    def delete(self, handle: str) -> None:
        self.deleted.append(handle)
