from dataclasses import dataclass, field
from typing import Protocol

from greenrun.domain.enums.execution import HostStatus


@dataclass(frozen=True)
class HostConfig:
    """What a compute host needs to run one execution."""

    execution_id: str
    bootstrap_script: str
    env: dict[str, str] = field(default_factory=dict)


class ComputeHost(Protocol):
    """Blocking lifecycle operations on managed compute hosts, addressed by handle."""

    def create_and_start(self, config: HostConfig) -> str: ...

    def describe(self, handle: str) -> HostStatus: ...

    def stop(self, handle: str) -> None: ...

    def delete(self, handle: str) -> None: ...
