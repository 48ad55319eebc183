from greenrun.core.utils import StringEnum


class ExecutionStatus(StringEnum):
    """Status of a notebook execution as written to the status record."""

    _terminal: bool

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = ("COMPLETED", True)
    FAILED = ("FAILED", True)

    def __new__(cls, value: str, terminal: bool = False) -> "ExecutionStatus":
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj._terminal = terminal
        return obj

    @property
    def is_terminal(self) -> bool:
        return self._terminal

    @property
    def rank(self) -> int:
        """Position in PENDING -> RUNNING -> terminal; statuses never move to a lower rank."""
        if self._terminal:
            return 2
        return 1 if self is ExecutionStatus.RUNNING else 0

    def can_transition_to(self, other: "ExecutionStatus") -> bool:
        if self._terminal:
            return False
        return other.rank >= self.rank


class HostStatus(StringEnum):
    """Lifecycle state of a compute host, normalized across providers."""

    CREATING = "CREATING"
    IN_SERVICE = "IN_SERVICE"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"


class LogType(StringEnum):
    """Log objects written by the executor under an execution's prefix."""

    EXECUTION = "execution"
    CELL_OUTPUT = "cell_output"
