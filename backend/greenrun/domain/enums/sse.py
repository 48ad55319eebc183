from greenrun.core.utils import StringEnum


class SSEEventType(StringEnum):
    """Named events emitted on status and log streams."""

    INFO = "info"
    LOG = "log"
    STATUS = "status"
    ERROR = "error"
