from datetime import datetime, timezone
from enum import StrEnum


class StringEnum(StrEnum):
    """
    A StrEnum subclass that behaves like a plain string in all representations.

    StrEnum.__repr__ returns the member representation (e.g. '<MyEnum.VALUE: 'value'>');
    this returns just the string value so enums render cleanly in logs and JSON.
    """

    def __repr__(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value

    def __format__(self, format_spec: str) -> str:
        return self.value.__format__(format_spec)


def iso_now() -> str:
    """UTC timestamp in the wire format used by status records (second precision, Z suffix)."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
