from typing import Protocol

from greenrun.domain.exceptions import InfrastructureError, NotFoundError


class ObjectNotFoundError(NotFoundError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__("Object", key)


class StorageError(InfrastructureError):
    """Any object-storage failure other than a missing key."""

    pass


class ObjectStorage(Protocol):
    """Blocking key/value object store scoped to one bucket.

    Async callers go through `asyncio.to_thread`; the executor calls it directly.
    """

    @property
    def bucket(self) -> str: ...

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None: ...

    def get(self, key: str) -> bytes: ...

    def get_range(self, key: str, start: int) -> bytes:
        """Bytes from `start` to the end of the object; empty when `start` is at or past the end."""
        ...

    def exists(self, key: str) -> bool: ...

    def list(self, prefix: str) -> list[str]: ...

    def uri(self, key: str) -> str: ...


def parse_uri(uri: str) -> tuple[str, str]:
    """Split `s3://bucket/key` into its bucket and key."""
    scheme, sep, rest = uri.partition("://")
    if not sep or scheme not in ("s3", "s3a"):
        raise ValueError(f"Not an object storage URI: {uri!r}")
    bucket, _, key = rest.partition("/")
    if not bucket or not key:
        raise ValueError(f"Object storage URI needs a bucket and a key: {uri!r}")
    return bucket, key


def key_from_uri(storage: ObjectStorage, uri: str) -> str:
    bucket, key = parse_uri(uri)
    if bucket != storage.bucket:
        raise ValueError(f"URI {uri!r} is outside bucket {storage.bucket!r}")
    return key
