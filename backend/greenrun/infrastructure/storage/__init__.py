from greenrun.infrastructure.storage.base import (
    ObjectNotFoundError,
    ObjectStorage,
    StorageError,
    key_from_uri,
    parse_uri,
)
from greenrun.infrastructure.storage.s3 import S3ObjectStorage

__all__ = [
    "ObjectNotFoundError",
    "ObjectStorage",
    "S3ObjectStorage",
    "StorageError",
    "key_from_uri",
    "parse_uri",
]
