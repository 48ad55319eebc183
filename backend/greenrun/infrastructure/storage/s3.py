from typing import Any

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from greenrun.infrastructure.storage.base import ObjectNotFoundError, StorageError

_MISSING_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
_RANGE_CODES = frozenset({"InvalidRange", "416"})


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStorage:
    """`ObjectStorage` over any S3-compatible endpoint via a boto3 client."""

    def __init__(self, client: Any, bucket: str, logger: structlog.stdlib.BoundLogger) -> None:
        self._client = client
        self._bucket = bucket
        self._logger = logger

    @property
    def bucket(self) -> str:
        return self._bucket

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        try:
            self._client.put_object(Bucket=self._bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to write {self.uri(key)}: {e}") from e
        self._logger.debug("Object written", key=key, size=len(data))

    def get(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise ObjectNotFoundError(key) from e
            raise StorageError(f"Failed to read {self.uri(key)}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read {self.uri(key)}: {e}") from e
        body: bytes = response["Body"].read()
        return body

    def get_range(self, key: str, start: int) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key, Range=f"bytes={start}-")
        except ClientError as e:
            code = _error_code(e)
            if code in _MISSING_CODES:
                raise ObjectNotFoundError(key) from e
            if code in _RANGE_CODES:
                return b""
            raise StorageError(f"Failed to read {self.uri(key)} from byte {start}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read {self.uri(key)} from byte {start}: {e}") from e
        body: bytes = response["Body"].read()
        return body

    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            raise StorageError(f"Failed to stat {self.uri(key)}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to stat {self.uri(key)}: {e}") from e
        return True

    def list(self, prefix: str) -> list[str]:
        keys: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to list {self.uri(prefix)}: {e}") from e
        return keys

    def uri(self, key: str) -> str:
        return f"s3://{self._bucket}/{key}"
