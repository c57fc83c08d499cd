"""Bucket and object operations with existence guards.

Every operation checks its preconditions with read-only guard calls before
issuing exactly one mutating call to the storage service.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from botocore.exceptions import BotoCoreError

from s3sender.config import S3SenderConfig
from s3sender.exceptions import (
    BucketAlreadyExistsError,
    BucketCreationDisabledError,
    BucketNotFoundError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    OperationError,
)
from s3sender.models import AVAILABLE_REGIONS, OCTET_STREAM
from s3sender.storage import S3Storage
from s3sender.validator import is_valid_bucket_name, is_valid_region

logger = structlog.get_logger(__name__)

# us-east-1 rejects an explicit location constraint
_DEFAULT_LOCATION = "us-east-1"


def _as_body(data: Any) -> Any:
    """Normalize upload data to something put_object accepts."""
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if hasattr(data, "read"):
        return data
    raise OperationError(
        f"Unsupported upload data of type {type(data).__name__}, "
        "expected bytes, str or a binary stream"
    )


class S3Operations:
    """Guarded S3 operations for one sender."""

    def __init__(self, storage: S3Storage, config: S3SenderConfig) -> None:
        """Initialize operations.

        Args:
            storage: Connected storage client
            config: Sender configuration
        """
        self.storage = storage
        self.config = config

    # Guards

    async def check_bucket_absence(self, bucket: str) -> None:
        """Fail if the bucket does not exist.

        Raises:
            BucketNotFoundError: If the bucket is absent
        """
        if not await self.storage.bucket_exists(bucket):
            raise BucketNotFoundError(bucket)

    async def check_object_absence(self, bucket: str, key: str) -> None:
        """Fail if the object does not exist.

        Raises:
            ObjectNotFoundError: If the object is absent
        """
        if not await self.storage.object_exists(bucket, key):
            raise ObjectNotFoundError(bucket, key)

    # Buckets

    def _location_for_new_bucket(self, bucket: str) -> str | None:
        if self.config.force_global_bucket_access_enabled:
            if not is_valid_region(self.config.bucket_region):
                raise OperationError(
                    f"Bucket region unknown or not specified [{self.config.bucket_region}], "
                    f"supported regions: {', '.join(AVAILABLE_REGIONS)}",
                    bucket=bucket,
                )
            location = self.config.bucket_region
        else:
            location = self.config.client_region

        return None if location == _DEFAULT_LOCATION else location

    async def create_bucket(self, bucket: str, exists_is_error: bool) -> None:
        """Create a bucket unless it exists.

        Args:
            bucket: Bucket name
            exists_is_error: Raise when the bucket already exists

        Raises:
            BucketAlreadyExistsError: If the bucket exists and exists_is_error is set
            OperationError: If global bucket access needs a missing bucket region
        """
        if await self.storage.bucket_exists(bucket):
            if exists_is_error:
                raise BucketAlreadyExistsError(bucket)
            logger.debug("s3_bucket_exists", bucket=bucket)
            return

        location = self._location_for_new_bucket(bucket)
        await self.storage.create_bucket(bucket, location)

    async def create_bucket_for_object_action(
        self, bucket: str, exists_is_error: bool
    ) -> None:
        """Create a bucket needed by an object action, if creation is enabled.

        Raises:
            BucketCreationDisabledError: If bucket creation is disabled
        """
        if not self.config.bucket_creation_enabled:
            raise BucketCreationDisabledError(bucket)
        await self.create_bucket(bucket, exists_is_error)

    async def delete_bucket(self, bucket: str) -> None:
        """Delete an existing bucket."""
        await self.check_bucket_absence(bucket)
        await self.storage.delete_bucket(bucket)

    # Objects

    async def upload_object(self, bucket: str, key: str, data: Any) -> None:
        """Upload data under a key that is not taken yet.

        Args:
            bucket: Bucket name, created when missing and creation is enabled
            key: Object key
            data: Bytes, str or binary stream

        Raises:
            OperationError: If the data type is not supported
            ObjectAlreadyExistsError: If the key is already taken
        """
        body = _as_body(data)
        await self.create_bucket_for_object_action(bucket, exists_is_error=False)

        if await self.storage.object_exists(bucket, key):
            raise ObjectAlreadyExistsError(bucket, key)

        await self.storage.put_object(bucket, key, body, OCTET_STREAM)

    async def download_object(self, bucket: str, key: str, destination: Path) -> Path:
        """Download an existing object to a local file.

        Args:
            bucket: Bucket name
            key: Object key
            destination: File to write

        Returns:
            The written file

        Raises:
            OperationError: If the local file cannot be written
        """
        await self.check_bucket_absence(bucket)
        await self.check_object_absence(bucket, key)

        try:
            await self.storage.download_object(bucket, key, destination)
        except (BotoCoreError, TimeoutError):
            # Transport failures keep their own type, only local I/O is wrapped
            raise
        except OSError as e:
            logger.error(
                "s3_download_write_failed",
                error=str(e),
                bucket=bucket,
                key=key,
                destination=str(destination),
            )
            raise OperationError(
                f"Failed to write object '{key}' to '{destination}': {e}",
                bucket=bucket,
                key=key,
            ) from e

        return destination

    async def copy_object(
        self,
        bucket: str,
        key: str,
        destination_bucket: str,
        destination_key: str,
    ) -> None:
        """Copy an existing object to a key that is not taken yet.

        Raises:
            OperationError: If the destination bucket name is invalid
            ObjectAlreadyExistsError: If the destination key is already taken
        """
        await self.check_bucket_absence(bucket)
        await self.check_object_absence(bucket, key)

        if not is_valid_bucket_name(destination_bucket):
            raise OperationError(
                f"Invalid destination bucket name [{destination_bucket}], "
                "see the S3 bucket naming rules",
                bucket=destination_bucket,
            )

        await self.create_bucket_for_object_action(destination_bucket, exists_is_error=False)

        if await self.storage.object_exists(destination_bucket, destination_key):
            raise ObjectAlreadyExistsError(destination_bucket, destination_key)

        await self.storage.copy_object(bucket, key, destination_bucket, destination_key)

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete an existing object."""
        await self.check_bucket_absence(bucket)
        await self.check_object_absence(bucket, key)
        await self.storage.delete_object(bucket, key)

