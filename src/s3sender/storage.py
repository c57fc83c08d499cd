"""AWS S3 client wrapper.

Owns the aioboto3 client of a sender and exposes the primitive bucket and
object calls the sender operations are built from.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import aioboto3
import structlog
from botocore.config import Config
from botocore.exceptions import ClientError

from s3sender.config import EnvironmentCredentials, S3SenderConfig, S3SenderSettings
from s3sender.models import OCTET_STREAM

logger = structlog.get_logger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchBucket", "NoSuchKey", "NotFound"})
_FORBIDDEN_CODES = frozenset({"403", "AccessDenied", "Forbidden"})


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3Storage:
    """S3 storage client with aioboto3.

    One client per sender, created by ``connect`` and released by
    ``disconnect``. The client is shared by all concurrent invocations.
    """

    def __init__(self, config: S3SenderConfig, settings: S3SenderSettings) -> None:
        """Initialize S3 storage.

        Args:
            config: Sender configuration
            settings: Environment-level client settings
        """
        self.config = config
        self.settings = settings
        self._session: Any = None
        self._client: Any = None
        self._connected = False

    def client_config(self) -> Config:
        """Build the botocore client configuration from the feature flags."""
        options: dict[str, Any] = {
            "region_name": self.config.client_region,
            "connect_timeout": self.settings.connect_timeout,
            "read_timeout": self.settings.read_timeout,
            "max_pool_connections": self.settings.max_pool_connections,
            "s3": {"use_accelerate_endpoint": self.config.accelerate_mode_enabled},
        }

        # Flexible checksums are sent as aws-chunked trailers unless restricted
        if self.config.chunked_encoding_disabled:
            options["request_checksum_calculation"] = "when_required"

        return Config(**options)

    async def connect(self, credentials: EnvironmentCredentials) -> None:
        """Create the S3 client.

        Args:
            credentials: Credentials read from the environment
        """
        if self._connected:
            return

        try:
            session = aioboto3.Session(
                aws_access_key_id=credentials.aws_access_key_id,
                aws_secret_access_key=(
                    credentials.aws_secret_access_key.get_secret_value()
                    if credentials.aws_secret_access_key
                    else None
                ),
                aws_session_token=(
                    credentials.aws_session_token.get_secret_value()
                    if credentials.aws_session_token
                    else None
                ),
                region_name=self.config.client_region,
            )

            client_kwargs: dict[str, Any] = {
                "region_name": self.config.client_region,
                "use_ssl": self.settings.use_ssl,
                "config": self.client_config(),
            }

            if self.settings.endpoint_url:
                client_kwargs["endpoint_url"] = self.settings.endpoint_url

            self._session = session
            self._client = await session.client("s3", **client_kwargs).__aenter__()
            self._connected = True

            logger.info(
                "s3_connected",
                region=self.config.client_region,
                endpoint=self.settings.endpoint_url,
                accelerate=self.config.accelerate_mode_enabled,
            )

        except Exception as e:
            logger.error(
                "s3_connection_failed",
                error=str(e),
                region=self.config.client_region,
            )
            raise

    async def disconnect(self) -> None:
        """Close the S3 client and its connection pool."""
        if self._client is not None:
            await self._client.__aexit__(None, None, None)
            self._client = None

        self._session = None
        self._connected = False

        logger.info("s3_disconnected", region=self.config.client_region)

    def is_connected(self) -> bool:
        """Check if the client is open."""
        return self._connected

    def _require_client(self) -> Any:
        if not self._connected or self._client is None:
            raise RuntimeError("S3 not connected. Call connect() first.")
        return self._client

    async def bucket_exists(self, bucket: str) -> bool:
        """Check whether a bucket exists.

        A bucket owned by another account answers 403 and counts as existing.
        """
        client = self._require_client()
        try:
            await client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            code = _error_code(e)
            if code in _NOT_FOUND_CODES:
                return False
            if code in _FORBIDDEN_CODES:
                return True
            raise

    async def object_exists(self, bucket: str, key: str) -> bool:
        """Check whether an object exists in a bucket."""
        client = self._require_client()
        try:
            await client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise

    async def create_bucket(self, bucket: str, location: str | None = None) -> None:
        """Create a bucket.

        Args:
            bucket: Bucket name
            location: Location constraint, None for us-east-1 style requests
        """
        client = self._require_client()
        params: dict[str, Any] = {"Bucket": bucket}
        if location:
            params["CreateBucketConfiguration"] = {"LocationConstraint": location}

        await client.create_bucket(**params)

        logger.info("s3_bucket_created", bucket=bucket, location=location)

    async def delete_bucket(self, bucket: str) -> None:
        """Delete a bucket."""
        client = self._require_client()
        await client.delete_bucket(Bucket=bucket)

        logger.info("s3_bucket_deleted", bucket=bucket)

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: Any,
        content_type: str = OCTET_STREAM,
    ) -> None:
        """Upload an object.

        Args:
            bucket: Bucket name
            key: Object key
            body: Bytes or binary file object
            content_type: MIME type stored with the object
        """
        client = self._require_client()
        await client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
        )

        logger.info("s3_object_uploaded", bucket=bucket, key=key)

    async def download_object(
        self,
        bucket: str,
        key: str,
        destination: Path,
        chunk_size: int | None = None,
    ) -> int:
        """Stream an object into a local file.

        The response body is released on every path, and a partly written
        file is removed when the transfer or a write fails.

        Args:
            bucket: Bucket name
            key: Object key
            destination: File to write
            chunk_size: Read size per chunk

        Returns:
            Number of bytes written

        Raises:
            OSError: If the local file cannot be written
        """
        client = self._require_client()
        chunk_size = chunk_size or self.settings.download_chunk_size

        response = await client.get_object(Bucket=bucket, Key=key)

        written = 0
        async with response["Body"] as stream:
            await asyncio.to_thread(destination.parent.mkdir, parents=True, exist_ok=True)
            handle = await asyncio.to_thread(destination.open, "wb")
            complete = False
            try:
                async for chunk in stream.iter_chunks(chunk_size):
                    await asyncio.to_thread(handle.write, chunk)
                    written += len(chunk)
                complete = True
            finally:
                await asyncio.to_thread(handle.close)
                # Never leave a truncated file behind
                if not complete:
                    await asyncio.to_thread(destination.unlink, missing_ok=True)
                    logger.warning(
                        "s3_partial_download_removed",
                        bucket=bucket,
                        key=key,
                        destination=str(destination),
                        size=written,
                    )

        logger.info(
            "s3_object_downloaded",
            bucket=bucket,
            key=key,
            destination=str(destination),
            size=written,
        )

        return written

    async def copy_object(
        self,
        source_bucket: str,
        source_key: str,
        destination_bucket: str,
        destination_key: str,
    ) -> None:
        """Server-side copy of an object, possibly across buckets."""
        client = self._require_client()
        await client.copy_object(
            Bucket=destination_bucket,
            Key=destination_key,
            CopySource={"Bucket": source_bucket, "Key": source_key},
        )

        logger.info(
            "s3_object_copied",
            source_bucket=source_bucket,
            source_key=source_key,
            destination_bucket=destination_bucket,
            destination_key=destination_key,
        )

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object."""
        client = self._require_client()
        await client.delete_object(Bucket=bucket, Key=key)

        logger.info("s3_object_deleted", bucket=bucket, key=key)
