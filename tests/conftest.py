"""Shared fixtures for S3 sender tests.

Provides an in-memory stand-in for the aioboto3 S3 client so the sender's
real connect/open code runs without AWS credentials or network access.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError, ReadTimeoutError

import s3sender.storage as storage_module
from s3sender import S3Sender, S3SenderConfig, S3SenderSettings


def client_error(code: str, operation: str) -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError(
        {"Error": {"Code": code, "Message": f"{operation} failed with {code}"}},
        operation,
    )


class FakeStreamingBody:
    """Async streaming body as returned by get_object."""

    def __init__(self, data: bytes, error: Exception | None = None) -> None:
        self._data = data
        self._error = error
        self.closed = False

    async def __aenter__(self) -> FakeStreamingBody:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    async def iter_chunks(self, chunk_size: int = 1024) -> AsyncIterator[bytes]:
        for start in range(0, len(self._data), chunk_size):
            yield self._data[start : start + chunk_size]
            if self._error is not None:
                raise self._error


class FakeS3Client:
    """In-memory S3 client with the calls the sender uses."""

    def __init__(self) -> None:
        self.buckets: dict[str, dict[str, bytes]] = {}
        self.locations: dict[str, str | None] = {}
        self.content_types: dict[tuple[str, str], str | None] = {}
        self.calls: list[str] = []
        self.bodies: list[FakeStreamingBody] = []
        self.forbidden_buckets: set[str] = set()
        self.timeout_on: set[str] = set()
        self.stream_error: Exception | None = None
        self.sessions: list[FakeSession] = []
        self.closed = False

    async def __aenter__(self) -> FakeS3Client:
        self.closed = False
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.timeout_on:
            raise ReadTimeoutError(endpoint_url="https://s3.fake.amazonaws.com")

    def _bucket(self, bucket: str, operation: str) -> dict[str, bytes]:
        if bucket not in self.buckets:
            raise client_error("NoSuchBucket", operation)
        return self.buckets[bucket]

    def add_object(self, bucket: str, key: str, data: bytes) -> None:
        self.buckets.setdefault(bucket, {})[key] = data

    @property
    def mutating_calls(self) -> list[str]:
        return [call for call in self.calls if not call.startswith("head_")]

    async def head_bucket(self, Bucket: str) -> dict[str, Any]:
        self._record("head_bucket")
        if Bucket in self.forbidden_buckets:
            raise client_error("403", "HeadBucket")
        if Bucket not in self.buckets:
            raise client_error("404", "HeadBucket")
        return {}

    async def create_bucket(
        self,
        Bucket: str,
        CreateBucketConfiguration: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        self._record("create_bucket")
        if Bucket in self.buckets:
            raise client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        self.buckets[Bucket] = {}
        self.locations[Bucket] = (
            CreateBucketConfiguration["LocationConstraint"]
            if CreateBucketConfiguration
            else None
        )
        return {"Location": f"/{Bucket}"}

    async def delete_bucket(self, Bucket: str) -> dict[str, Any]:
        self._record("delete_bucket")
        objects = self._bucket(Bucket, "DeleteBucket")
        if objects:
            raise client_error("BucketNotEmpty", "DeleteBucket")
        del self.buckets[Bucket]
        return {}

    async def head_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self._record("head_object")
        objects = self.buckets.get(Bucket, {})
        if Key not in objects:
            raise client_error("404", "HeadObject")
        return {"ContentLength": len(objects[Key])}

    async def put_object(
        self,
        Bucket: str,
        Key: str,
        Body: Any,
        ContentType: str | None = None,
    ) -> dict[str, Any]:
        self._record("put_object")
        data = Body.read() if hasattr(Body, "read") else bytes(Body)
        self._bucket(Bucket, "PutObject")[Key] = data
        self.content_types[(Bucket, Key)] = ContentType
        return {"ETag": '"etag"'}

    async def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self._record("get_object")
        objects = self._bucket(Bucket, "GetObject")
        if Key not in objects:
            raise client_error("NoSuchKey", "GetObject")
        body = FakeStreamingBody(objects[Key], self.stream_error)
        self.bodies.append(body)
        return {"Body": body, "ContentLength": len(objects[Key])}

    async def copy_object(
        self,
        Bucket: str,
        Key: str,
        CopySource: dict[str, str],
    ) -> dict[str, Any]:
        self._record("copy_object")
        source = self._bucket(CopySource["Bucket"], "CopyObject")
        if CopySource["Key"] not in source:
            raise client_error("NoSuchKey", "CopyObject")
        self._bucket(Bucket, "CopyObject")[Key] = source[CopySource["Key"]]
        return {"CopyObjectResult": {"ETag": '"etag"'}}

    async def delete_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        self._record("delete_object")
        self.buckets.get(Bucket, {}).pop(Key, None)
        return {}


class FakeSession:
    """Stand-in for aioboto3.Session handing out the shared fake client."""

    def __init__(self, client: FakeS3Client, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.client_kwargs: dict[str, Any] = {}
        self._client = client

    def client(self, service_name: str, **kwargs: Any) -> FakeS3Client:
        assert service_name == "s3"
        self.client_kwargs = kwargs
        return self._client


@pytest.fixture
def fake_s3(monkeypatch: pytest.MonkeyPatch) -> FakeS3Client:
    """Install the in-memory client behind aioboto3.Session."""
    client = FakeS3Client()

    def session_factory(**kwargs: Any) -> FakeSession:
        session = FakeSession(client, **kwargs)
        client.sessions.append(session)
        return session

    monkeypatch.setattr(storage_module.aioboto3, "Session", session_factory)
    return client


@pytest.fixture
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide credentials in the environment."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test-access-key")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test-secret-key")
    monkeypatch.delenv("AWS_SESSION_TOKEN", raising=False)


@pytest.fixture
def settings() -> S3SenderSettings:
    """Client settings isolated from any local .env file."""
    return S3SenderSettings(_env_file=None, download_chunk_size=1024)


def build_config(**overrides: Any) -> S3SenderConfig:
    """Build a sender configuration with test defaults."""
    values: dict[str, Any] = {
        "name": "test-sender",
        "client_region": "eu-central-1",
        "bucket_name": "source-bucket",
    }
    values.update(overrides)
    return S3SenderConfig(**values)


@pytest_asyncio.fixture
async def make_sender(
    fake_s3: FakeS3Client,
    aws_env: None,
    settings: S3SenderSettings,
) -> AsyncIterator[Callable[..., Awaitable[S3Sender]]]:
    """Create opened senders and close them after the test."""
    senders: list[S3Sender] = []

    async def factory(**overrides: Any) -> S3Sender:
        sender = S3Sender(build_config(**overrides), settings)
        await sender.open()
        senders.append(sender)
        return sender

    yield factory

    for sender in senders:
        await sender.close()


@pytest.fixture
def make_config() -> Callable[..., S3SenderConfig]:
    """Factory for sender configurations with test defaults."""
    return build_config
