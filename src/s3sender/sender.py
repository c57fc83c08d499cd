"""S3 sender.

Relays messages to Amazon S3: each invocation runs the configured actions
(create/remove bucket, upload, download, copy, delete object) against one
bucket and returns the message unchanged.

Example usage:
    >>> config = S3SenderConfig(
    ...     name="archive",
    ...     actions="upload",
    ...     bucket_name="invoice-archive",
    ...     bucket_creation_enabled=True,
    ...     parameters=[Parameter(name="file", session_key="payload")],
    ... )
    >>> async with S3Sender(config) as sender:
    ...     await sender.send(
    ...         "corr-1",
    ...         "invoices/2024-001.pdf",
    ...         MessageContext(message="invoices/2024-001.pdf", session={"payload": data}),
    ...     )
"""

from __future__ import annotations

import asyncio
from pathlib import Path, PurePosixPath
from typing import Any

import structlog
from botocore.exceptions import ConnectTimeoutError, ReadTimeoutError

from s3sender.config import (
    EnvironmentCredentials,
    S3SenderConfig,
    S3SenderSettings,
    get_settings,
)
from s3sender.exceptions import (
    ConfigurationError,
    OperationError,
    ParameterError,
    SenderNotOpenError,
    SenderTimeoutError,
)
from s3sender.models import (
    DESTINATION_BUCKET_NAME,
    DESTINATION_FILE,
    DESTINATION_OBJECT_KEY,
    FILE,
    OBJECT_KEY,
    MessageContext,
    S3Action,
)
from s3sender.operations import S3Operations
from s3sender.parameters import resolve_parameters
from s3sender.storage import S3Storage
from s3sender.validator import ConfigurationValidator

logger = structlog.get_logger(__name__)


class S3Sender:
    """Configurable S3 sender.

    Lifecycle: ``configure`` validates the configuration once, ``open``
    creates the shared client, ``send`` runs the configured actions per
    message and ``close`` releases the client. A sender whose configuration
    is invalid never opens.
    """

    def __init__(
        self,
        config: S3SenderConfig,
        settings: S3SenderSettings | None = None,
    ) -> None:
        """Initialize S3 sender.

        Args:
            config: Sender configuration
            settings: Client settings, read from the environment when omitted
        """
        self.config = config
        self.settings = settings or get_settings()
        self._actions: tuple[S3Action, ...] | None = None
        self._storage: S3Storage | None = None
        self._operations: S3Operations | None = None
        self._log = logger.bind(sender=config.name)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def actions(self) -> tuple[S3Action, ...]:
        """Configured actions, available once configured."""
        if self._actions is None:
            raise ConfigurationError(f"Sender [{self.name}] is not configured")
        return self._actions

    def configure(self) -> tuple[S3Action, ...]:
        """Validate the configuration and fix the action sequence.

        Returns:
            Configured actions in execution order

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        try:
            self._actions = ConfigurationValidator(self.config).validate()
        except ConfigurationError as e:
            self._log.error("s3_sender_configuration_failed", error=str(e))
            raise

        return self._actions

    async def open(self) -> None:
        """Create the storage client.

        Configures the sender first if that has not happened yet.

        Raises:
            ConfigurationError: If the configuration is invalid or the
                environment lacks credentials
        """
        if self._actions is None:
            self.configure()

        credentials = EnvironmentCredentials()
        if not credentials.is_complete():
            raise ConfigurationError(
                f"Sender [{self.name}] needs AWS_ACCESS_KEY_ID and "
                "AWS_SECRET_ACCESS_KEY in the environment"
            )

        storage = S3Storage(self.config, self.settings)
        await storage.connect(credentials)

        self._storage = storage
        self._operations = S3Operations(storage, self.config)

        self._log.info(
            "s3_sender_opened",
            actions=[action.value for action in self.actions],
            bucket=self.config.bucket_name,
        )

    async def close(self) -> None:
        """Release the storage client.

        Later ``send`` calls fail with ``SenderNotOpenError``.
        """
        if self._storage is not None:
            await self._storage.disconnect()

        self._storage = None
        self._operations = None

        self._log.info("s3_sender_closed")

    def is_open(self) -> bool:
        """Check if the sender can process messages."""
        return self._storage is not None and self._storage.is_connected()

    async def __aenter__(self) -> S3Sender:
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def send(
        self,
        correlation_id: str | None,
        message: str,
        context: MessageContext | None = None,
    ) -> str:
        """Run the configured actions for one message.

        Args:
            correlation_id: Correlation ID of the invocation
            message: Message body, used as object key unless an
                ``objectKey`` parameter resolves to a value
            context: Context the declared parameters are resolved from

        Returns:
            The message, unchanged

        Raises:
            SenderNotOpenError: If the sender is not open
            ParameterError: If parameters cannot be resolved
            OperationError: If an action's preconditions are not met
            SenderTimeoutError: If the storage service timed out
        """
        operations = self._operations
        if operations is None or not self.is_open():
            raise SenderNotOpenError(self.name)

        log = self._log.bind(correlation_id=correlation_id)
        values = self._resolve(message, context)
        key_value = values.get(OBJECT_KEY)
        object_key = message if key_value in (None, "") else str(key_value)

        for action in self.actions:
            log.debug("s3_action_started", action=action.value, key=object_key)
            try:
                await self._dispatch(operations, action, object_key, values)
            except (ConnectTimeoutError, ReadTimeoutError, asyncio.TimeoutError) as e:
                log.error("s3_action_timed_out", action=action.value, error=str(e))
                raise SenderTimeoutError(action.value, correlation_id) from e
            except Exception as e:
                log.error("s3_action_failed", action=action.value, error=str(e))
                raise

        return message

    def _resolve(self, message: str, context: MessageContext | None) -> dict[str, Any]:
        if context is None:
            context = MessageContext(message=message)
        try:
            return resolve_parameters(self.config.parameters, context)
        except ParameterError:
            raise
        except Exception as e:
            raise ParameterError(
                f"Sender [{self.name}] caught exception evaluating parameters: {e}"
            ) from e

    async def _dispatch(
        self,
        operations: S3Operations,
        action: S3Action,
        object_key: str | None,
        values: dict[str, Any],
    ) -> None:
        bucket = self.config.bucket_name

        if action.needs_object_key and not object_key:
            raise OperationError(
                f"No value found for objectKey, needed to perform [{action.value}]",
                bucket=bucket,
            )

        if action is S3Action.MK_BUCKET:
            await operations.create_bucket(bucket, exists_is_error=True)

        elif action is S3Action.RM_BUCKET:
            await operations.delete_bucket(bucket)

        elif action is S3Action.UPLOAD:
            if FILE not in values:
                raise OperationError(
                    f"Parameter '{FILE}' doesn't exist, it is needed to perform [upload]",
                    bucket=bucket,
                    key=object_key,
                )
            if values[FILE] is None:
                raise OperationError(
                    f"No value was assigned to parameter '{FILE}'",
                    bucket=bucket,
                    key=object_key,
                )
            await operations.upload_object(bucket, object_key, values[FILE])

        elif action is S3Action.DOWNLOAD:
            destination = self._download_destination(object_key, values)
            await operations.download_object(bucket, object_key, destination)

        elif action is S3Action.COPY:
            names = (DESTINATION_BUCKET_NAME, DESTINATION_OBJECT_KEY)
            if any(name not in values for name in names):
                raise OperationError(
                    f"No {DESTINATION_BUCKET_NAME} and/or {DESTINATION_OBJECT_KEY} "
                    "parameter found, they are needed to perform [copy]",
                    bucket=bucket,
                    key=object_key,
                )
            if any(values[name] in (None, "") for name in names):
                raise OperationError(
                    f"No value in {DESTINATION_BUCKET_NAME} and/or {DESTINATION_OBJECT_KEY} "
                    "parameter, please assign values to perform [copy]",
                    bucket=bucket,
                    key=object_key,
                )
            await operations.copy_object(
                bucket,
                object_key,
                str(values[DESTINATION_BUCKET_NAME]),
                str(values[DESTINATION_OBJECT_KEY]),
            )

        elif action is S3Action.DELETE:
            await operations.delete_object(bucket, object_key)

    def _download_destination(self, object_key: str, values: dict[str, Any]) -> Path:
        """Work out where a downloaded object goes.

        A ``destinationFile`` parameter wins, otherwise the key is placed
        under the configured download directory.

        Raises:
            OperationError: If no destination is available or the key
                would leave the download directory
        """
        destination_file = values.get(DESTINATION_FILE)
        if destination_file:
            return Path(destination_file)

        directory = self.config.download_directory
        if directory is None:
            raise OperationError(
                f"No destination for [download] of '{object_key}': "
                f"parameter '{DESTINATION_FILE}' is empty and no download_directory is set",
                bucket=self.config.bucket_name,
                key=object_key,
            )

        relative = PurePosixPath(object_key)
        if relative.is_absolute() or ".." in relative.parts:
            raise OperationError(
                f"Object key '{object_key}' would be written outside {directory}",
                bucket=self.config.bucket_name,
                key=object_key,
            )

        return Path(directory).joinpath(*relative.parts)
