"""S3 sender exceptions.

Custom exception hierarchy for configuration, parameter resolution,
storage operation and timeout errors.
"""

from __future__ import annotations


class S3SenderError(Exception):
    """Base exception for all S3 sender errors."""

    def __init__(self, message: str) -> None:
        """Initialize S3 sender error.

        Args:
            message: Error description
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(S3SenderError):
    """Sender configuration is invalid.

    Raised at setup time. A sender that raised this error never becomes
    usable.
    """

    pass


class ParameterError(S3SenderError):
    """Resolving invocation parameters against the message context failed."""

    def __init__(self, message: str, parameter: str | None = None) -> None:
        """Initialize parameter error.

        Args:
            message: Error description
            parameter: Name of the parameter that failed to resolve
        """
        self.parameter = parameter
        super().__init__(message)


class OperationError(S3SenderError):
    """A storage operation could not be performed."""

    def __init__(
        self,
        message: str,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        """Initialize operation error.

        Args:
            message: Error description
            bucket: Bucket the operation targeted
            key: Object key the operation targeted
        """
        self.bucket = bucket
        self.key = key
        super().__init__(message)


class BucketAlreadyExistsError(OperationError):
    """Bucket exists where an absent bucket was required."""

    def __init__(self, bucket: str) -> None:
        super().__init__(
            f"Bucket '{bucket}' already exists, please specify a unique bucket name",
            bucket=bucket,
        )


class BucketNotFoundError(OperationError):
    """Bucket does not exist where an existing bucket was required."""

    def __init__(self, bucket: str) -> None:
        super().__init__(
            f"Bucket '{bucket}' does not exist, please specify the name of an existing bucket",
            bucket=bucket,
        )


class ObjectAlreadyExistsError(OperationError):
    """Object exists where an absent key was required."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(
            f"Object '{key}' already exists in bucket '{bucket}', please specify a new name",
            bucket=bucket,
            key=key,
        )


class ObjectNotFoundError(OperationError):
    """Object does not exist where an existing object was required."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(
            f"Object '{key}' does not exist in bucket '{bucket}', "
            "please specify the name of an existing object",
            bucket=bucket,
            key=key,
        )


class BucketCreationDisabledError(OperationError):
    """Bucket auto-creation was needed but is switched off."""

    def __init__(self, bucket: str) -> None:
        super().__init__(
            f"Failed to create bucket '{bucket}': bucket creation is disabled, "
            "set bucket_creation_enabled to allow it",
            bucket=bucket,
        )


class SenderNotOpenError(OperationError):
    """Sender used before open() or after close()."""

    def __init__(self, name: str) -> None:
        super().__init__(f"S3 sender '{name}' is not open. Call open() first.")


class SenderTimeoutError(S3SenderError):
    """The storage service did not answer in time.

    Raised by ``send`` when the underlying client reports a timeout.
    """

    def __init__(self, operation: str, correlation_id: str | None = None) -> None:
        """Initialize sender timeout error.

        Args:
            operation: Action that timed out
            correlation_id: Correlation ID of the invocation
        """
        self.operation = operation
        self.correlation_id = correlation_id
        super().__init__(
            f"Action '{operation}' timed out (correlation_id={correlation_id})"
        )
