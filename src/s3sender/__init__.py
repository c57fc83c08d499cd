"""S3 sender for message-processing pipelines.

Performs a configured sequence of Amazon S3 actions (mkBucket, rmBucket,
upload, download, copy, delete) for every message it is given, resolving
object keys, payloads and copy destinations from per-message parameters.
"""

from s3sender.config import (
    EnvironmentCredentials,
    S3SenderConfig,
    S3SenderSettings,
    get_settings,
)
from s3sender.exceptions import (
    BucketAlreadyExistsError,
    BucketCreationDisabledError,
    BucketNotFoundError,
    ConfigurationError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    OperationError,
    ParameterError,
    S3SenderError,
    SenderNotOpenError,
    SenderTimeoutError,
)
from s3sender.models import AVAILABLE_REGIONS, MessageContext, Parameter, S3Action
from s3sender.operations import S3Operations
from s3sender.sender import S3Sender
from s3sender.storage import S3Storage
from s3sender.validator import ConfigurationValidator, is_valid_bucket_name

__all__ = [
    # Core classes
    "S3Sender",
    "S3Operations",
    "S3Storage",
    "ConfigurationValidator",
    # Configuration
    "S3SenderConfig",
    "S3SenderSettings",
    "EnvironmentCredentials",
    "get_settings",
    # Models
    "S3Action",
    "Parameter",
    "MessageContext",
    "AVAILABLE_REGIONS",
    "is_valid_bucket_name",
    # Exceptions
    "S3SenderError",
    "ConfigurationError",
    "ParameterError",
    "OperationError",
    "BucketAlreadyExistsError",
    "BucketNotFoundError",
    "ObjectAlreadyExistsError",
    "ObjectNotFoundError",
    "BucketCreationDisabledError",
    "SenderNotOpenError",
    "SenderTimeoutError",
]
