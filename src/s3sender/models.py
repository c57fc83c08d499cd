"""S3 sender models.

Defines the supported actions and regions, parameter declarations and the
message context that invocation parameters are resolved from.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Parameter names recognized by the sender
OBJECT_KEY = "objectKey"
FILE = "file"
DESTINATION_BUCKET_NAME = "destinationBucketName"
DESTINATION_OBJECT_KEY = "destinationObjectKey"
DESTINATION_FILE = "destinationFile"

OCTET_STREAM = "application/octet-stream"

AVAILABLE_REGIONS: tuple[str, ...] = (
    "us-gov-west-1",
    "us-gov-east-1",
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
    "eu-west-1",
    "eu-west-2",
    "eu-west-3",
    "eu-central-1",
    "eu-north-1",
    "ap-south-1",
    "ap-southeast-1",
    "ap-southeast-2",
    "ap-northeast-1",
    "ap-northeast-2",
    "sa-east-1",
    "cn-north-1",
    "cn-northwest-1",
    "ca-central-1",
)


class S3Action(str, Enum):
    """Storage actions a sender can be configured with."""

    MK_BUCKET = "mkBucket"
    RM_BUCKET = "rmBucket"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    COPY = "copy"
    DELETE = "delete"

    @property
    def needs_object_key(self) -> bool:
        """Whether the action addresses an object rather than a bucket."""
        return self not in (S3Action.MK_BUCKET, S3Action.RM_BUCKET)


class Parameter(BaseModel):
    """Declared sender parameter.

    Resolved per invocation: a literal ``value`` wins, then the session entry
    named by ``session_key``, then ``default``. A parameter with none of these
    resolves to the message body.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Parameter name")
    value: Any = Field(default=None, description="Literal value")
    session_key: str | None = Field(
        default=None,
        description="Session entry to take the value from",
    )
    default: Any = Field(
        default=None,
        description="Value used when the session entry is missing",
    )
    required: bool = Field(
        default=False,
        description="Fail resolution when no value can be found",
    )


class MessageContext(BaseModel):
    """Per-invocation context supplied by the host framework."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    message: str = Field(default="", description="Message body")
    session: dict[str, Any] = Field(
        default_factory=dict,
        description="Session values parameters can refer to",
    )
