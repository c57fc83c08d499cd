"""Configuration and bucket name validation."""

from __future__ import annotations

import re

import structlog

from s3sender.config import S3SenderConfig
from s3sender.exceptions import ConfigurationError
from s3sender.models import (
    AVAILABLE_REGIONS,
    DESTINATION_BUCKET_NAME,
    DESTINATION_FILE,
    DESTINATION_OBJECT_KEY,
    FILE,
    S3Action,
)

logger = structlog.get_logger(__name__)

_ACTION_SEPARATORS = re.compile(r"[\s,]+")
_BUCKET_NAME = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")
_IP_ADDRESS = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


def split_actions(actions: str | None) -> list[str]:
    """Split an action string on whitespace and commas.

    Args:
        actions: Configured action string

    Returns:
        Non-empty tokens in configured order
    """
    if not actions:
        return []
    return [token for token in _ACTION_SEPARATORS.split(actions) if token]


def is_valid_bucket_name(name: str | None) -> bool:
    """Check a bucket name against the S3 naming rules.

    3 to 63 characters of lowercase letters, digits, periods and dashes,
    starting and ending with a letter or digit, without adjacent periods,
    without dashes next to periods and not formatted as an IP address.
    """
    if not name or not _BUCKET_NAME.match(name):
        return False
    if ".." in name or ".-" in name or "-." in name:
        return False
    return not _IP_ADDRESS.match(name)


def is_valid_region(region: str | None) -> bool:
    """Check that a region is one of the supported regions."""
    return bool(region) and region in AVAILABLE_REGIONS


class ConfigurationValidator:
    """Setup-time validation of a sender configuration.

    Checks the client region, the action tokens, the bucket name and the
    parameter declarations the configured actions depend on. Never touches
    the network.
    """

    def __init__(self, config: S3SenderConfig) -> None:
        """Initialize validator.

        Args:
            config: Sender configuration to validate
        """
        self.config = config

    def validate(self) -> tuple[S3Action, ...]:
        """Validate the configuration.

        Returns:
            Configured actions parsed into their typed form

        Raises:
            ConfigurationError: If any check fails
        """
        self.validate_region()
        actions = self.parse_actions()

        for action in actions:
            self.validate_bucket_name()
            self.validate_parameters(action)

        logger.debug(
            "s3_sender_config_validated",
            sender=self.config.name,
            actions=[action.value for action in actions],
            bucket=self.config.bucket_name,
        )

        return actions

    def validate_region(self) -> None:
        """Validate the client region and, if relevant, the bucket region.

        Raises:
            ConfigurationError: If a region is unknown or missing
        """
        config = self.config
        if not is_valid_region(config.client_region):
            raise ConfigurationError(
                f"Sender [{config.name}] client region unknown or not specified "
                f"[{config.client_region}], supported regions: {', '.join(AVAILABLE_REGIONS)}"
            )

        if (
            config.force_global_bucket_access_enabled
            and config.bucket_region
            and not is_valid_region(config.bucket_region)
        ):
            raise ConfigurationError(
                f"Sender [{config.name}] bucket region unknown [{config.bucket_region}], "
                f"supported regions: {', '.join(AVAILABLE_REGIONS)}"
            )

    def parse_actions(self) -> tuple[S3Action, ...]:
        """Parse the action string into typed actions.

        Raises:
            ConfigurationError: If no actions are configured or a token is unknown
        """
        tokens = split_actions(self.config.actions)
        supported = ", ".join(action.value for action in S3Action)

        if not tokens:
            raise ConfigurationError(
                f"Sender [{self.config.name}] no actions specified, "
                f"supported actions: {supported}"
            )

        actions = []
        for token in tokens:
            try:
                actions.append(S3Action(token))
            except ValueError as e:
                raise ConfigurationError(
                    f"Sender [{self.config.name}] action unknown [{token}], "
                    f"supported actions: {supported}"
                ) from e

        return tuple(actions)

    def validate_bucket_name(self) -> None:
        """Validate the configured bucket name.

        Raises:
            ConfigurationError: If the name is missing or breaks naming rules
        """
        if not is_valid_bucket_name(self.config.bucket_name):
            raise ConfigurationError(
                f"Sender [{self.config.name}] bucket name not specified or invalid "
                f"[{self.config.bucket_name}], see the S3 bucket naming rules"
            )

    def validate_parameters(self, action: S3Action) -> None:
        """Check the parameter declarations an action depends on.

        Args:
            action: Action to check

        Raises:
            ConfigurationError: If a required parameter is not declared
        """
        config = self.config

        if action is S3Action.UPLOAD and config.find_parameter(FILE) is None:
            raise ConfigurationError(
                f"Sender [{config.name}] parameter '{FILE}' must be present "
                f"to perform [{action.value}]"
            )

        if action is S3Action.COPY:
            missing = [
                name
                for name in (DESTINATION_BUCKET_NAME, DESTINATION_OBJECT_KEY)
                if config.find_parameter(name) is None
            ]
            if missing:
                raise ConfigurationError(
                    f"Sender [{config.name}] parameter(s) {', '.join(missing)} must be "
                    f"present to perform [{action.value}]"
                )

        if (
            action is S3Action.DOWNLOAD
            and config.download_directory is None
            and config.find_parameter(DESTINATION_FILE) is None
        ):
            raise ConfigurationError(
                f"Sender [{config.name}] [{action.value}] needs a destination: "
                f"set download_directory or declare a '{DESTINATION_FILE}' parameter"
            )
