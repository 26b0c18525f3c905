"""Application settings configuration."""

import logging
import sys
from typing import Any

from neuroglia.hosting.abstractions import ApplicationSettings

from integration.enums import AwsRegion


class Settings(ApplicationSettings):
    """Allocation engine settings, read from the environment or a .env file."""

    # Debugging Configuration
    debug: bool = False
    environment: str = "development"  # development, production
    log_level: str = "INFO"

    # Application Configuration
    app_name: str = "Cloud Allocator"
    app_version: str = "1.0.0"
    service_name: str = "cloud-allocator"

    # AWS Account Credentials (empty: use the default credential chain)
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_region: AwsRegion = AwsRegion.US_EAST_1
    aws_max_attempts: int = 5  # botocore retry budget per API call (standard mode)

    # Allocation Configuration
    tag_on_create: bool = True  # False: launch untagged, then tag once the resource is visible
    poll_interval_seconds: float = 5.0
    readiness_timeout_seconds: float = 600.0
    tag_visibility_timeout_seconds: float = 60.0
    max_concurrent_launches: int = 10
    delete_on_allocation_failure: bool = True
    rds_skip_final_snapshot: bool = False
    default_tags: dict[str, str] = {
        "ManagedBy": "cloud-allocator",
        "Name": "{template}-{virtual_instance_id}",
    }

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings."""
        super().__init__(**kwargs)
        if self.max_concurrent_launches < 1:
            raise ValueError("max_concurrent_launches must be at least 1")
        if self.poll_interval_seconds < 0:
            raise ValueError("poll_interval_seconds cannot be negative")


# Instantiate application settings
app_settings = Settings()


def configure_logging(log_level: str = "INFO") -> None:
    """Configure application-wide logging with support for console and file output.

    Configures the root logger and quiets the AWS SDK and its HTTP stack.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    import os

    # Ensure log_level is uppercase for consistency
    log_level = log_level.upper()

    # Get root logger and clear any existing handlers to prevent duplicates
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.handlers.clear()

    root_logger.setLevel(log_level)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    # Console handler goes to stderr so that stdout only carries command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler only if LOG_FILE is set or a logs/ directory exists
    log_file = os.getenv("LOG_FILE", "logs/debug.log")
    if os.path.exists("logs") or os.getenv("LOG_FILE"):
        try:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except (OSError, PermissionError) as e:
            root_logger.warning(f"Cannot write log file {log_file}: {e}")

    third_party_loggers = [
        "boto3",
        "botocore",
        "botocore.credentials",
        "botocore.retryhandler",
        "urllib3",
        "urllib3.connectionpool",
        "asyncio",
    ]

    for logger_name in third_party_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
