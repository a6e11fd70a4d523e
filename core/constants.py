"""Application constants and enumerations."""

from enum import Enum


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AuthMode(str, Enum):
    """How the client proved knowledge of the shared secret."""

    LEGACY = "legacy"  # shared_secret is the base secret itself
    DYNAMIC = "dynamic"  # shared_secret is "<base>_<timestamp>"


# Header fallbacks for auth fields missing from the body
HASH_HEADER = "x-hash"
SHARED_SECRET_HEADER = "x-shared-secret"
TIMESTAMP_HEADER = "x-timestamp"

# Separator between the base secret and the timestamp in dynamic secrets
DYNAMIC_SECRET_SEPARATOR = "_"

# Legacy image messages carry bare base64 JPEG data
LEGACY_IMAGE_MIME_TYPE = "image/jpeg"

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
