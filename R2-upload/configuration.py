"""
Configuration constants for the R2 upload adapter.

This module contains all configuration parameters including:
- Environment variable names for credentials and bucket settings
- Upload directory and local mirror settings
- Key naming parameters (retry budget, sentinel)
- Client timeouts and the default file type allow-list
"""

from typing import Tuple

# =============================================================================
# CLOUD STORAGE CONFIGURATION
# =============================================================================

# Environment variable names, re-read on every access by EnvConfigurationSource
ENV_ACCOUNT_ID: str = "R2_ACCOUNT_ID"
ENV_ACCESS_KEY_ID: str = "R2_ACCESS_KEY_ID"
ENV_ACCESS_KEY_SECRET: str = "R2_SECRET_ACCESS_KEY"
ENV_BUCKET: str = "BUCKET_NAME"
ENV_ACCESS_DOMAIN: str = "R2_ACCESS_DOMAIN"
ENV_UPLOAD_PATH: str = "R2_UPLOAD_PATH"
ENV_TIMEZONE_OFFSET: str = "R2_TIMEZONE_OFFSET"
ENV_HOST_UPLOAD_DIR: str = "UPLOAD_DIR"
ENV_MIRROR_ROOT: str = "LOCAL_MIRROR_ROOT"
ENV_ALLOWED_EXTENSIONS: str = "R2_ALLOWED_EXTENSIONS"

# R2 endpoint is https://{account_id}.{R2_PROVIDER_DOMAIN}
R2_PROVIDER_DOMAIN: str = "r2.cloudflarestorage.com"
R2_REGION: str = "auto"  # R2 has no region partitioning

# ACL applied to every uploaded object
PUBLIC_READ_ACL: str = "public-read"

# =============================================================================
# UPLOAD LAYOUT
# =============================================================================

# Fallback when neither an upload path nor a host upload dir is configured
UPLOAD_DIR: str = "usr/uploads"

# Local mirror root; keys are mirrored relative to it
DEFAULT_MIRROR_ROOT: str = "."

# Mode for directories created by the local mirror
MIRROR_DIR_MODE: int = 0o755

# =============================================================================
# KEY NAMING
# =============================================================================

MAX_NAME_ATTEMPTS: int = 10  # Existence checks before giving up on a unique name
SAFE_NAME_SENTINEL: str = "a"  # Prefix that keeps basename extraction non-empty
STRIPPED_NAME_CHARS: Tuple[str, ...] = ('"', "<", ">")

# =============================================================================
# FILE TYPES
# =============================================================================

# Extensions accepted by default; "*" in R2_ALLOWED_EXTENSIONS disables the check
DEFAULT_ALLOWED_EXTENSIONS: Tuple[str, ...] = (
    "gif", "jpg", "jpeg", "png", "tiff", "bmp", "webp", "avif",
    "mp3", "mp4", "mov", "wmv", "wma", "rmvb", "rm", "avi", "flv",
    "ogg", "oga", "ogv",
    "txt", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "pdf",
    "zip", "rar",
)
ALLOW_ALL_EXTENSIONS: str = "*"

DEFAULT_MIME_TYPE: str = "application/octet-stream"

# =============================================================================
# CLIENT TIMEOUTS AND RETRIES
# =============================================================================

CONNECT_TIMEOUT_SECONDS: int = 5
READ_TIMEOUT_SECONDS: int = 60
CLIENT_MAX_ATTEMPTS: int = 3  # botocore transport retries, not name retries
MAX_POOL_CONNECTIONS: int = 10

