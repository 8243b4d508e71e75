"""
Read-only configuration sources for the upload adapter.

Settings are re-derived on every access so that credential or bucket changes
take effect on the next upload without restarting the process.
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional, Tuple

from configuration import (
    ALLOW_ALL_EXTENSIONS,
    DEFAULT_ALLOWED_EXTENSIONS,
    DEFAULT_MIRROR_ROOT,
    ENV_ACCESS_DOMAIN,
    ENV_ACCESS_KEY_ID,
    ENV_ACCESS_KEY_SECRET,
    ENV_ACCOUNT_ID,
    ENV_ALLOWED_EXTENSIONS,
    ENV_BUCKET,
    ENV_HOST_UPLOAD_DIR,
    ENV_MIRROR_ROOT,
    ENV_TIMEZONE_OFFSET,
    ENV_UPLOAD_PATH,
)

logger = logging.getLogger(__name__)


def parse_extensions(value: Optional[str]) -> Optional[Tuple[str, ...]]:
    """Parse a comma separated extension list.

    Returns None when the allow-list is disabled ("*"), and the default list
    when the value is missing or blank.
    """
    if value is None or not value.strip():
        return DEFAULT_ALLOWED_EXTENSIONS
    if value.strip() == ALLOW_ALL_EXTENSIONS:
        return None
    return tuple(
        ext.strip().lstrip(".").lower() for ext in value.split(",") if ext.strip()
    )


def parse_offset(value: Any) -> int:
    """Parse a time zone offset in seconds, falling back to 0."""
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid time zone offset {value!r}, using 0")
        return 0


class ConfigurationSource:
    """Base class for configuration sources.

    Subclasses implement ``get``; the typed properties below are shared.
    """

    def get(self, name: str, default: Any = None) -> Any:
        raise NotImplementedError

    @property
    def account_id(self) -> str:
        return self.get("account_id", "") or ""

    @property
    def access_key_id(self) -> str:
        return self.get("access_key_id", "") or ""

    @property
    def access_key_secret(self) -> str:
        return self.get("access_key_secret", "") or ""

    @property
    def bucket(self) -> str:
        return self.get("bucket", "") or ""

    @property
    def access_domain(self) -> str:
        return self.get("access_domain", "") or ""

    @property
    def upload_path(self) -> Optional[str]:
        return self.get("upload_path") or None

    @property
    def host_upload_dir(self) -> Optional[str]:
        return self.get("host_upload_dir") or None

    @property
    def timezone_offset(self) -> int:
        return parse_offset(self.get("timezone_offset"))

    @property
    def mirror_root(self) -> str:
        return self.get("mirror_root") or DEFAULT_MIRROR_ROOT

    @property
    def allowed_extensions(self) -> Optional[Tuple[str, ...]]:
        value = self.get("allowed_extensions")
        if value is None or isinstance(value, str):
            return parse_extensions(value)
        return tuple(ext.lower() for ext in value)


class EnvConfigurationSource(ConfigurationSource):
    """Configuration read from environment variables on every access."""

    ENV_NAMES: Dict[str, str] = {
        "account_id": ENV_ACCOUNT_ID,
        "access_key_id": ENV_ACCESS_KEY_ID,
        "access_key_secret": ENV_ACCESS_KEY_SECRET,
        "bucket": ENV_BUCKET,
        "access_domain": ENV_ACCESS_DOMAIN,
        "upload_path": ENV_UPLOAD_PATH,
        "host_upload_dir": ENV_HOST_UPLOAD_DIR,
        "timezone_offset": ENV_TIMEZONE_OFFSET,
        "mirror_root": ENV_MIRROR_ROOT,
        "allowed_extensions": ENV_ALLOWED_EXTENSIONS,
    }

    def __init__(self, overrides: Optional[Mapping[str, Any]] = None):
        self.overrides = dict(overrides or {})

    def get(self, name: str, default: Any = None) -> Any:
        if self.overrides.get(name) is not None:
            return self.overrides[name]
        env_name = self.ENV_NAMES.get(name)
        if env_name is None:
            return default
        return os.getenv(env_name, default)


class DictConfigurationSource(ConfigurationSource):
    """Configuration backed by a plain mapping (tests, embedding hosts)."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self.values = dict(values or {})

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)
