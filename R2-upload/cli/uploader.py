"""
Host-facing upload handler: turns an incoming file into an R2 object.
"""

import logging
from typing import Any, Dict, Optional, Union

from algorithms.key_resolver import UploadKeyResolver, sanitize_name
from common.config_source import ConfigurationSource, EnvConfigurationSource
from common.local_fs import LocalFilesystem
from common.storage_factory import create_storage_system
from common.urls import build_public_url
from persistence.record import UploadRequest, UploadResult

logger = logging.getLogger(__name__)


class Uploader:
    """Upload handler wired to one configuration source.

    A new storage system is created for every upload so credentials are
    re-read from the configuration each time.
    """

    def __init__(
        self,
        config: ConfigurationSource = None,
        storage_factory=create_storage_system,
        filesystem: LocalFilesystem = None,
        assume_absent_on_check_error: bool = True,
    ):
        self.config = config or EnvConfigurationSource()
        self.storage_factory = storage_factory
        self.filesystem = filesystem or LocalFilesystem()
        self.assume_absent_on_check_error = assume_absent_on_check_error

    def is_allowed_type(self, extension: str) -> bool:
        allowed = self.config.allowed_extensions
        if allowed is None:
            return True
        return bool(extension) and extension in allowed

    def _resolver(self, store) -> UploadKeyResolver:
        return UploadKeyResolver(
            self.config,
            store,
            filesystem=self.filesystem,
            assume_absent_on_check_error=self.assume_absent_on_check_error,
        )

    async def upload(
        self, file: Union[UploadRequest, Dict[str, Any]]
    ) -> Optional[UploadResult]:
        """Upload one file.

        Args:
            file: UploadRequest or a host upload mapping (name, tmp_name/bytes/bits, size)

        Returns:
            UploadResult, or None if the file was rejected or the upload failed
        """
        request = file if isinstance(file, UploadRequest) else UploadRequest.from_host_file(file)

        if not request.name:
            logger.warning("Rejected upload without a file name")
            return None

        _, extension = sanitize_name(request.name)
        if not self.is_allowed_type(extension):
            logger.warning(f"Rejected upload {request.name!r}: type {extension!r} not allowed")
            return None

        if not request.has_source():
            logger.warning(f"Rejected upload {request.name!r}: no file data")
            return None

        store = self.storage_factory(self.config)

        async with store:
            resolver = self._resolver(store)
            upload_dir = resolver.resolve_upload_directory()
            key = await resolver.resolve_unique_key(upload_dir, extension)

            logger.info(f"Uploading {request.name!r} as {key}")
            result = await resolver.upload_and_record(request, key)

        if result is None:
            logger.error(f"Upload of {request.name!r} failed")
        return result

    def attachment_url(self, path: str) -> str:
        """Public URL for a stored attachment path."""
        return build_public_url(self.config.access_domain, path)

    async def verify(self) -> bool:
        """Check that the configured bucket is reachable."""
        async with self.storage_factory(self.config) as store:
            return await store.verify_connection()
