"""
Storage key resolution and upload for a single file.

Keys follow ``{upload_dir}/{YYYY}/{MM}/{crc32(token)}.{ext}``. The generated
name never contains any part of the uploaded file name, so the client cannot
steer the object key.
"""

import itertools
import logging
import mimetypes
import os
import time
import zlib
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from configuration import (
    DEFAULT_MIME_TYPE,
    MAX_NAME_ATTEMPTS,
    PUBLIC_READ_ACL,
    SAFE_NAME_SENTINEL,
    STRIPPED_NAME_CHARS,
    UPLOAD_DIR,
)
from common.local_fs import LocalFilesystem
from persistence.record import UploadRequest, UploadResult
from systems.base import ExistenceCheck

logger = logging.getLogger(__name__)

_token_counter = itertools.count()


def unique_token(prefix="") -> str:
    """Return a token unique within this process (time, pid and counter)."""
    return f"{prefix}{time.time_ns():x}{os.getpid():x}{next(_token_counter):x}"


def sanitize_name(raw_name) -> Tuple[str, str]:
    """Split an untrusted file name into a safe basename and extension.

    The extension is lowercased, "" when the basename has no dot.
    """
    name = raw_name or ""
    for char in STRIPPED_NAME_CHARS:
        name = name.replace(char, "")
    name = name.replace("\\", "/")

    # The sentinel keeps the basename non-empty for names like "" or ".env"
    if "/" not in name:
        name = SAFE_NAME_SENTINEL + name
    else:
        name = name.replace("/", "/" + SAFE_NAME_SENTINEL)

    basename = name.rsplit("/", 1)[-1]
    _, dot, extension = basename.rpartition(".")
    if not dot:
        extension = ""

    return basename[len(SAFE_NAME_SENTINEL):], extension.lower()


def guess_mime_type(key: str, hint: str = None) -> str:
    mime, _ = mimetypes.guess_type(key)
    return mime or hint or DEFAULT_MIME_TYPE


class UploadKeyResolver:
    """Resolves collision-free keys and drives one upload.

    Args:
        config: ConfigurationSource
        store: object exposing async ``check_exists`` and ``put_object``
        filesystem: LocalFilesystem used for the local mirror
        assume_absent_on_check_error: when an existence check fails, treat the
            key as free (True) or as taken (False)
        max_attempts: existence checks before settling on the last candidate
        clock: returns the current UTC epoch timestamp
        token_factory: returns a unique token, given an optional prefix
    """

    def __init__(
        self,
        config,
        store,
        filesystem: LocalFilesystem = None,
        assume_absent_on_check_error: bool = True,
        max_attempts: int = MAX_NAME_ATTEMPTS,
        clock: Callable[[], float] = time.time,
        token_factory: Callable[..., str] = unique_token,
    ):
        self.config = config
        self.store = store
        self.filesystem = filesystem or LocalFilesystem()
        self.assume_absent_on_check_error = assume_absent_on_check_error
        self.max_attempts = max(1, max_attempts)
        self.clock = clock
        self.token_factory = token_factory

    sanitize_name = staticmethod(sanitize_name)

    def resolve_upload_directory(self) -> str:
        """Configured upload path, else the host upload dir, else the default."""
        return self.config.upload_path or self.config.host_upload_dir or UPLOAD_DIR

    def partition_date(self, timestamp: float) -> datetime:
        return datetime.fromtimestamp(timestamp + self.config.timezone_offset, tz=timezone.utc)

    def build_candidate_key(
        self, upload_dir: str, timestamp: float, extension: str, seed=None
    ) -> str:
        date = self.partition_date(timestamp)
        token = self.token_factory() if seed is None else self.token_factory(str(seed))
        name = str(zlib.crc32(token.encode("utf-8")) & 0xFFFFFFFF)
        if extension:
            name = f"{name}.{extension}"
        return f"{upload_dir.rstrip('/')}/{date:%Y}/{date:%m}/{name}"

    async def _check(self, key: str) -> ExistenceCheck:
        try:
            return await self.store.check_exists(self.config.bucket, key)
        except Exception as e:
            logger.warning(f"Existence check raised for {key}: {e}")
            return ExistenceCheck.CHECK_FAILED

    async def is_taken(self, key: str) -> bool:
        """Whether ``key`` counts as taken, applying the check-error policy."""
        result = await self._check(key)
        if result is ExistenceCheck.CHECK_FAILED:
            return not self.assume_absent_on_check_error
        return result is ExistenceCheck.EXISTS

    async def resolve_unique_key(
        self, upload_dir: str, extension: str, timestamp: float = None
    ) -> str:
        """Find a key with no existing object, within the attempt budget.

        When every attempt collides the last candidate is returned anyway.
        """
        if timestamp is None:
            timestamp = self.clock()

        key = self.build_candidate_key(upload_dir, timestamp, extension)
        remaining = self.max_attempts

        while True:
            remaining -= 1
            if not await self.is_taken(key):
                return key
            if remaining <= 0:
                break
            logger.debug(f"Key {key} already exists, regenerating")
            key = self.build_candidate_key(upload_dir, timestamp, extension, seed=remaining)

        logger.warning(
            f"No free key after {self.max_attempts} attempts, using {key}"
        )
        return key

    async def upload_and_record(self, request: UploadRequest, key: str) -> Optional[UploadResult]:
        """Upload the request body to ``key`` and mirror it locally.

        Returns None if the remote write fails. Local mirroring never affects
        the result.
        """
        _, extension = sanitize_name(request.name)
        mime = guess_mime_type(key, request.mime_hint)

        try:
            with request.open() as body:
                uploaded = await self.store.put_object(
                    self.config.bucket, key, body,
                    visibility=PUBLIC_READ_ACL,
                    content_type=mime,
                )
        except Exception as e:
            logger.error(f"Failed to upload {key}: {e}")
            return None

        if not uploaded:
            logger.error(f"Failed to upload {key}")
            return None

        self._mirror(request, key)

        return UploadResult(
            name=request.name,
            path=key,
            size=request.size,
            type=extension,
            mime=mime,
        )

    def _mirror(self, request: UploadRequest, key: str):
        """Keep a local copy of the upload at the same relative path."""
        local_path = os.path.join(self.config.mirror_root, *key.strip("/").split("/"))
        local_dir = os.path.dirname(local_path)

        try:
            if not self.filesystem.mkdir_recursive(local_dir):
                logger.warning(f"Could not create mirror directory {local_dir}")
                return
            if request.is_path:
                copied = self.filesystem.move_file(request.source, local_path)
            else:
                copied = self.filesystem.write_bytes(local_path, request.read_all())
            if not copied:
                logger.warning(f"Could not mirror {key} to {local_path}")
        except Exception as e:
            logger.warning(f"Local mirror failed for {key}: {e}")

