"""
Best-effort local filesystem operations for the upload mirror.

Every method reports failure through its return value; nothing here raises
for an OS error.
"""

import logging
import os
import posixpath
import re
import shutil

from configuration import MIRROR_DIR_MODE

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Collapse runs of backslashes to "/" and drop trailing separators."""
    path = re.sub(r"\\+", "/", path)
    stripped = path.rstrip("/")
    return stripped or path[:1]


class LocalFilesystem:
    """Local disk access used for mirroring uploaded files."""

    def __init__(self, dir_mode: int = MIRROR_DIR_MODE):
        self.dir_mode = dir_mode

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def make_dir(self, path: str) -> bool:
        """Create a single directory level."""
        try:
            os.mkdir(path, self.dir_mode)
            return True
        except OSError as e:
            logger.debug(f"Failed to create directory {path}: {e}")
            return False

    def mkdir_recursive(self, path: str) -> bool:
        """Create ``path`` and any missing parents.

        Walks up to the nearest existing ancestor, then creates the missing
        levels top-down. Stops at the first level that cannot be created.
        """
        current = normalize_path(path)
        missing = []

        while current and current not in (".", "/") and not self.is_dir(current):
            missing.append(current)
            parent = posixpath.dirname(current)
            if parent == current:
                break
            current = parent

        for directory in reversed(missing):
            if not self.make_dir(directory):
                return False

        return True

    def move_file(self, src: str, dst: str) -> bool:
        try:
            shutil.move(src, dst)
            return True
        except (OSError, shutil.Error) as e:
            logger.debug(f"Failed to move {src} to {dst}: {e}")
            return False

    def write_bytes(self, dst: str, data: bytes) -> bool:
        try:
            with open(dst, "wb") as f:
                f.write(data)
            return True
        except OSError as e:
            logger.debug(f"Failed to write {dst}: {e}")
            return False
