"""
Basic data structures for uploads.
"""

import io
import os
from contextlib import contextmanager
from typing import Any, Dict, Optional

# Host mapping fields that carry file contents rather than a path
CONTENT_FIELDS = ("bytes", "bits")


class UploadRequest:
    """A single incoming upload.

    ``source`` is a file path (str), a bytes object, or a readable binary
    stream. Streams are read into memory once, so the payload can be sent
    and then mirrored locally.
    """

    def __init__(self, name, source, size: int = None, mime_hint: str = None):
        self.name = name or ""
        if source is not None and not isinstance(source, (str, bytes, bytearray)):
            source = source.read()
        self.source = source
        self.size = size if size is not None else self._guess_size()
        self.mime_hint = mime_hint

    @classmethod
    def from_host_file(cls, file: Dict[str, Any]) -> "UploadRequest":
        """Build a request from a host upload mapping.

        ``tmp_name`` is a path to the uploaded file; ``bytes`` and ``bits``
        hold the contents themselves (str values are UTF-8 encoded).
        """
        source = file.get("tmp_name")
        if source is None:
            for field in CONTENT_FIELDS:
                if file.get(field) is not None:
                    source = file[field]
                    if isinstance(source, str):
                        source = source.encode("utf-8")
                    break
        return cls(
            name=file.get("name"),
            source=source,
            size=file.get("size"),
            mime_hint=file.get("type"),
        )

    def _guess_size(self) -> int:
        if isinstance(self.source, (bytes, bytearray)):
            return len(self.source)
        if isinstance(self.source, str) and os.path.isfile(self.source):
            return os.path.getsize(self.source)
        return 0

    @property
    def is_path(self) -> bool:
        return isinstance(self.source, str)

    def has_source(self) -> bool:
        if self.source is None:
            return False
        if self.is_path:
            return os.path.isfile(self.source)
        return True

    @contextmanager
    def open(self):
        """Yield a readable binary body for the upload."""
        if self.is_path:
            with open(self.source, "rb") as f:
                yield f
        else:
            yield io.BytesIO(bytes(self.source))

    def read_all(self) -> bytes:
        """Return the in-memory payload (used for the local mirror)."""
        return bytes(self.source)


class UploadResult:
    """Metadata record handed back to the host after a successful upload."""

    def __init__(self, name: str, path: str, size: int, type: str, mime: Optional[str]):
        self.name = name
        self.path = path
        self.size = size
        self.type = type
        self.mime = mime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'path': self.path,
            'size': self.size,
            'type': self.type,
            'mime': self.mime,
        }

    def __repr__(self):
        return f"UploadResult(path={self.path!r}, name={self.name!r}, size={self.size})"
