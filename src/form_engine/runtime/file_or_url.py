"""Hybrid file-or-URL inputs and their preview handles.

A file-or-url field holds one logical value that is either a remote URL
string or a local file. The input is in one of two modes:

    url-mode  <-- switch -->  file-mode

Switching clears the value that belonged to the previous mode. Going
from a file back to url-mode restores the freshly computed default when
the field is computed, otherwise blanks the value.

Uploaded files get a preview handle (``preview://<uuid>``) from a
PreviewRegistry. Handles are revoked when the file is replaced, the
mode switches, or the input is closed, so none outlive their file.
"""

import logging
import mimetypes
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Set

logger = logging.getLogger(__name__)

PREVIEW_SCHEME = "preview://"


@dataclass(frozen=True)
class FileReference:
    """A local file selected by the user, not yet uploaded."""

    filename: str
    content: bytes = b""
    content_type: str = "application/octet-stream"
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: str | Path) -> "FileReference":
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(filename=path.name, content_type=content_type, path=path)

    def read_bytes(self) -> bytes:
        if self.path is not None:
            return self.path.read_bytes()
        return self.content

    @property
    def size(self) -> int:
        if self.path is not None:
            return self.path.stat().st_size
        return len(self.content)


def is_file_like(value: Any) -> bool:
    """True for FileReference or any readable object that is not text."""
    if isinstance(value, FileReference):
        return True
    if isinstance(value, (str, bytes)):
        return False
    return callable(getattr(value, "read", None))


class InputMode(str, Enum):
    URL = "url"
    FILE = "file"


class PreviewRegistry:
    """Issues and revokes preview handles for local files."""

    def __init__(self):
        self._active: Set[str] = set()

    def create(self, file: Any) -> str:
        handle = f"{PREVIEW_SCHEME}{uuid.uuid4().hex}"
        self._active.add(handle)
        logger.debug(f"Created preview {handle} for {getattr(file, 'filename', file)!r}")
        return handle

    def revoke(self, handle: Optional[str]) -> None:
        if handle and handle in self._active:
            self._active.discard(handle)
            logger.debug(f"Revoked preview {handle}")

    def is_active(self, handle: Optional[str]) -> bool:
        return handle in self._active

    @property
    def active_count(self) -> int:
        return len(self._active)


class FileOrUrlInput:
    """Mode and preview state of one hybrid field.

    The value itself lives in the renderer's value map; this object
    tracks which mode the input is in and which preview is shown.
    """

    def __init__(self, field_name: str, previews: PreviewRegistry, value: Any = None):
        self.field_name = field_name
        self._previews = previews
        self.mode = InputMode.FILE if is_file_like(value) else InputMode.URL
        self.preview_url: Optional[str] = None
        self._file_preview: Optional[str] = None
        self.on_value(value)

    def on_value(self, value: Any) -> None:
        """Refresh the preview after the value changed."""
        self._revoke_file_preview()
        if is_file_like(value):
            self._file_preview = self._previews.create(value)
            self.preview_url = self._file_preview
        elif isinstance(value, str) and value:
            self.preview_url = value
        else:
            self.preview_url = None

    def accepts(self, value: Any) -> bool:
        """Whether ``value`` fits the current mode (None clears either)."""
        if value is None or value == "":
            return True
        if self.mode == InputMode.FILE:
            return is_file_like(value)
        return isinstance(value, str)

    def switch(self, mode: InputMode, current_value: Any, computed_default: Any = None) -> Any:
        """Change mode and return the value the field should now hold."""
        mode = InputMode(mode)
        if mode == self.mode:
            return current_value
        self.mode = mode

        if mode == InputMode.URL:
            new_value = computed_default if isinstance(computed_default, str) and computed_default else ""
        else:
            new_value = None

        logger.debug(f"Field '{self.field_name}' switched to {mode.value}-mode")
        self.on_value(new_value)
        return new_value

    def close(self) -> None:
        self._revoke_file_preview()
        self.preview_url = None

    def _revoke_file_preview(self) -> None:
        if self._file_preview:
            self._previews.revoke(self._file_preview)
            if self.preview_url == self._file_preview:
                self.preview_url = None
            self._file_preview = None
