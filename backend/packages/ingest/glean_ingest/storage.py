"""
File storage with transparent gzip compression.

Paths ending in ``.gz`` are compressed on write and decompressed on read by
the external ``gzip`` tool when transparent compression is enabled. Literal
reads always return the stored bytes.
"""

import json
import os
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)

GZIP_SUFFIX = ".gz"
_GZIP_MAGIC = b"\x1f\x8b"
_GZIP_TIMEOUT_SECONDS = 30


class FileSystem(ABC):
    """Storage operations used by the compression probe and index files."""

    @abstractmethod
    def temp_path(self, prefix: str, suffix: str) -> str:
        """Create an empty temporary file and return its path."""

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        """Write data, compressing it if the storage layer does so."""

    @abstractmethod
    def read_transparent(self, path: str) -> bytes:
        """Read data, decompressing it if the storage layer does so."""

    @abstractmethod
    def read_literal(self, path: str) -> bytes:
        """Read the stored bytes unmodified."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete a file. Missing files are ignored."""

    @abstractmethod
    def executable_available(self, name: str) -> bool:
        """Whether an executable is on the system path."""


class GzipFileSystem(FileSystem):
    """Local file system that pipes ``.gz`` files through the gzip tool."""

    def __init__(
        self,
        gzip_executable: str | None = None,
        transparent: bool | None = None,
        temp_dir: str | None = None,
    ) -> None:
        self.gzip_executable = gzip_executable or settings.gzip_executable
        self.transparent = settings.transparent_compression if transparent is None else transparent
        self.temp_dir = temp_dir or settings.temp_dir

    def _compressed(self, path: str) -> bool:
        return self.transparent and str(path).endswith(GZIP_SUFFIX)

    def _gzip(self, args: list[str], data: bytes) -> bytes:
        result = subprocess.run(
            [self.gzip_executable, *args],
            input=data,
            capture_output=True,
            check=True,
            timeout=_GZIP_TIMEOUT_SECONDS,
        )
        return result.stdout

    def temp_path(self, prefix: str, suffix: str) -> str:
        fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=self.temp_dir)
        os.close(fd)
        return path

    def write(self, path: str, data: bytes) -> None:
        if self._compressed(path):
            data = self._gzip(["-c"], data)
        Path(path).write_bytes(data)

    def read_transparent(self, path: str) -> bytes:
        data = Path(path).read_bytes()
        if self._compressed(path) and data.startswith(_GZIP_MAGIC):
            return self._gzip(["-dc"], data)
        return data

    def read_literal(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def delete(self, path: str) -> None:
        Path(path).unlink(missing_ok=True)

    def executable_available(self, name: str) -> bool:
        return shutil.which(name) is not None


def save_index(path: str, index: dict[str, Any], fs: FileSystem | None = None) -> None:
    """
    Save an index document as JSON.

    Args:
        path: Destination. A ``.gz`` path is stored compressed.
        index: JSON-serializable index data.
        fs: File system to write through.
    """
    fs = fs or GzipFileSystem()
    fs.write(path, json.dumps(index, ensure_ascii=False).encode("utf-8"))
    logger.debug("Saved index", extra={"path": path, "entries": len(index)})


def load_index(path: str, fs: FileSystem | None = None) -> dict[str, Any] | None:
    """
    Load an index document saved by save_index.

    Args:
        path: Index path.
        fs: File system to read through.

    Returns:
        The index data, or None if the file does not exist.

    Raises:
        ValueError: If the file is not a valid index.
    """
    fs = fs or GzipFileSystem()
    try:
        data = fs.read_transparent(path)
    except FileNotFoundError:
        return None
    try:
        index = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Invalid index file {path}: {e}")
    if not isinstance(index, dict):
        raise ValueError(f"Invalid index file {path}: expected an object")
    return index
