"""Global pytest fixtures for testing."""

import contextlib
import os
from pathlib import Path

import dotenv
import pytest

from glean_ingest.storage import FileSystem

with contextlib.suppress(OSError):
    dotenv.load_dotenv()

FIXED_NOW = 1_700_000_000.0


class MockFileSystem(FileSystem):
    """In-memory file system for probe and index tests."""

    def __init__(
        self,
        compress: bool = True,
        executables: tuple[str, ...] = ("gzip",),
        fail_on: str | None = None,
    ):
        self.compress = compress
        self.executables = set(executables)
        self.fail_on = fail_on
        self.files: dict[str, bytes] = {}
        self.created: list[str] = []
        self.calls: list[str] = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation == self.fail_on:
            raise OSError(f"{operation} failed")

    @staticmethod
    def _scramble(data: bytes) -> bytes:
        return b"GZ" + data[::-1]

    def temp_path(self, prefix: str, suffix: str) -> str:
        self._check("temp_path")
        path = f"/mock/{prefix}{len(self.created)}{suffix}"
        self.files[path] = b""
        self.created.append(path)
        return path

    def write(self, path: str, data: bytes) -> None:
        self._check("write")
        self.files[path] = self._scramble(data) if self.compress else data

    def read_transparent(self, path: str) -> bytes:
        self._check("read_transparent")
        data = self.files[path]
        if self.compress:
            return data[2:][::-1]
        return data

    def read_literal(self, path: str) -> bytes:
        self._check("read_literal")
        return self.files[path]

    def delete(self, path: str) -> None:
        self._check("delete")
        self.files.pop(path, None)

    def executable_available(self, name: str) -> bool:
        return name in self.executables


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """Provide an in-memory file system that compresses on write."""
    return MockFileSystem()


@pytest.fixture
def make_fs() -> type[MockFileSystem]:
    """Provide the in-memory file system class for custom setups."""
    return MockFileSystem


@pytest.fixture
def fixed_clock():
    """Clock pinned to a known instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def temp_dir(tmp_path: Path) -> str:
    """Isolated temp directory for real file system probes."""
    path = tmp_path / "probe"
    path.mkdir()
    return os.fspath(path)
