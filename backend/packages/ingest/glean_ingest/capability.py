"""
Transparent decompression capability probe.

Whether the storage layer really compresses ``.gz`` files on write and
decompresses them on read is decided empirically: a synthetic payload is
written to a temporary ``.gz`` file and read back both transparently and
literally. The answer is cached for the lifetime of the process.
"""

import subprocess
import threading
from collections.abc import Callable
from enum import Enum

from .config import IngestSettings, settings
from .logging_config import get_logger
from .storage import GZIP_SUFFIX, FileSystem, GzipFileSystem

logger = get_logger(__name__)

_PROBE_PREFIX = "gziptest"


class CapabilityFlag(str, Enum):
    """Result of a capability probe."""

    UNKNOWN = "unknown"
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"


class CapabilityCache:
    """
    Single-assignment holder for a capability flag.

    The first call to get() runs the probe under a lock; every later call
    returns the resolved flag without locking. There is no way to reset it.
    """

    def __init__(self) -> None:
        self._flag = CapabilityFlag.UNKNOWN
        self._lock = threading.Lock()

    @property
    def flag(self) -> CapabilityFlag:
        return self._flag

    def get(self, probe: Callable[[], CapabilityFlag]) -> CapabilityFlag:
        """
        Return the cached flag, running the probe if it is still unknown.

        Args:
            probe: Callable deciding the capability.

        Returns:
            SUPPORTED or UNSUPPORTED.
        """
        flag = self._flag
        if flag is not CapabilityFlag.UNKNOWN:
            return flag
        with self._lock:
            if self._flag is CapabilityFlag.UNKNOWN:
                result = probe()
                if result is CapabilityFlag.UNKNOWN:
                    result = CapabilityFlag.UNSUPPORTED
                self._flag = result
            return self._flag


def probe_payload(config: IngestSettings | None = None) -> bytes:
    """Synthetic payload of several thousand distinct bytes."""
    config = config or settings
    return "".join(
        chr(i) for i in range(config.probe_payload_start, config.probe_payload_end)
    ).encode("utf-8")


def probe_gzip_support(
    fs: FileSystem | None = None, config: IngestSettings | None = None
) -> CapabilityFlag:
    """
    Check whether ``.gz`` files are transparently compressed and decompressed.

    The payload must come back intact through the transparent read and must
    differ from the literal read, which proves the stored file was compressed.
    The temporary file is always removed. I/O failures count as unsupported.

    Args:
        fs: File system to probe. Defaults to a GzipFileSystem from settings.
        config: Settings to use.

    Returns:
        SUPPORTED or UNSUPPORTED.
    """
    config = config or settings
    fs = fs or GzipFileSystem(
        gzip_executable=config.gzip_executable,
        transparent=config.transparent_compression,
        temp_dir=config.temp_dir,
    )

    if not fs.executable_available(config.gzip_executable):
        logger.info("gzip executable not found", extra={"executable": config.gzip_executable})
        return CapabilityFlag.UNSUPPORTED

    payload = probe_payload(config)
    path: str | None = None
    try:
        path = fs.temp_path(_PROBE_PREFIX, GZIP_SUFFIX)
        fs.write(path, payload)
        transparent = fs.read_transparent(path)
        literal = fs.read_literal(path)
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("gzip capability probe failed", extra={"error": str(e)})
        return CapabilityFlag.UNSUPPORTED
    finally:
        if path is not None:
            try:
                fs.delete(path)
            except OSError:
                logger.warning("Failed to remove probe file", extra={"path": path})

    supported = transparent == payload and literal != payload
    logger.info("gzip capability probed", extra={"supported": supported})
    return CapabilityFlag.SUPPORTED if supported else CapabilityFlag.UNSUPPORTED


# Process-wide cache
_gzip_cache = CapabilityCache()


def gzip_capability(fs: FileSystem | None = None) -> CapabilityFlag:
    """
    Return the process-wide gzip capability, probing on first use.

    Args:
        fs: File system used for the first probe only.
    """
    return _gzip_cache.get(lambda: probe_gzip_support(fs))


def gzip_supported(fs: FileSystem | None = None) -> bool:
    """Whether compressed on-disk storage can be offered."""
    return gzip_capability(fs) is CapabilityFlag.SUPPORTED


def storage_path(base: str, fs: FileSystem | None = None) -> str:
    """
    Choose the on-disk path for a storage file.

    Args:
        base: Path without compression suffix.
        fs: File system used if the capability has not been probed yet.

    Returns:
        ``base + ".gz"`` when gzip is supported, else ``base``.
    """
    return base + GZIP_SUFFIX if gzip_supported(fs) else base
