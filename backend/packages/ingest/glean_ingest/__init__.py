"""
Glean Ingest Package.

Normalization and capability-detection helpers used while ingesting feeds:
time expression normalization, encoding-aware XML decoding, and the
transparent gzip capability probe.
"""

__version__ = "0.1.0"

from .logging_config import get_logger, init_logging
from .capability import (
    CapabilityCache,
    CapabilityFlag,
    gzip_capability,
    gzip_supported,
    probe_gzip_support,
    storage_path,
)
from .opml import OPMLFeed, generate_opml, parse_opml
from .storage import FileSystem, GzipFileSystem, load_index, save_index
from .timestamps import (
    float_time,
    new_date_for_entry,
    parse_absolute,
    parse_duration,
    parse_simple_iso_8601,
    resolve_time,
)
from .xml_region import DecodedRegion, ParsedRegion, decode_region, parse_region

__all__ = [
    "init_logging",
    "get_logger",
    "float_time",
    "resolve_time",
    "new_date_for_entry",
    "parse_duration",
    "parse_absolute",
    "parse_simple_iso_8601",
    "decode_region",
    "parse_region",
    "DecodedRegion",
    "ParsedRegion",
    "CapabilityFlag",
    "CapabilityCache",
    "probe_gzip_support",
    "gzip_capability",
    "gzip_supported",
    "storage_path",
    "FileSystem",
    "GzipFileSystem",
    "save_index",
    "load_index",
    "OPMLFeed",
    "parse_opml",
    "generate_opml",
]
