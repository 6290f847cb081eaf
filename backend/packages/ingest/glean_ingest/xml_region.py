"""
Encoding-aware XML region decoding.

Fetched documents often declare their real character encoding inside the
content (``<?xml version="1.0" encoding="ISO-8859-1"?>``). The declaration is
honored before the text reaches a structural parser. A byte order mark, or
the UTF-16/UTF-32 layout of a leading ``<?``, takes precedence over the
declaration.
"""

import codecs
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from xml.etree import ElementTree as ET

from bs4.dammit import EncodingDetector

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)

# How "<?" is laid out in multi-byte encodings written without a byte order mark
_UNMARKED_LAYOUTS: dict[bytes, str] = {
    b"\x00\x00\x00<": "utf-32-be",
    b"<\x00\x00\x00": "utf-32-le",
    b"\x00<\x00?": "utf-16-be",
    b"<\x00?\x00": "utf-16-le",
}


@dataclass(frozen=True)
class DecodedRegion:
    """Character-decoded span of a document."""

    text: str
    encoding: str
    declared_encoding: str | None = None
    start: int = 0
    end: int = 0


@dataclass(frozen=True)
class ParsedRegion:
    """Structural parse result paired with the region it came from."""

    document: Any
    region: DecodedRegion

    @property
    def encoding(self) -> str:
        return self.region.encoding


def sniff_encoding(data: bytes) -> tuple[bytes, str | None]:
    """
    Detect an encoding from the leading bytes alone.

    Args:
        data: Raw document bytes.

    Returns:
        The data without any byte order mark, and the encoding the mark or
        the layout of a leading ``<?`` implies (None if neither is present).
    """
    if data[:4] == codecs.BOM_UTF32_LE:
        # EncodingDetector reads this mark as UTF-16LE followed by a NUL
        return data[4:], "utf-32-le"
    stripped, bom = EncodingDetector.strip_byte_order_mark(data)
    if bom:
        return stripped, lookup_codec(bom)
    return data, _UNMARKED_LAYOUTS.get(data[:4])


def find_declared_encoding(data: bytes | str, scan_limit: int | None = None) -> str | None:
    """
    Find the encoding named in an XML declaration at the start of the data.

    Args:
        data: Raw bytes or text.
        scan_limit: Number of leading bytes/characters to scan.

    Returns:
        The declared name, lowercased, or None.
    """
    head = data[: scan_limit or settings.declaration_scan_bytes]
    if isinstance(head, bytes):
        head, sniffed = sniff_encoding(head)
        if sniffed:
            head = head.decode(sniffed, errors="ignore")
    return EncodingDetector.find_declared_encoding(head, search_entire_document=True)


def lookup_codec(name: str) -> str | None:
    """
    Return the canonical name of a text codec, or None if the runtime lacks it.
    """
    try:
        codec = codecs.lookup(name).name
        # Rejects bytes-to-bytes codecs such as "hex"
        b"".decode(codec)
    except (LookupError, ValueError):
        return None
    return codec


def _raw_bytes(text: str) -> bytes | None:
    # Text holding undecoded bytes has only code points below 256
    try:
        return text.encode("latin-1")
    except UnicodeEncodeError:
        return None


def decode_region(data: bytes | str, start: int = 0, end: int | None = None) -> DecodedRegion:
    """
    Decode a region of a document, honoring its XML encoding declaration.

    Bytes are decoded with the encoding their byte order mark implies, then
    with the declared codec when the runtime supports it, and with the default
    encoding otherwise. Text is left alone unless it still
    carries raw bytes that decode cleanly with the declared codec. Unknown
    encoding names are ignored.

    Args:
        data: Document bytes or text.
        start: Start offset of the region.
        end: End offset of the region (defaults to the end of the data).

    Returns:
        The decoded region. Its ``end`` is the offset in the decoded text.
    """
    segment = data[start:end]
    declared = find_declared_encoding(segment)
    codec = lookup_codec(declared) if declared else None
    if declared and codec is None:
        logger.debug("Ignoring unknown declared encoding", extra={"encoding": declared})

    if isinstance(segment, bytes):
        body, sniffed = sniff_encoding(segment)
        if sniffed and codec and not sniffed.startswith(codec):
            logger.debug(
                "Byte order overrides declared encoding",
                extra={"encoding": sniffed, "declared": declared},
            )
        encoding = sniffed or codec or lookup_codec(settings.default_encoding) or "utf-8"
        text = body.decode(encoding, errors="replace")
    else:
        encoding = lookup_codec(settings.default_encoding) or "utf-8"
        text = segment
        raw = _raw_bytes(segment) if codec else None
        if raw is not None:
            try:
                text = raw.decode(codec)
                encoding = codec
            except UnicodeError:
                logger.debug(
                    "Text is already decoded; keeping it",
                    extra={"encoding": declared},
                )

    return DecodedRegion(
        text=text,
        encoding=encoding,
        declared_encoding=declared,
        start=start,
        end=start + len(text),
    )


def parse_region(
    data: bytes | str,
    start: int = 0,
    end: int | None = None,
    parser: Callable[[str], Any] | None = None,
) -> ParsedRegion:
    """
    Decode a region and hand it to a structural XML parser.

    Args:
        data: Document bytes or text.
        start: Start offset of the region.
        end: End offset of the region.
        parser: Callable taking the decoded text. Defaults to
            ``xml.etree.ElementTree.fromstring``.

    Returns:
        The parser's result with the decoded region.

    Raises:
        Whatever the parser raises on malformed input.
    """
    region = decode_region(data, start, end)
    document = (parser or ET.fromstring)(region.text)
    return ParsedRegion(document=document, region=region)
