"""Embed provenance metadata into PNG files as ``tEXt`` chunks.

A PNG file is an 8-byte signature followed by a sequence of chunks::

    +----------------+----------------+-----------------+----------------+
    | length (4, BE) | type (4 ASCII) | data (length)   | CRC32 (4, BE)  |
    +----------------+----------------+-----------------+----------------+

The CRC covers ``type + data``. The first chunk must be ``IHDR``. Text chunks
are ancillary: decoders that do not understand them skip them, and they never
affect pixel data.

:func:`embed_png_metadata` splices one ``tEXt`` chunk per provenance field
directly after ``IHDR``. Everything else in the file, including the ``IDAT``
chunks, is copied byte for byte. Buffers that are not PNG files are returned
unchanged, since metadata is a best-effort enhancement and never a reason to
fail a save.

Usage Example
-------------
    >>> from blogimage.core.models import ProvenanceRecord
    >>> record = ProvenanceRecord(prompt="sunset", model="gemini-2.5-flash-image")
    >>> tagged = embed_png_metadata(png_bytes, record)
    >>> read_text_chunks(tagged)["Description"]
    'sunset'
"""

from __future__ import annotations

import logging
import struct
import zlib
from collections.abc import Iterator

from .models import ProvenanceRecord

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
TEXT_CHUNK_TYPE = b"tEXt"
MAX_KEYWORD_LENGTH = 79

# length + type + crc
CHUNK_OVERHEAD = 12

SOFTWARE_NAME = "blog-image-generator"
SOURCE_URL = "https://github.com/12-days-of-shipmas-2025/day-2-image-generation-mcp"

# Provenance field -> tEXt keyword, in embedding order.
PROVENANCE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("prompt", "Description"),
    ("model", "AI-Model"),
    ("provider", "AI-Provider"),
    ("format", "Image-Format"),
    ("style", "AI-Style"),
    ("title", "Title"),
    ("generated_at", "Creation-Time"),
)


def build_text_chunk(keyword: str, text: str) -> bytes:
    """Build a complete ``tEXt`` chunk.

    The keyword is cut to 79 characters, stripped and encoded as Latin-1
    (characters outside Latin-1 become ``?``). The text is encoded as UTF-8.

    Args:
        keyword: Chunk keyword, e.g. ``Description``.
        text: Chunk value.

    Returns:
        ``length + type + data + crc`` as bytes.
    """
    safe_keyword = keyword[:MAX_KEYWORD_LENGTH].strip()
    data = safe_keyword.encode("latin-1", errors="replace") + b"\x00" + text.encode("utf-8")
    crc = zlib.crc32(TEXT_CHUNK_TYPE + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + TEXT_CHUNK_TYPE + data + struct.pack(">I", crc)


def build_provenance_chunks(record: ProvenanceRecord) -> list[bytes]:
    """Build the ordered list of ``tEXt`` chunks for a provenance record.

    Empty fields are skipped. ``Software`` and ``Source`` chunks are always
    appended last.
    """
    chunks = []
    for field_name, keyword in PROVENANCE_KEYWORDS:
        value = getattr(record, field_name)
        if value:
            chunks.append(build_text_chunk(keyword, value))
    chunks.append(build_text_chunk("Software", SOFTWARE_NAME))
    chunks.append(build_text_chunk("Source", SOURCE_URL))
    return chunks


def is_png(data: bytes) -> bool:
    return data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE


def embed_png_metadata(data: bytes, record: ProvenanceRecord) -> bytes:
    """Insert provenance ``tEXt`` chunks right after the ``IHDR`` chunk.

    Args:
        data: Encoded PNG file.
        record: Provenance fields to embed.

    Returns:
        A new buffer with the chunks spliced in, or ``data`` itself when it is
        not a PNG file or is too short to contain its declared first chunk.
    """
    if not is_png(data):
        return data

    sig_len = len(PNG_SIGNATURE)
    if len(data) < sig_len + 8:
        logger.warning("PNG buffer is truncated before the first chunk, skipping metadata")
        return data

    (first_length,) = struct.unpack_from(">I", data, sig_len)
    first_end = sig_len + CHUNK_OVERHEAD + first_length
    if first_end > len(data):
        logger.warning("PNG header chunk is truncated, skipping metadata")
        return data

    metadata = b"".join(build_provenance_chunks(record))
    return data[:first_end] + metadata + data[first_end:]


def iter_chunks(data: bytes) -> Iterator[tuple[bytes, bytes, int]]:
    """Iterate over the chunks of a PNG buffer.

    Yields:
        ``(type, data, stored_crc)`` for every complete chunk. Iteration stops
        at the first chunk that runs past the end of the buffer.

    Raises:
        ValueError: If ``data`` does not start with the PNG signature.
    """
    if not is_png(data):
        raise ValueError("Not a PNG file")

    offset = len(PNG_SIGNATURE)
    while offset + 8 <= len(data):
        length, chunk_type = struct.unpack_from(">I4s", data, offset)
        start = offset + 8
        end = start + length
        if end + 4 > len(data):
            return
        (crc,) = struct.unpack_from(">I", data, end)
        yield chunk_type, data[start:end], crc
        offset = end + 4


def read_text_chunks(data: bytes) -> dict[str, str]:
    """Return the ``tEXt`` keyword -> text mapping of a PNG buffer."""
    texts = {}
    for chunk_type, chunk_data, _crc in iter_chunks(data):
        if chunk_type != TEXT_CHUNK_TYPE:
            continue
        keyword, _, text = chunk_data.partition(b"\x00")
        texts[keyword.decode("latin-1")] = text.decode("utf-8", errors="replace")
    return texts
