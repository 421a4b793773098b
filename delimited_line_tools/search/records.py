"""
Record and field boundary helpers for sorted delimited databases.

A database is a read-only byte buffer of newline separated records. Every
helper here works on offsets into that buffer so nothing is copied until a
key has to be compared. The separator byte belongs to the record it
terminates.
"""

from typing import Tuple

RECORD_SEPARATOR = b"\n"


def resolve_line(buffer, offset: int) -> Tuple[int, int]:
    """
    Find the record enclosing a byte offset.

    Args:
        buffer: Bytes-like object supporting find/rfind (bytes, mmap, ...)
        offset: Any byte offset in [0, len(buffer)]; out of range values are clamped

    Returns:
        Tuple of (start, end) where start is the first byte of the record and
        end is the offset of its separator, or len(buffer) for the last record

    Examples:
        buffer = b"a\\nab\\nabc"
        resolve_line(buffer, 3) -> (2, 4)
        resolve_line(buffer, 4) -> (2, 4)   # separator belongs to "ab"
        resolve_line(buffer, 5) -> (5, 8)
    """
    size = len(buffer)
    offset = min(max(offset, 0), size)

    # Separator strictly before offset marks where this record starts
    start = buffer.rfind(RECORD_SEPARATOR, 0, offset) + 1

    end = buffer.find(RECORD_SEPARATOR, start)
    if end < 0:
        end = size

    return start, end


def next_record_start(buffer, end: int) -> int:
    """Offset just past the separator at `end`, or len(buffer) for the last record."""
    return min(end + 1, len(buffer))


def extract_field(
    buffer, start: int, end: int, delimiter: bytes, field_index: int
) -> Tuple[int, int]:
    """
    Locate a field inside the record [start, end).

    Fields are counted from 0. A record with fewer delimiters than
    field_index requires has no such field; its key is then the empty span
    at the record end so that it sorts before every non-empty key.

    Args:
        buffer: Bytes-like object holding the record
        start: Record start offset
        end: Record end offset (exclusive, separator not included)
        delimiter: Single byte field delimiter
        field_index: 0-based field index

    Returns:
        Tuple of (key_start, key_end)
    """
    key_start = start
    for _ in range(field_index):
        pos = buffer.find(delimiter, key_start, end)
        if pos < 0:
            return end, end
        key_start = pos + 1

    key_end = buffer.find(delimiter, key_start, end)
    if key_end < 0:
        key_end = end

    return key_start, key_end


def record_key(buffer, start: int, end: int, delimiter: bytes, field_index: int) -> bytes:
    """Return the key field bytes of the record [start, end)."""
    key_start, key_end = extract_field(buffer, start, end, delimiter, field_index)
    return bytes(buffer[key_start:key_end])
