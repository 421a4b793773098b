"""
Binary search over a sorted, delimiter separated byte buffer.

The buffer is searched by byte offset rather than by record number: every
probe is snapped to the record that encloses it before its key field is
compared. Keys are compared as raw bytes.
"""

import sys
from typing import Callable, Optional, Tuple

from delimited_line_tools.search.records import (
    RECORD_SEPARATOR,
    next_record_start,
    record_key,
    resolve_line,
)

STRATEGIES = ("scan", "bisect")


def _preview(data: bytes) -> str:
    return data[:50].decode("utf-8", errors="replace")


def bisect_records(
    buffer,
    is_past: Callable[[bytes], bool],
    delimiter: bytes = b"\t",
    field_index: int = 0,
    verbose: bool = False,
) -> int:
    """
    Find the start of the first record whose key satisfies is_past.

    is_past must be monotone over the database order: False for a leading
    run of records and True for every record after that.

    Args:
        buffer: Sorted database (bytes, mmap, ...)
        is_past: Predicate applied to each probed key
        delimiter: Single byte field delimiter
        field_index: 0-based key field index
        verbose: If True, print probe info to stderr

    Returns:
        Start offset of the first record satisfying is_past, or len(buffer)
    """
    lo, hi = 0, len(buffer)

    iterations = 0
    while lo < hi:
        iterations += 1
        mid = (lo + hi) // 2

        # lo is always a record start, so the enclosing record starts in [lo, hi)
        start, end = resolve_line(buffer, mid)
        key = record_key(buffer, start, end, delimiter, field_index)

        if verbose and iterations <= 10:
            print(
                f"  Binary search iteration {iterations}: "
                f"record at {start} has key '{_preview(key)}'",
                file=sys.stderr,
            )

        if is_past(key):
            hi = start
        else:
            lo = end + 1

    if verbose:
        print(f"  Binary search completed in {iterations} iterations", file=sys.stderr)

    return hi


def lower_bound(
    buffer, query: bytes, delimiter: bytes = b"\t", field_index: int = 0, verbose: bool = False
) -> int:
    """
    Find the first record whose key is not less than query.

    A probed record whose key equals the query stays a candidate, so the
    result is the first record of any run of equal keys.

    Args:
        buffer: Sorted database
        query: Query bytes
        delimiter: Single byte field delimiter
        field_index: 0-based key field index
        verbose: If True, print probe info to stderr

    Returns:
        Record start offset; 0 for an empty buffer, len(buffer) if every key is smaller
    """
    return bisect_records(buffer, lambda key: key >= query, delimiter, field_index, verbose)


def upper_bound(
    buffer,
    query: bytes,
    delimiter: bytes = b"\t",
    field_index: int = 0,
    match_prefix: bool = False,
    verbose: bool = False,
) -> int:
    """
    Find the first record past the group of records matching query.

    For exact matching that is the first key greater than query. For prefix
    matching it is the first key greater than query that does not start with
    it.

    Returns:
        Record start offset, or len(buffer) if the group runs to the end
    """
    if match_prefix:

        def is_past(key):
            return key > query and not key.startswith(query)

    else:

        def is_past(key):
            return key > query

    return bisect_records(buffer, is_past, delimiter, field_index, verbose)


def key_matches(key: bytes, query: bytes, match_prefix: bool) -> bool:
    """Match predicate: prefix containment or byte equality."""
    if match_prefix:
        return key.startswith(query)
    return key == query


def expand_match_range(
    buffer,
    start: int,
    query: bytes,
    delimiter: bytes = b"\t",
    field_index: int = 0,
    match_prefix: bool = False,
) -> Optional[Tuple[int, int]]:
    """
    Walk forward from start while records keep matching query.

    Cost is linear in the number of matching records.

    Args:
        buffer: Sorted database
        start: Record start offset, normally the lower bound of query
        query: Query bytes
        delimiter: Single byte field delimiter
        field_index: 0-based key field index
        match_prefix: If True, match keys starting with query

    Returns:
        Tuple of (start, end) covering every matching record including
        its trailing separator, or None if the record at start does not match
    """
    size = len(buffer)
    cursor = start
    match_end = None

    while cursor < size:
        end = buffer.find(RECORD_SEPARATOR, cursor)
        if end < 0:
            end = size

        key = record_key(buffer, cursor, end, delimiter, field_index)
        if not key_matches(key, query, match_prefix):
            break

        cursor = next_record_start(buffer, end)
        match_end = cursor

    if match_end is None:
        return None

    return start, match_end


def find_match_range(
    buffer,
    query: bytes,
    delimiter: bytes = b"\t",
    field_index: int = 0,
    match_prefix: bool = False,
    strategy: str = "scan",
    verbose: bool = False,
) -> Optional[Tuple[int, int]]:
    """
    Locate the contiguous span of records matching query.

    Args:
        buffer: Sorted database
        query: Query bytes
        delimiter: Single byte field delimiter
        field_index: 0-based key field index
        match_prefix: If True, match keys starting with query
        strategy: 'scan' walks forward from the lower bound,
                  'bisect' runs a second binary search for the upper bound
        verbose: If True, print debug info to stderr

    Returns:
        Tuple of (start, end) or None if nothing matches

    Raises:
        ValueError: If strategy is unknown
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown search strategy: {strategy}")

    if len(buffer) == 0:
        return None

    start = lower_bound(buffer, query, delimiter, field_index, verbose)

    if strategy == "scan":
        match_range = expand_match_range(
            buffer, start, query, delimiter, field_index, match_prefix
        )
    else:
        end = upper_bound(buffer, query, delimiter, field_index, match_prefix, verbose)
        match_range = (start, end) if start < end else None

    if verbose:
        if match_range is None:
            print(f"  No match for '{_preview(query)}'", file=sys.stderr)
        else:
            print(
                f"  Match for '{_preview(query)}' spans bytes "
                f"{match_range[0]}-{match_range[1]}",
                file=sys.stderr,
            )

    return match_range


def search_buffer(
    buffer,
    query: bytes,
    delimiter: bytes = b"\t",
    field_index: int = 0,
    match_prefix: bool = False,
    strategy: str = "scan",
    verbose: bool = False,
) -> bytes:
    """
    Return the raw bytes of every record matching query, in database order.

    Returns:
        Matching records with their original separators, or b"" on a miss
    """
    match_range = find_match_range(
        buffer, query, delimiter, field_index, match_prefix, strategy, verbose
    )
    if match_range is None:
        return b""

    start, end = match_range
    return bytes(buffer[start:end])
