#!/usr/bin/env python3
"""
bsq - Binary search query over a sorted, delimiter separated database

Looks up the records whose key field matches a query in a database file that
is sorted by that key. The database is memory-mapped and searched in place,
so lookups take O(log n) probes no matter how large the file is.

Usage Examples:
    # database must be sorted by the key, which is the first column by default
    $ cat database
    1	one
    19	nineteen
    19	another nineteen
    192	one hundred ninety two
    24	twenty four
    3	three
    64	sixty four

    # matches the prefix of the key by default
    $ bsq database 19
    19	nineteen
    19	another nineteen
    192	one hundred ninety two

    # set -w to match the entire key
    $ bsq database -w 19
    19	nineteen
    19	another nineteen

    # no query: read queries from stdin, one per line
    $ printf '24\\n3\\n' | bsq database

    # search by the second column of a space separated file
    $ bsq -d ' ' -f 2 sorted_by_name.txt alice

Requirements:
    - The database must be sorted by the key field in byte order
      (e.g. LC_ALL=C sort -t$'\\t' -k1,1)
    - The database must be a regular, mmap-able file

Performance:
    - O(log n) probes per query, each costing one record scan
    - Matching records are emitted verbatim, including their newlines
"""

import argparse
import sys
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import BinaryIO, Iterable, Iterator, NamedTuple, Optional, Tuple

from delimited_line_tools.search.binary_search import STRATEGIES, search_buffer
from delimited_line_tools.search.database import open_database

DELIMITER_ESCAPES = {"\\t": "\t", "tab": "\t", "space": " "}


class SearchOptions(NamedTuple):
    """Finalized search configuration."""

    delimiter: bytes = b"\t"
    field_index: int = 0  # 0-based
    match_prefix: bool = True
    strategy: str = "scan"
    verbose: bool = False


def log_progress(message, verbose=False):
    """Print message to stderr if verbose is enabled."""
    if verbose:
        print(message, file=sys.stderr)


def parse_delimiter(value: str) -> bytes:
    """
    Convert a command-line delimiter to its single byte form.

    Accepts a literal character or one of the escapes '\\t', 'tab', 'space'.

    Raises:
        ValueError: If the delimiter is not exactly one byte or is a newline
    """
    value = DELIMITER_ESCAPES.get(value, value)
    delimiter = value.encode("utf-8")
    if len(delimiter) != 1:
        raise ValueError(f"delimiter must be a single byte, got {value!r}")
    if delimiter == b"\n":
        raise ValueError("delimiter cannot be the record separator")
    return delimiter


def apply_match_type(match_type: str) -> bool:
    """
    Resolve a match type to the prefix search flag.

    Args:
        match_type: 'exact' or 'prefix'

    Returns:
        True for prefix search, False for exact search

    Raises:
        ValueError: If match_type is unknown
    """
    if match_type == "exact":
        return False

    if match_type == "prefix":
        return True

    raise ValueError(f"Unknown match type: {match_type}")


def build_options(args) -> SearchOptions:
    """
    Validate parsed arguments into SearchOptions.

    Raises:
        ValueError: On any configuration error
    """
    if args.field < 1:
        raise ValueError("key field must be 1 or greater")

    if args.exact and args.match_type == "prefix":
        raise ValueError("-w/--exact conflicts with --matchType prefix")

    match_type = "exact" if args.exact else (args.match_type or "prefix")
    match_prefix = apply_match_type(match_type)

    if args.workers < 1:
        raise ValueError("--workers must be 1 or greater")

    if args.query is not None and args.queries is not None:
        raise ValueError("a query argument cannot be combined with -q/--queries")

    return SearchOptions(
        delimiter=parse_delimiter(args.delimiter),
        field_index=args.field - 1,
        match_prefix=match_prefix,
        strategy=args.strategy,
        verbose=args.verbose,
    )


def encode_query(query: str) -> bytes:
    """Encode a command-line query back to the bytes the shell passed in."""
    return query.encode("utf-8", errors="surrogateescape")


def iter_queries(stream: BinaryIO) -> Iterator[bytes]:
    """
    Yield one query per line of a binary stream.

    The trailing '\\n' (and a '\\r' before it) is removed; everything else,
    including surrounding spaces, is part of the query.
    """
    for line in stream:
        if line.endswith(b"\n"):
            line = line[:-1]
            if line.endswith(b"\r"):
                line = line[:-1]
        yield line


def run_query(buffer, query: bytes, options: SearchOptions, output: BinaryIO) -> int:
    """
    Search a single query and write matching records to output.

    Returns:
        Number of bytes written (0 when nothing matched)
    """
    data = search_buffer(
        buffer,
        query,
        options.delimiter,
        options.field_index,
        options.match_prefix,
        options.strategy,
        options.verbose,
    )
    if data:
        output.write(data)
    return len(data)


def run_batch(
    buffer,
    queries: Iterable[bytes],
    options: SearchOptions,
    output: BinaryIO,
    workers: int = 1,
) -> Tuple[int, int, int]:
    """
    Search every query independently and write results in query order.

    With workers > 1 queries are searched on a thread pool; results are
    still written in submission order.

    Args:
        buffer: Sorted database
        queries: Iterable of query bytes
        options: Search configuration
        output: Binary output stream
        workers: Number of search threads (default: 1)

    Returns:
        Tuple of (queries_run, queries_matched, bytes_written)
    """
    queries_run = 0
    queries_matched = 0
    bytes_written = 0

    def search(query):
        return search_buffer(
            buffer,
            query,
            options.delimiter,
            options.field_index,
            options.match_prefix,
            options.strategy,
            options.verbose,
        )

    def emit(data):
        nonlocal queries_run, queries_matched, bytes_written
        queries_run += 1
        if data:
            output.write(data)
            queries_matched += 1
            bytes_written += len(data)

    if workers <= 1:
        for query in queries:
            emit(search(query))
        return queries_run, queries_matched, bytes_written

    with ThreadPoolExecutor(max_workers=workers) as executor:
        # Bounded window of pending searches, drained in submission order
        pending = deque()
        max_pending = workers * 4

        for query in queries:
            pending.append(executor.submit(search, query))

            while len(pending) > max_pending or (pending and pending[0].done()):
                emit(pending.popleft().result())

        while pending:
            emit(pending.popleft().result())

    return queries_run, queries_matched, bytes_written


def search_database_file(
    filepath: str,
    query,
    options: SearchOptions,
    output: BinaryIO,
    queries_stream: Optional[BinaryIO] = None,
    workers: int = 1,
) -> Tuple[int, int, int]:
    """
    Map a database file and run a single query or a batch of queries.

    Args:
        filepath: Path to the sorted database
        query: Query bytes, or None to read queries from queries_stream
        options: Search configuration
        output: Binary output stream
        queries_stream: Binary stream of queries, one per line (batch mode)
        workers: Number of search threads for batch mode

    Returns:
        Tuple of (queries_run, queries_matched, bytes_written)
    """
    with open_database(filepath, options.verbose) as buffer:
        if query is not None:
            written = run_query(buffer, query, options, output)
            return 1, int(written > 0), written

        return run_batch(buffer, iter_queries(queries_stream), options, output, workers)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="bsq",
        description=(
            "Binary search for records matching a key in a sorted, "
            "delimiter separated database. The database must be sorted by "
            "the key field and mmap-able."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Prefix match on the first tab separated column
  bsq database.tsv 19

  # Exact match
  bsq -w database.tsv 19

  # Key is the third column of a comma separated file
  bsq -d , -f 3 database.csv alice

  # Batch mode: one query per line from stdin, or from a file
  cut -f1 queries.tsv | bsq -w database.tsv
  bsq -w database.tsv -q queries.txt --workers 4
        """,
    )
    parser.add_argument("database", help="Database file; must be sorted by the key and mmap-able")
    parser.add_argument(
        "query", nargs="?", help="Query; if omitted, queries are read line by line"
    )
    parser.add_argument(
        "-d",
        "--delimiter",
        default="\t",
        help="Field delimiter, a single byte (default: tab; '\\t', 'tab', 'space' accepted)",
    )
    parser.add_argument(
        "-w",
        "--exact",
        action="store_true",
        help="Match the entire key, as opposed to prefix-match",
    )
    parser.add_argument(
        "--matchType",
        dest="match_type",
        choices=["exact", "prefix"],
        default=None,
        help="Match type: prefix (default) or exact",
    )
    parser.add_argument(
        "-f", "--field", type=int, default=1, help="1-based key field (default: 1)"
    )
    parser.add_argument(
        "-q",
        "--queries",
        default=None,
        help="File with one query per line for batch mode, or - for stdin (default: stdin)",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default="scan",
        help="How to find the end of a match group: scan forward (default) "
        "or bisect for the upper bound",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of search threads for batch mode (default: 1)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output to stderr"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the bsq command."""
    args = parse_args(argv)

    try:
        options = build_options(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    output = sys.stdout.buffer
    query = encode_query(args.query) if args.query is not None else None

    try:
        if query is not None:
            stats = search_database_file(args.database, query, options, output)
        elif args.queries not in (None, "-"):
            with open(args.queries, "rb") as queries_stream:
                stats = search_database_file(
                    args.database, None, options, output, queries_stream, args.workers
                )
        else:
            stats = search_database_file(
                args.database, None, options, output, sys.stdin.buffer, args.workers
            )
        output.flush()

    except KeyboardInterrupt:
        print("\n# Interrupted by user", file=sys.stderr)
        sys.exit(1)
    except (IOError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    queries_run, queries_matched, bytes_written = stats
    log_progress(
        f"# {queries_run} queries, {queries_matched} matched, {bytes_written} bytes written",
        options.verbose,
    )


if __name__ == "__main__":
    main()
