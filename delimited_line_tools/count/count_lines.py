#!/usr/bin/env python3
"""
line-count - Count occurrences of each line

Input does not need to be sorted. Prints the count followed by the line,
one row per distinct line, in the order lines were first seen.

Usage Examples:
    $ cat input
    three
    one
    two
    three
    two
    three

    $ line-count input
    3	three
    1	one
    2	two

    # Read from stdin, skip empty lines, comma separated output
    $ cut -f2 data.tsv | line-count -s -d , -

Performance:
    - Time Complexity: O(N) for N input lines
    - Space Complexity: O(D) for D distinct lines
"""

import argparse
import io
import sys
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterable, TextIO


def strip_newline(line: str) -> str:
    """Remove a trailing '\\n' or '\\r\\n'."""
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


@contextmanager
def open_input(input_path: str = "-", buffer_size: int = 1024 * 1024):
    """
    Open a file (or stdin for '-') as UTF-8 text split on '\\n' only.

    A lone '\\r' stays part of the line; strip_newline removes the terminator.

    Yields:
        Text stream over the input
    """
    if input_path == "-":
        input_fh = io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8", newline="")
        try:
            yield input_fh
        finally:
            # Leave sys.stdin usable once the wrapper goes away
            input_fh.detach()
    else:
        with open(
            input_path, "r", encoding="utf-8", newline="", buffering=buffer_size
        ) as input_fh:
            yield input_fh


def count_lines(lines: Iterable[str], suppress_empty: bool = False) -> Dict[str, int]:
    """
    Count occurrences of each distinct line.

    Args:
        lines: Iterable of lines (trailing newlines are ignored)
        suppress_empty: If True, empty lines are not counted

    Returns:
        Dictionary mapping line to count, in first-seen order
    """
    counts: Dict[str, int] = defaultdict(int)

    for line in lines:
        line = strip_newline(line)
        if suppress_empty and not line:
            continue
        counts[line] += 1

    return counts


def write_counts(counts: Dict[str, int], output: TextIO, delimiter: str = "\t") -> int:
    """
    Write '<count><delimiter><line>' rows.

    Returns:
        Number of rows written
    """
    for line, count in counts.items():
        output.write(f"{count}{delimiter}{line}\n")
    return len(counts)


def process_count(
    input_path: str = "-",
    output_path: str = "-",
    delimiter: str = "\t",
    suppress_empty: bool = False,
    buffer_size: int = 1024 * 1024,
) -> int:
    """
    Count lines of a file (or stdin) and write the counts.

    Args:
        input_path: Input file, or '-' for stdin
        output_path: Output file, or '-' for stdout
        delimiter: Separator between count and line (default: tab)
        suppress_empty: If True, empty lines are not counted
        buffer_size: I/O buffer size in bytes (default: 1MB)

    Returns:
        Number of distinct lines written
    """
    with open_input(input_path, buffer_size) as input_fh:
        counts = count_lines(input_fh, suppress_empty)

    if output_path == "-":
        return write_counts(counts, sys.stdout, delimiter)

    with open(output_path, "w", encoding="utf-8", newline="", buffering=buffer_size) as output_fh:
        return write_counts(counts, output_fh, delimiter)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="line-count",
        description="Count occurrence of each line. Input does not need to be sorted.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s input.txt
  %(prog)s -s -d , - < input.txt
  %(prog)s input.txt -o counts.tsv
        """,
    )
    parser.add_argument(
        "input", nargs="?", default="-", help="Input file; if omitted or -, read from stdin"
    )
    parser.add_argument(
        "-d", "--delimiter", default="\t", help="Output delimiter (default: tab)"
    )
    parser.add_argument("-s", "--suppress", action="store_true", help="Suppress empty lines")
    parser.add_argument(
        "-o", "--output", default="-", help="Output file, or - for stdout (default: stdout)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print statistics to stderr"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Command-line interface."""
    args = parse_args(argv)

    try:
        distinct = process_count(args.input, args.output, args.delimiter, args.suppress)
    except KeyboardInterrupt:
        print("\n# Interrupted by user", file=sys.stderr)
        sys.exit(1)
    except (IOError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        print(f"# {distinct} distinct lines", file=sys.stderr)


if __name__ == "__main__":
    main()
