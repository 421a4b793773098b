#!/usr/bin/env python3
"""
line-topk - Print only the top-k (or bottom-k) lines by a field

Streams the input once and keeps at most k candidates in a bounded heap, so
memory does not grow with the input. By default values are compared by the
lexicographic order of their bytes.

Usage Examples:
    $ cat input
    a	3
    b	10
    c	2
    d	7

    # two largest by byte order of the second column ("7" > "3" > "2" > "10")
    $ line-topk -k 2 2 input
    d	7
    a	3

    # two largest by integer value of the second column
    $ line-topk -k 2 -i 2 input
    b	10
    d	7

    # two smallest (-r) by float value
    $ line-topk -k 2 -f -r 2 input
    c	2
    a	3

Output order: top-k from largest to smallest, bottom-k from smallest to
largest. Equal values are ordered by the whole line.

Performance:
    - Time Complexity: O(N log k) for N input lines
    - Space Complexity: O(k)
"""

import argparse
import heapq
import math
import re
import sys
from typing import Any, Callable, Iterable, List, Optional, TextIO, Tuple

from delimited_line_tools.count.count_lines import open_input, strip_newline

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Plain ASCII numerals only: no whitespace, underscores or non-ASCII digits
INT_PATTERN = re.compile(r"[+-]?[0-9]+\Z")
FLOAT_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)\Z",
    re.IGNORECASE | re.ASCII,
)

COMPARE_TYPES = ("byte", "char", "int", "float")


class Reverse:  # pylint: disable=too-few-public-methods
    """Inverts ordering so heapq's min-heap behaves as a max-heap."""

    __slots__ = ("item",)

    def __init__(self, item):
        self.item = item

    def __lt__(self, other):
        return other.item < self.item

    def __eq__(self, other):
        return self.item == other.item


class TopK:
    """Keeps the k largest items pushed so far (min-heap of size k)."""

    def __init__(self, k: int):
        if k <= 0:
            raise ValueError("k must be positive")
        self.k = k
        self.heap: List[Any] = []

    def push(self, item) -> None:
        if len(self.heap) < self.k:
            heapq.heappush(self.heap, item)
        elif self.heap[0] < item:
            heapq.heapreplace(self.heap, item)

    def __len__(self) -> int:
        return len(self.heap)

    def to_sorted_list(self) -> List[Any]:
        """Items from largest to smallest."""
        return sorted(self.heap, reverse=True)


class BottomK:
    """Keeps the k smallest items pushed so far (max-heap of size k)."""

    def __init__(self, k: int):
        if k <= 0:
            raise ValueError("k must be positive")
        self.k = k
        self.heap: List[Reverse] = []

    def push(self, item) -> None:
        if len(self.heap) < self.k:
            heapq.heappush(self.heap, Reverse(item))
        elif item < self.heap[0].item:
            heapq.heapreplace(self.heap, Reverse(item))

    def __len__(self) -> int:
        return len(self.heap)

    def to_sorted_list(self) -> List[Any]:
        """Items from smallest to largest."""
        return sorted(entry.item for entry in self.heap)


def byte_parser(token: str) -> bytes:
    return token.encode("utf-8", errors="surrogateescape")


def char_parser(token: str) -> str:
    return token


def int64_parser(token: str) -> int:
    if not INT_PATTERN.match(token):
        raise ValueError(f"cannot parse {token!r} into a 64-bit integer")
    value = int(token)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"cannot parse {token!r} into a 64-bit integer")
    return value


def float64_parser(token: str) -> Tuple[bool, float]:
    """Parse a float; NaN orders above every number."""
    if not FLOAT_PATTERN.match(token):
        raise ValueError(f"cannot parse {token!r} into a float")
    value = float(token)
    if math.isnan(value):
        return (True, 0.0)
    return (False, value)


PARSERS = {
    "byte": byte_parser,
    "char": char_parser,
    "int": int64_parser,
    "float": float64_parser,
}


def resolve_compare_type(char_compare: bool, float_compare: bool, int_compare: bool) -> str:
    """
    Pick the compare type from the -c / -f / -i flags.

    Raises:
        ValueError: If more than one flag is set
    """
    selected = [
        name
        for name, flag in (("char", char_compare), ("float", float_compare), ("int", int_compare))
        if flag
    ]
    if len(selected) > 1:
        raise ValueError("Cannot specify more than one of -c, -f, -i")
    return selected[0] if selected else "byte"


def select_lines(
    lines: Iterable[str],
    k: int,
    field_index: int = 0,
    field_delim: str = "\t",
    compare_type: str = "byte",
    reverse: bool = False,
    warn: Optional[TextIO] = None,
) -> List[str]:
    """
    Select the top-k (or bottom-k with reverse) lines by one field.

    Args:
        lines: Input lines
        k: Number of lines to keep; 0 selects nothing
        field_index: 0-based field to compare by
        field_delim: Field delimiter (default: tab)
        compare_type: 'byte', 'char', 'int' or 'float'
        reverse: If True, keep the k smallest
        warn: Stream for skipped-line warnings (default: stderr)

    Returns:
        Selected lines without trailing newlines, in output order

    Raises:
        ValueError: If a value cannot be parsed for int / float compare
    """
    if k == 0:
        return []

    if warn is None:
        warn = sys.stderr

    parser: Callable[[str], Any] = PARSERS[compare_type]
    container = BottomK(k) if reverse else TopK(k)

    for linenum, line in enumerate(lines, 1):
        line = strip_newline(line)
        fields = line.split(field_delim)
        if field_index >= len(fields):
            print(f"{linenum}: col {field_index + 1} does not exist; skipping", file=warn)
            continue
        container.push((parser(fields[field_index]), line))

    return [line for _, line in container.to_sorted_list()]


def process_topk(
    input_path: str,
    k: int,
    field_index: int = 0,
    field_delim: str = "\t",
    compare_type: str = "byte",
    reverse: bool = False,
    output: Optional[TextIO] = None,
    buffer_size: int = 1024 * 1024,
) -> int:
    """
    Run top-k selection over a file (or stdin) and write the selected lines.

    Returns:
        Number of lines written
    """
    if output is None:
        output = sys.stdout

    with open_input(input_path, buffer_size) as input_fh:
        selected = select_lines(input_fh, k, field_index, field_delim, compare_type, reverse)

    for line in selected:
        output.write(line + "\n")

    return len(selected)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="line-topk",
        description=(
            "Print only top-k records. By default, it compares by "
            "lexicographic order of byte-values."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s 10 input.tsv
  %(prog)s -k 3 -i 10 input.tsv
  %(prog)s -k 2 -f -r 5 - < input.tsv
        """,
    )
    parser.add_argument("k", type=int, help="Number of records to keep")
    parser.add_argument(
        "input", nargs="?", default="-", help="Input file; if omitted or -, read from stdin"
    )
    parser.add_argument(
        "-t", "--field-delimiter", default="\t", help="Field delimiter (default: tab)"
    )
    parser.add_argument(
        "-k", "--key", type=int, default=1, help="Compare by the given 1-based field (default: 1)"
    )
    parser.add_argument(
        "-c", "--char", action="store_true", help="Compare by lexicographic order of characters"
    )
    parser.add_argument(
        "-f", "--float", action="store_true", help="Parse values as 64-bit floats to compare"
    )
    parser.add_argument(
        "-i", "--int", action="store_true", help="Parse values as 64-bit integers to compare"
    )
    parser.add_argument(
        "-r", "--reverse", action="store_true", help="Reverse compare operation, i.e., bottom-k"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Command-line interface."""
    args = parse_args(argv)

    try:
        compare_type = resolve_compare_type(args.char, args.float, args.int)
        if args.key < 1:
            raise ValueError("compare field must be 1 or greater")
        if args.k < 0:
            raise ValueError("k cannot be negative")
        if not args.field_delimiter:
            raise ValueError("field delimiter cannot be empty")
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        process_topk(
            args.input,
            args.k,
            field_index=args.key - 1,
            field_delim=args.field_delimiter,
            compare_type=compare_type,
            reverse=args.reverse,
        )
    except KeyboardInterrupt:
        print("\n# Interrupted by user", file=sys.stderr)
        sys.exit(1)
    except (IOError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
