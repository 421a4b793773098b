#!/usr/bin/env python3
"""
line-group - Group (first field, second field) pairs by the first field

By default the input is assumed to be sorted by the first field, so groups
are emitted as soon as the key changes and memory stays bounded by the
largest group.

Usage Examples:
    # sorted input
    $ cat input
    1	a
    1	c
    1	a
    2	b

    $ line-group input
    1	a,c,a
    2	b

    # -u keeps unique tokens only
    $ line-group -u input
    1	a,c
    2	b

    # -m for unsorted input (holds every group in memory)
    $ line-group -m unsorted_input

    # -i un-groups, the inverse operation
    $ cat grouped
    1	a,c,a
    2	b

    $ line-group -i grouped
    1	a
    1	c
    1	a
    2	b

Lines with fewer than two fields are skipped. Only the first two fields of
each line are used.
"""

import argparse
import sys
from collections import OrderedDict
from typing import Iterable, Iterator, List, Optional, TextIO, Tuple

from delimited_line_tools.count.count_lines import open_input, strip_newline

OUTPUT_DELIMITER = "\t"


def split_pair(line: str, field_delim: str) -> Optional[Tuple[str, str]]:
    """
    Split a line into its first two fields.

    Returns:
        Tuple of (key, value), or None if the line has fewer than two fields
    """
    fields = strip_newline(line).split(field_delim, 2)
    if len(fields) < 2:
        return None
    return fields[0], fields[1]


def unique_tokens(tokens: List[str]) -> List[str]:
    """Sorted, de-duplicated tokens."""
    return sorted(set(tokens))


def format_group(key: str, tokens: List[str], token_delim: str, unique: bool) -> str:
    if unique:
        tokens = unique_tokens(tokens)
    return f"{key}{OUTPUT_DELIMITER}{token_delim.join(tokens)}\n"


def group_sorted(
    lines: Iterable[str], field_delim: str = "\t", token_delim: str = ",", unique: bool = False
) -> Iterator[str]:
    """
    Group consecutive lines sharing the same first field.

    A key that reappears after a different key starts a new group, so
    unsorted input yields repeated keys.

    Yields:
        Output lines '<key>\\t<token><token_delim><token>...'
    """
    prev_key = None
    tokens: List[str] = []

    for line in lines:
        pair = split_pair(line, field_delim)
        if pair is None:
            continue
        key, value = pair

        if key != prev_key:
            if prev_key is not None:
                yield format_group(prev_key, tokens, token_delim, unique)
            prev_key = key
            tokens = []
        tokens.append(value)

    if prev_key is not None:
        yield format_group(prev_key, tokens, token_delim, unique)


def group_hashed(
    lines: Iterable[str], field_delim: str = "\t", token_delim: str = ",", unique: bool = False
) -> Iterator[str]:
    """
    Group lines by first field regardless of input order.

    Groups are emitted in order of first appearance once the input is exhausted.
    """
    groups: "OrderedDict[str, List[str]]" = OrderedDict()

    for line in lines:
        pair = split_pair(line, field_delim)
        if pair is None:
            continue
        key, value = pair
        if key not in groups:
            groups[key] = []
        groups[key].append(value)

    for key, tokens in groups.items():
        yield format_group(key, tokens, token_delim, unique)


def ungroup(
    lines: Iterable[str], field_delim: str = "\t", token_delim: str = ",", unique: bool = False
) -> Iterator[str]:
    """
    Split '<key>\\t<tok>,<tok>' lines back into one '<key>\\t<tok>' line per token.

    With unique, each line's tokens are sorted and de-duplicated first.
    """
    for line in lines:
        pair = split_pair(line, field_delim)
        if pair is None:
            continue
        key, value = pair

        tokens = value.split(token_delim)
        if unique:
            tokens = unique_tokens(tokens)

        for token in tokens:
            yield f"{key}{OUTPUT_DELIMITER}{token}\n"


def process_group(
    input_path: str = "-",
    output: Optional[TextIO] = None,
    field_delim: str = "\t",
    token_delim: str = ",",
    inverse: bool = False,
    unique: bool = False,
    hashmap: bool = False,
    buffer_size: int = 1024 * 1024,
) -> int:
    """
    Run group / ungroup over a file (or stdin).

    Args:
        input_path: Input file, or '-' for stdin
        output: Text stream for results (default: stdout)
        field_delim: Input field delimiter (default: tab)
        token_delim: Token delimiter inside a group (default: ',')
        inverse: If True, un-group instead of grouping
        unique: If True, keep unique tokens only
        hashmap: If True, group unsorted input in memory
        buffer_size: I/O buffer size in bytes (default: 1MB)

    Returns:
        Number of output lines written
    """
    if output is None:
        output = sys.stdout

    if inverse:
        operation = ungroup
    elif hashmap:
        operation = group_hashed
    else:
        operation = group_sorted

    lines_written = 0
    with open_input(input_path, buffer_size) as input_fh:
        for out_line in operation(input_fh, field_delim, token_delim, unique):
            output.write(out_line)
            lines_written += 1

    return lines_written


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="line-group",
        description=(
            "Group (first field, second field) of each line by the first field. "
            "By default, the input is assumed to be sorted by the first field."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sort input | %(prog)s
  %(prog)s -u input
  %(prog)s -m unsorted_input
  %(prog)s -i -u grouped_input
        """,
    )
    parser.add_argument(
        "input", nargs="?", default="-", help="Input file; if omitted or -, read from stdin"
    )
    parser.add_argument(
        "-f", "--field-delimiter", default="\t", help="Field delimiter (default: tab)"
    )
    parser.add_argument(
        "-t", "--token-delimiter", default=",", help="Token delimiter for output (default: ',')"
    )
    parser.add_argument(
        "-i", "--inverse", action="store_true", help="Inverse operation, un-groups the input"
    )
    parser.add_argument(
        "-u",
        "--unique",
        action="store_true",
        help="Keep unique tokens after grouping / before un-grouping",
    )
    parser.add_argument(
        "-m",
        "--hashmap",
        action="store_true",
        help="For unsorted input, group in memory (more time & space)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Command-line interface."""
    args = parse_args(argv)

    if not args.field_delimiter or not args.token_delimiter:
        print("Error: delimiters cannot be empty", file=sys.stderr)
        sys.exit(1)

    try:
        process_group(
            args.input,
            field_delim=args.field_delimiter,
            token_delim=args.token_delimiter,
            inverse=args.inverse,
            unique=args.unique,
            hashmap=args.hashmap,
        )
    except KeyboardInterrupt:
        print("\n# Interrupted by user", file=sys.stderr)
        sys.exit(1)
    except (IOError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
