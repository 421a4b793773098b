"""
Read-only memory mapping of a sorted database file.
"""

import mmap
import os
import sys
from contextlib import contextmanager


@contextmanager
def open_database(filepath: str, verbose: bool = False):
    """
    Map a database file read-only for the duration of a with block.

    Zero-length files cannot be mapped, so they are served as b"".

    Args:
        filepath: Path to the sorted database file
        verbose: If True, print mapping info to stderr

    Yields:
        mmap.mmap (or b"" for an empty file)

    Raises:
        OSError: If the file cannot be opened or mapped
    """
    with open(filepath, "rb") as fp:
        file_size = os.fstat(fp.fileno()).st_size

        if verbose:
            print(f"Mapping database: {filepath} ({file_size} bytes)", file=sys.stderr)

        if file_size == 0:
            yield b""
            return

        mapped = mmap.mmap(fp.fileno(), 0, access=mmap.ACCESS_READ)
        try:
            yield mapped
        finally:
            mapped.close()
