"""Search module - Binary search queries over sorted delimited databases."""

from .binary_search import expand_match_range, find_match_range, lower_bound, upper_bound
from .database import open_database
from .records import extract_field, resolve_line

__all__ = [
    "resolve_line",
    "extract_field",
    "lower_bound",
    "upper_bound",
    "expand_match_range",
    "find_match_range",
    "open_database",
]
