"""
Delimited Line Tools

A Python package of line-oriented utilities for delimiter separated text.
Provides an in-place binary search query engine for large sorted databases,
plus counting, grouping and top-k selection of lines.

Modules:
    search: Binary search queries over sorted, memory-mapped databases (bsq)
    count: Count occurrences of each line
    group: Group / un-group (key, value) lines
    topk: Streaming top-k / bottom-k selection
"""

__version__ = "1.0.0"

from .count.count_lines import count_lines
from .group.group_lines import group_hashed, group_sorted, ungroup
from .search.binary_search import find_match_range, lower_bound, search_buffer, upper_bound
from .topk.topk_lines import select_lines

__all__ = [
    "lower_bound",
    "upper_bound",
    "find_match_range",
    "search_buffer",
    "count_lines",
    "group_sorted",
    "group_hashed",
    "ungroup",
    "select_lines",
    "__version__",
]
