"""Count module - Count occurrences of each line."""

from .count_lines import count_lines, process_count

__all__ = ["count_lines", "process_count"]
