"""Group module - Group lines by their first field, or un-group them."""

from .group_lines import group_hashed, group_sorted, process_group, ungroup

__all__ = ["group_sorted", "group_hashed", "ungroup", "process_group"]
