"""Top-k module - Streaming selection of the k largest or smallest lines."""

from .topk_lines import BottomK, TopK, process_topk, select_lines

__all__ = ["TopK", "BottomK", "select_lines", "process_topk"]
