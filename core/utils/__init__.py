"""
Core Utilities Package

Chứa các utility modules:
- file_utils: TreeItem va cac helper duyet/check tree
- file_scanner: Scan filesystem thanh TreeItem
- threading_utils: TaskHandle cho background work
"""

# Re-export commonly used items for convenience
from core.utils.file_utils import (
    TreeItem,
    count_tree,
    find_item,
    get_checked_items,
    iter_tree,
    set_checked,
)

__all__ = [
    "TreeItem",
    "count_tree",
    "find_item",
    "get_checked_items",
    "iter_tree",
    "set_checked",
]
