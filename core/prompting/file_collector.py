"""
File Collector - Expand checked items thanh danh sach file leaves.

Aggregator goi expand_checked_items() MOT LAN truoc moi I/O:
- Checked directory -> moi file descendant (depth-first, theo thu tu tree)
- Checked file -> chinh no
- Dedup theo identity, lan xuat hien dau tien duoc giu
"""

from pathlib import Path
from typing import Iterable, Optional

from core.exclusion_policy import ExclusionPolicy, ScanEntry
from core.utils.file_utils import TreeItem


def expand_checked_items(
    items: Iterable[TreeItem],
    policy: Optional[ExclusionPolicy] = None,
) -> list[TreeItem]:
    """
    Expand checked items thanh list file items da dedup.

    Policy (neu co) duoc ap dung lai cho cac descendants; directory bi
    exclude thi ca subtree bi bo qua. Item duoc check truc tiep khong bi
    loc lai vi no da nam trong tree.

    Args:
        items: Checked items theo thu tu caller muon
        policy: ExclusionPolicy ap dung lai luc expand (optional)

    Returns:
        List file TreeItem theo thu tu expansion, moi identity xuat hien 1 lan
    """
    seen: set[str] = set()
    files: list[TreeItem] = []

    def add(item: TreeItem) -> None:
        if item.path in seen:
            return
        seen.add(item.path)
        files.append(item)

    for item in items:
        if not item.is_dir:
            add(item)
            continue

        stack = list(reversed(item.children))
        while stack:
            current = stack.pop()
            if policy is not None and not policy.include(
                ScanEntry(path=Path(current.path), is_dir=current.is_dir)
            ):
                continue
            if current.is_dir:
                stack.extend(reversed(current.children))
            else:
                add(current)

    return files
