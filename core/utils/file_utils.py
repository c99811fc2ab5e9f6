"""
File Tree Model - TreeItem va cac helper thao tac tren tree da build.

TreeItem la Node cua checkable tree:
- path la identity (canonical absolute path), unique trong tree
- children da sort: directories truoc, sau do ten case-insensitive
- checked thuoc ve caller (UI), engine chi doc

Engine KHONG sua cau truc tree sau khi build; caller chi toggle checked.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional


@dataclass
class TreeItem:
    """
    Mot item trong file tree (file hoac folder).

    Attributes:
        label: Ten hien thi (filename/dirname)
        path: Duong dan tuyet doi - identity cua entry
        is_dir: True neu la directory
        children: Children da sort (rong voi files)
        checked: Caller danh dau item nay de aggregate
    """

    label: str
    path: str
    is_dir: bool = False
    children: list["TreeItem"] = field(default_factory=list)
    checked: bool = False

    @property
    def identity(self) -> str:
        return self.path


def child_sort_key(name: str, is_dir: bool) -> tuple[bool, str, str]:
    """Sort key chung: directories truoc, ten case-insensitive, tie-break exact name."""
    return (not is_dir, name.lower(), name)


def iter_tree(item: TreeItem) -> Iterator[TreeItem]:
    """Duyet pre-order (depth-first, theo thu tu children)."""
    stack = [item]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def find_item(tree: TreeItem, path: str) -> Optional[TreeItem]:
    """Tim item theo identity. Tra ve None neu khong co trong tree."""
    for item in iter_tree(tree):
        if item.path == path:
            return item
    return None


def set_checked(tree: TreeItem, path: str, checked: bool) -> bool:
    """
    Set checked flag cho item co identity = path.

    Returns:
        True neu tim thay item
    """
    item = find_item(tree, path)
    if item is None:
        return False
    item.checked = checked
    return True


def get_checked_items(tree: TreeItem) -> list[TreeItem]:
    """
    Lay tat ca items duoc check theo thu tu pre-order.

    Tra ve ca item con cua folder da check - dedup do Aggregator lo.
    """
    return [item for item in iter_tree(tree) if item.checked]


def count_tree(tree: TreeItem) -> tuple[int, int]:
    """Dem (directories, files) trong tree, khong tinh root."""
    dirs = files = 0
    for item in iter_tree(tree):
        if item is tree:
            continue
        if item.is_dir:
            dirs += 1
        else:
            files += 1
    return dirs, files
