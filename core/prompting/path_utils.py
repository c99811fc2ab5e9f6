"""
Path Utilities - Single source of truth cho viec hien thi duong dan.

path_for_display() quyet dinh path nao xuat hien trong file headers
cua combined text: absolute (mac dinh) hoac relative tu workspace root.
"""

from pathlib import Path
from typing import Optional, Union


def path_for_display(
    path: Union[str, Path],
    workspace_root: Optional[Union[str, Path]],
    use_relative_paths: bool,
) -> str:
    """
    Tra ve path de hien thi trong header.

    Khi use_relative_paths=True va workspace_root duoc cung cap, tra ve path
    tuong doi (posix) tu workspace root. Fallback: absolute path.

    Args:
        path: Duong dan file/dir
        workspace_root: Workspace root (None neu khong co)
        use_relative_paths: True = xuat relative, False = xuat absolute

    Returns:
        Path string de dung trong output
    """
    if not use_relative_paths or not workspace_root:
        return str(path)
    try:
        # Khong resolve path cua file: symlinked file giu vi tri trong tree
        file_path = Path(path)
        if not file_path.is_absolute():
            file_path = file_path.resolve()
        root_resolved = Path(workspace_root).resolve()
        rel = file_path.relative_to(root_resolved).as_posix()
        # Root "." -> hien thi ten folder workspace cho ro rang
        if rel == ".":
            return root_resolved.name
        return rel
    except ValueError:
        # Path khong nam trong workspace -> fallback absolute
        return str(path)
