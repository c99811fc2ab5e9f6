"""
File reading cho token counting va aggregation.

Functions:
- file_fingerprint(): (size, mtime_ns) de invalidate cache khi file thay doi
- read_file_content(): Doc toi da max_bytes, decode utf-8 (replace), danh dau truncated
- estimate_file_tokens(): Doc + estimate, dung lam loader cho TokenCache

Moi loi I/O duoc chuyen thanh IOFailure de caller co the phan biet
voi Cancelled va cac loi lap trinh.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from config.engine_settings import DEFAULT_MAX_FILE_BYTES
from core.encoders import TokenEstimator
from core.errors import IOFailure

Fingerprint = Tuple[int, int]
PathLike = Union[str, Path]


@dataclass(frozen=True)
class FileContent:
    """
    Noi dung da doc cua mot file.

    Attributes:
        text: Noi dung (utf-8, ky tu loi duoc thay bang U+FFFD)
        size: Kich thuoc file tren disk (bytes)
        truncated: True neu file dai hon limit va chi doc phan dau
        fingerprint: (size, mtime_ns) tai thoi diem doc
    """

    text: str
    size: int
    truncated: bool
    fingerprint: Fingerprint


def file_fingerprint(path: PathLike) -> Optional[Fingerprint]:
    """
    Lay fingerprint (size, mtime_ns) cua file.

    Returns:
        Tuple fingerprint, hoac None neu stat that bai
    """
    try:
        stat = Path(path).stat()
    except OSError:
        return None
    return (stat.st_size, stat.st_mtime_ns)


def read_file_content(path: PathLike, max_bytes: int = DEFAULT_MAX_FILE_BYTES) -> FileContent:
    """
    Doc noi dung file, toi da max_bytes.

    Doc max_bytes + 1 de biet file co dai hon limit khong ma khong can
    tin vao st_size (file co the dang duoc ghi).

    Args:
        path: Duong dan file
        max_bytes: So bytes toi da duoc giu lai

    Returns:
        FileContent

    Raises:
        IOFailure: Khong mo/doc duoc file
    """
    file_path = Path(path)
    try:
        with open(file_path, "rb") as f:
            stat = os.fstat(f.fileno())
            data = f.read(max_bytes + 1)
    except OSError as e:
        raise IOFailure(str(file_path), e.strerror or str(e)) from e

    truncated = len(data) > max_bytes
    if truncated:
        data = data[:max_bytes]

    return FileContent(
        text=data.decode("utf-8", errors="replace"),
        size=stat.st_size,
        truncated=truncated,
        fingerprint=(stat.st_size, stat.st_mtime_ns),
    )


def estimate_file_tokens(
    path: PathLike,
    estimator: TokenEstimator,
    max_bytes: int = DEFAULT_MAX_FILE_BYTES,
) -> int:
    """
    Doc file (toi da max_bytes) va estimate tokens.

    Dung lam loader cho TokenCache: raise IOFailure neu doc that bai,
    cache se chuyen entry sang FAILED.
    """
    content = read_file_content(path, max_bytes)
    return estimator.estimate(content.text)
