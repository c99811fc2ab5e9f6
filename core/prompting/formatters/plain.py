"""
Plain Text Formatter - Render file entries thanh combined context text.

Format cua moi section:
    "\\n\\n--- File: <path> ---\\n\\n" + content      (khi include_header)
    content                                          (khi khong co header)
    "\\n\\n--- Failed to read file: <path> ---\\n\\n"  (file khong doc duoc, luon co)
    "\\n\\n--- Error processing file: <path> ---\\n\\n"  (loi khac, luon co)

Summary line duoc prepend khi include_header va co it nhat 1 file:
    "--- Combined Context (<n> files, estimated ~<t> tokens) ---\\n"
"""

from core.errors import ProcessingFailure
from core.prompting.types import FileEntry

FILE_HEADER = "\n\n--- File: {path} ---\n\n"
FAILED_MARKER = "\n\n--- Failed to read file: {path} ---\n\n"
ERROR_MARKER = "\n\n--- Error processing file: {path} ---\n\n"
SUMMARY_LINE = "--- Combined Context ({count} files, estimated ~{tokens} tokens) ---\n"


def format_file_section(entry: FileEntry, include_header: bool) -> str:
    """Render 1 file entry."""
    if not entry.ok:
        if isinstance(entry.error, ProcessingFailure):
            return ERROR_MARKER.format(path=entry.display_path)
        return FAILED_MARKER.format(path=entry.display_path)
    if include_header:
        return FILE_HEADER.format(path=entry.display_path) + (entry.content or "")
    return entry.content or ""


def format_summary(file_count: int, total_tokens: int) -> str:
    return SUMMARY_LINE.format(count=file_count, tokens=total_tokens)


def format_files_plain(entries: list[FileEntry], include_header: bool = True) -> str:
    """
    Render List[FileEntry] thanh combined text.

    Args:
        entries: File entries theo thu tu traversal
        include_header: Co them file headers va summary line khong

    Returns:
        Combined text (rong neu khong co entry nao)
    """
    body = "".join(format_file_section(entry, include_header) for entry in entries)
    if include_header and entries:
        total_tokens = sum(entry.tokens for entry in entries)
        return format_summary(len(entries), total_tokens) + body
    return body
