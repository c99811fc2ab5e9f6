"""
Code Prompt Helper - Command-line entry point.

Scan mot (hoac nhieu) project roots, check cac paths duoc chi dinh
(mac dinh: toan bo project), roi xuat combined context ra stdout/file.

    code-prompt-helper ./my-project --check src --check README.md
    code-prompt-helper ./my-project --tree

Exit codes: 0 ok, 1 check path khong co trong tree / scan loi, 2 sai arguments.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from config.engine_settings import EngineSettings
from core.encoders import DEFAULT_ESTIMATOR, TIKTOKEN_ESTIMATOR
from core.errors import EngineError
from core.logging_config import cleanup_old_logs, flush_logs, log_error, set_debug_mode
from core.utils.file_utils import TreeItem, count_tree, find_item
from services.context_engine import ContextEngine
from services.settings_manager import load_app_settings

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-prompt-helper",
        description="Concatenate selected project files into one prompt-ready text blob.",
    )
    parser.add_argument("roots", nargs="+", metavar="ROOT", help="Project root(s) to scan")
    parser.add_argument(
        "--check",
        action="append",
        default=[],
        metavar="PATH",
        help="File or directory to include (repeatable, default: whole project)",
    )
    parser.add_argument("--no-header", action="store_true", help="Omit file headers and summary")
    parser.add_argument("--tree", action="store_true", help="Print the scanned tree and exit")
    parser.add_argument("--output", "-o", type=Path, metavar="FILE", help="Write text to FILE")
    parser.add_argument("--settings", type=Path, metavar="FILE", help="Settings JSON file")
    parser.add_argument(
        "--estimator",
        choices=(DEFAULT_ESTIMATOR, TIKTOKEN_ESTIMATOR),
        help="Token estimator (overrides settings)",
    )
    parser.add_argument(
        "--relative", action="store_true", help="Use paths relative to ROOT in headers"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def render_tree(tree: TreeItem) -> str:
    """Render tree dang indent, directories co trailing '/'."""
    lines: list[str] = []

    def walk(item: TreeItem, depth: int) -> None:
        suffix = "/" if item.is_dir else ""
        lines.append(f"{'  ' * depth}{item.label}{suffix}")
        for child in item.children:
            walk(child, depth + 1)

    walk(tree, 0)
    return "\n".join(lines) + "\n"


def _load_settings(args: argparse.Namespace) -> EngineSettings:
    settings = load_app_settings(args.settings)
    if args.estimator:
        settings.estimator = args.estimator
    if args.relative:
        settings.use_relative_paths = True
    if args.no_header:
        settings.include_header = False
    return settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        set_debug_mode(True)

    settings = _load_settings(args)
    try:
        with ContextEngine(settings=settings) as engine:
            tree = engine.start_scan(args.roots).result()

            for failure in engine.listing_failures:
                print(f"warning: {failure}", file=sys.stderr)

            if args.tree:
                sys.stdout.write(render_tree(tree))
                dirs, files = count_tree(tree)
                print(f"{dirs} directories, {files} files", file=sys.stderr)
                return EXIT_OK

            if args.check:
                for raw in args.check:
                    identity = str(Path(raw).resolve())
                    item = find_item(tree, identity)
                    if item is None:
                        print(f"error: not in project tree: {raw}", file=sys.stderr)
                        return EXIT_FAILURE
                    item.checked = True
            else:
                tree.checked = True

            result = engine.aggregate()
    except EngineError as e:
        log_error("Aggregation failed", e)
        return EXIT_FAILURE
    finally:
        flush_logs()
        cleanup_old_logs(max_age_days=7)

    if args.output:
        try:
            args.output.write_text(result.combined_text, encoding="utf-8")
        except OSError as e:
            print(f"error: cannot write {args.output}: {e}", file=sys.stderr)
            return EXIT_FAILURE
    else:
        sys.stdout.write(result.combined_text)

    for error in result.per_file_errors:
        print(f"warning: {error.error}", file=sys.stderr)
    print(
        f"{result.file_count} files, estimated ~{result.total_tokens} tokens",
        file=sys.stderr,
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
