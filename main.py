# main.py
"""CLI entry point for the Lorekeeper writing assistant."""

from __future__ import annotations

import argparse
import sys

from storage.exporter import EXPORT_EXTENSIONS

from orchestration.cli_runner import run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lorekeeper", description="Knowledge-aware novel writing assistant."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser(
        "import", help="Extract knowledge entries from a .txt or .docx file"
    )
    import_parser.add_argument("file", help="Path to the source document")
    import_parser.add_argument(
        "--yes", action="store_true", help="Import without asking for confirmation"
    )

    subparsers.add_parser("duplicates", help="List groups of duplicate entries")

    merge_parser = subparsers.add_parser("merge", help="Merge duplicate entries")
    merge_parser.add_argument(
        "--group", type=int, default=None, help="1-based group number to merge"
    )
    merge_parser.add_argument(
        "--delete-originals",
        action="store_true",
        help="Delete the grouped entries after a successful merge",
    )

    chat_parser = subparsers.add_parser("chat", help="Ask a question about your story")
    chat_parser.add_argument("question")
    chat_parser.add_argument(
        "--document", default=None, help="Current document to include as context"
    )

    export_parser = subparsers.add_parser("export", help="Export an HTML document")
    export_parser.add_argument("file", help="Path to the HTML content")
    export_parser.add_argument("--title", required=True)
    export_parser.add_argument(
        "--format", choices=sorted(EXPORT_EXTENSIONS), default="txt"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse command-line arguments and run Lorekeeper."""
    args = build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
