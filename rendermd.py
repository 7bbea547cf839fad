#!/usr/bin/env python3
"""rendermd: render a Markdown file to styled HTML and open it in the browser."""
import argparse
import logging
import os
import sys
from typing import List, Optional

from md_config import THEMES, resolve_config
from md_files import (
    cleanup_temp_file,
    open_in_browser,
    read_markdown_file,
    schedule_cleanup,
    write_temp_html,
)
from md_renderer import render_markdown

__version__ = "1.0.0"

logger = logging.getLogger("rendermd")


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid delay: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"delay must be non-negative: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rendermd",
        description="Render Markdown files in the browser with rich styling",
    )
    parser.add_argument("file", help="Markdown file to render")
    parser.add_argument("-t", "--theme", choices=THEMES, default=None,
                        help="Theme: light, dark, or auto (default: auto)")

    # Flags default to None so only explicit flags override the config file
    def disable(flag: str, dest: str, help_text: str) -> None:
        parser.add_argument(flag, dest=dest, action="store_const", const=False, default=None, help=help_text)

    disable("--no-toc", "toc", "Disable table of contents")
    disable("--no-line-numbers", "line_numbers", "Disable line numbers in code blocks")
    disable("--no-copy-button", "copy_button", "Disable copy button in code blocks")
    disable("--no-math", "math", "Disable math rendering")
    disable("--no-mermaid", "mermaid", "Disable Mermaid diagram rendering")
    disable("--no-syntax-highlight", "syntax_highlight", "Disable syntax highlighting")
    disable("--no-auto-cleanup", "auto_cleanup", "Disable automatic cleanup of temp files")

    parser.add_argument("--cleanup-delay", dest="cleanup_delay", type=non_negative_int, default=None,
                        metavar="MS", help="Delay before cleaning up temp file (ms, default: 60000)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    file_path = os.path.abspath(args.file)
    if not os.path.isfile(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        return 1

    overrides = {
        "theme": args.theme,
        "toc": args.toc,
        "line_numbers": args.line_numbers,
        "copy_button": args.copy_button,
        "math": args.math,
        "mermaid": args.mermaid,
        "syntax_highlight": args.syntax_highlight,
        "auto_cleanup": args.auto_cleanup,
        "cleanup_delay": args.cleanup_delay,
    }

    try:
        config = resolve_config(overrides)
        logger.debug("Resolved config: %s", config)

        name = os.path.basename(file_path)
        print(f"Rendering: {name}")

        markdown = read_markdown_file(file_path)
        html = render_markdown(markdown, config, name)

        temp_path = write_temp_html(html, file_path)
        print(f"Generated: {temp_path}")

        try:
            open_in_browser(temp_path)
        except Exception:
            if config.auto_cleanup:
                cleanup_temp_file(temp_path)
            raise
        print("Opened in browser")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not config.auto_cleanup:
        print(f"Temp file saved at: {temp_path}")
        return 0

    print(f"Temp file will be cleaned up in {config.cleanup_delay / 1000:g}s")
    timer = schedule_cleanup(temp_path, config.cleanup_delay)
    try:
        timer.join()
    except KeyboardInterrupt:
        timer.cancel()
        cleanup_temp_file(temp_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
