"""
File and Browser Utilities

Input/output around the renderer:
- Reading the Markdown source (UTF-8)
- Writing the rendered page to a uniquely named temp file
- Scheduled cleanup of that temp file
- Opening the page in the default browser
"""
import logging
import os
import re
import tempfile
import threading
import webbrowser
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_PREFIX = "rendermd-"
MARKDOWN_EXTENSIONS = ('.md', '.markdown', '.mdown', '.mkd', '.txt')


class BrowserLaunchError(RuntimeError):
    """Raised when the rendered page could not be opened in a browser."""


def read_markdown_file(path: str) -> str:
    """
    Read a Markdown file as UTF-8. A leading byte-order mark is dropped.

    Raises:
        FileNotFoundError: If the path does not exist or is not a file
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8-sig") as f:
        return f.read()


def sanitize_filename(name: str, extension: str = ".html") -> str:
    """
    Sanitize a filename and give it the target extension.

    Args:
        name: The base filename (may carry a Markdown extension)
        extension: The target extension (e.g., '.html')

    Returns:
        Sanitized filename with the correct extension
    """
    if not name:
        return f"document{extension}"

    # Remove characters not safe for filenames
    name = re.sub(r'[^\w\s._-]', '', name)
    name = re.sub(r'[\s]+', '_', name)
    name = name.strip('._-')

    if not name:
        return f"document{extension}"

    # Remove existing extension if present (case-insensitive)
    for ext in MARKDOWN_EXTENSIONS + ('.html', '.htm'):
        if name.lower().endswith(ext):
            name = name[:-len(ext)]
            break

    if not name:
        return f"document{extension}"

    # Truncate by byte count for Unicode safety (255 - extension length)
    max_base_bytes = 255 - len(extension.encode('utf-8'))
    while len(name.encode('utf-8')) > max_base_bytes:
        name = name[:-1]

    return name + extension


def write_temp_html(html: str, source_path: str) -> str:
    """Write the page to a new file in the system temp directory and return its path."""
    stem = sanitize_filename(os.path.basename(source_path), extension="")
    fd, path = tempfile.mkstemp(prefix=f"{TEMP_PREFIX}{stem}-", suffix=".html")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(html)
    logger.debug("Wrote %d characters to %s", len(html), path)
    return path


def cleanup_temp_file(path: str) -> None:
    """Delete a temp file; a file that is already gone is not an error."""
    try:
        os.remove(path)
        logger.debug("Removed temp file %s", path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove temp file %s: %s", path, e)


def schedule_cleanup(path: str, delay_ms: int) -> threading.Timer:
    """
    Delete the temp file after delay_ms milliseconds.

    The timer thread is non-daemon so the process stays alive until the
    file has been removed.
    """
    timer = threading.Timer(max(delay_ms, 0) / 1000.0, cleanup_temp_file, args=(path,))
    timer.start()
    return timer


def open_in_browser(path: str) -> None:
    """
    Open a local file in the default browser.

    Raises:
        BrowserLaunchError: If no browser could be launched
    """
    uri = Path(path).resolve().as_uri()
    try:
        opened = webbrowser.open(uri)
    except webbrowser.Error as e:
        raise BrowserLaunchError(f"Failed to open browser: {e}") from e
    if not opened:
        raise BrowserLaunchError(f"Failed to open browser: no browser available for {uri}")
