"""
Render Configuration

Resolves the options that drive page composition:
- Built-in defaults (every option always has a value)
- Optional JSON config file (.rendermdrc / .rendermdrc.json, cwd first, then home)
- Explicit overrides (CLI flags or UI toggles)

Malformed config files are never fatal: a warning is logged and the
next file (or the defaults) is used instead.
"""
import json
import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

THEMES = ("light", "dark", "auto")
CONFIG_FILE_NAMES = (".rendermdrc", ".rendermdrc.json")

# JSON config keys -> RenderConfig field names
CONFIG_KEYS = {
    "theme": "theme",
    "toc": "toc",
    "lineNumbers": "line_numbers",
    "copyButton": "copy_button",
    "math": "math",
    "mermaid": "mermaid",
    "syntaxHighlight": "syntax_highlight",
    "autoCleanup": "auto_cleanup",
    "cleanupDelay": "cleanup_delay",
}


@dataclass(frozen=True)
class RenderConfig:
    """Fully resolved rendering options."""
    theme: str = "auto"
    toc: bool = True
    # Accepted for config compatibility; highlighting does not number lines.
    line_numbers: bool = True
    copy_button: bool = True
    math: bool = True
    mermaid: bool = True
    syntax_highlight: bool = True
    auto_cleanup: bool = True
    cleanup_delay: int = 60000  # milliseconds


DEFAULT_CONFIG = RenderConfig()


def _field_name(key: str) -> Optional[str]:
    """Map a JSON key (camelCase or snake_case) to a RenderConfig field."""
    if key in CONFIG_KEYS:
        return CONFIG_KEYS[key]
    if key in CONFIG_KEYS.values():
        return key
    return None


def _is_valid(field: str, value: Any) -> bool:
    if field == "theme":
        return value in THEMES
    if field == "cleanup_delay":
        # bool is an int subclass; reject it explicitly
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0
    return isinstance(value, bool)


def normalize_overrides(raw: Mapping[str, Any], source: str = "overrides") -> Dict[str, Any]:
    """
    Convert a raw option mapping into validated RenderConfig field values.

    Unknown keys are ignored. Invalid values are dropped with a warning so
    the lower-precedence value stays in effect. None means "not given".
    """
    result = {}
    for key, value in raw.items():
        field = _field_name(key)
        if field is None:
            logger.debug("Ignoring unknown option %r in %s", key, source)
            continue
        if value is None:
            continue
        if not _is_valid(field, value):
            logger.warning("Ignoring invalid value %r for %r in %s", value, key, source)
            continue
        result[field] = value
    return result


def merge_config(base: RenderConfig, overrides: Optional[Mapping[str, Any]] = None) -> RenderConfig:
    """Return a new config with validated overrides applied on top of base."""
    if not overrides:
        return base
    return replace(base, **normalize_overrides(overrides))


def default_search_paths() -> List[str]:
    """Config file candidates in lookup order: working directory, then home."""
    paths = []
    for directory in (os.getcwd(), os.path.expanduser("~")):
        for name in CONFIG_FILE_NAMES:
            paths.append(os.path.join(directory, name))
    return paths


def parse_config_file(path: str) -> Dict[str, Any]:
    """
    Parse a JSON config file into RenderConfig field values.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not a JSON object
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("config root must be a JSON object")
    return normalize_overrides(data, source=path)


def load_config(search_paths: Optional[Iterable[str]] = None) -> RenderConfig:
    """Load the first parsable config file, falling back to defaults."""
    if search_paths is None:
        search_paths = default_search_paths()

    for path in search_paths:
        if not os.path.isfile(path):
            continue
        try:
            values = parse_config_file(path)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            logger.warning("Failed to parse config file at %s: %s", path, e)
            continue
        logger.debug("Loaded config from %s", path)
        return replace(DEFAULT_CONFIG, **values)

    return DEFAULT_CONFIG


def resolve_config(
    overrides: Optional[Mapping[str, Any]] = None,
    search_paths: Optional[Iterable[str]] = None
) -> RenderConfig:
    """Resolve defaults, then config file, then explicit overrides."""
    return merge_config(load_config(search_paths), overrides)
