"""
Markdown Conversion Engine

Converts Markdown to an HTML fragment using markdown-it-py:
- GFM-like preset (tables, strikethrough, linkify, raw HTML) with hard line breaks
- Task lists and heading anchors (h1-h6, GitHub-style unique slugs)
- Server-side syntax highlighting via Pygments
- Math protection: $...$ and $$...$$ are kept intact for client-side KaTeX

Diagram fences (mermaid, any case) are never highlighted. They are emitted
with the lowercase language-mermaid class the client-side
renderer selects on.
"""
import logging
import re
from functools import lru_cache

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

DIAGRAM_LANGUAGES = {"mermaid"}
HIGHLIGHT_CSS_CLASS = "highlight"
HIGHLIGHT_STYLES = {
    "dark": "github-dark",
    "light": "default",
}

_DIAGRAM_BLOCK_RE = re.compile(
    r'<code\b[^>]*\sclass="[^"]*\blanguage-(?:%s)\b' % "|".join(sorted(DIAGRAM_LANGUAGES)),
)

# Shared, never mutated after creation
_FORMATTER = HtmlFormatter(nowrap=True)


# ---------- Highlighting ----------

def highlight_code(code: str, lang: str, attrs: str = "") -> str:
    """
    Highlight a fenced code block.

    Returns an empty string to let markdown-it render the block with its
    default markup (no language, or a diagram language).
    """
    if not lang or lang.lower() in DIAGRAM_LANGUAGES:
        return ""
    try:
        lexer = get_lexer_by_name(lang)
    except ClassNotFound:
        lexer = TextLexer()
    body = highlight(code, lexer, _FORMATTER)
    return (
        f'<pre class="{HIGHLIGHT_CSS_CLASS}">'
        f'<code class="language-{escapeHtml(lang)}">{body}</code></pre>'
    )


def get_highlight_css(theme: str) -> str:
    """Pygments stylesheet for highlighted blocks. 'auto' uses the dark style."""
    style = HIGHLIGHT_STYLES["light"] if theme == "light" else HIGHLIGHT_STYLES["dark"]
    return HtmlFormatter(style=style).get_style_defs(f".{HIGHLIGHT_CSS_CLASS}")


# ---------- Math protection ----------

def _render_math_inline(tokens, idx, options, env):
    # Keep TeX raw for KaTeX auto-render, only HTML-escape unsafe chars
    return f"${escapeHtml(tokens[idx].content)}$"


def _render_math_block(tokens, idx, options, env):
    body = (tokens[idx].content or "").strip("\n")
    return f'<div class="math-display">$$\n{escapeHtml(body)}\n$$</div>\n'


# ---------- Engine ----------

@lru_cache(maxsize=None)
def get_markdown_engine(syntax_highlight: bool = True, math: bool = True) -> MarkdownIt:
    """
    Build the Markdown engine for one combination of feature flags.

    Engines are cached per flag pair and never reconfigured afterwards,
    so renders with different configurations can run concurrently.
    """
    options = {"breaks": True}
    if syntax_highlight:
        options["highlight"] = highlight_code

    md = MarkdownIt("gfm-like", options)
    md.use(tasklists_plugin)
    md.use(anchors_plugin, min_level=1, max_level=6)

    default_fence = md.renderer.rules["fence"]

    def render_fence(tokens, idx, options, env):
        # Diagram fences in any case get the lowercase class the client script selects
        token = tokens[idx]
        lang = (token.info.split() or [""])[0].lower()
        if lang in DIAGRAM_LANGUAGES:
            return f'<pre><code class="language-{lang}">{escapeHtml(token.content)}</code></pre>\n'
        return default_fence(tokens, idx, options, env)

    md.renderer.rules["fence"] = render_fence

    if math:
        # Parse math before emphasis rules so $a*b*c$ survives intact
        md.use(dollarmath_plugin, allow_digits=False)
        md.renderer.rules["math_inline"] = _render_math_inline
        md.renderer.rules["math_block"] = _render_math_block
        md.renderer.rules["math_block_label"] = _render_math_block

    logger.debug("Created markdown engine (syntax_highlight=%s, math=%s)", syntax_highlight, math)
    return md


def convert_markdown(markdown: str, syntax_highlight: bool = True, math: bool = True) -> str:
    """Convert Markdown text to an HTML fragment."""
    return get_markdown_engine(syntax_highlight, math).render(markdown)


# ---------- Content detection ----------

def has_math_delimiters(markdown: str) -> bool:
    """True if the raw source contains an inline ($) or display ($$) math delimiter."""
    return "$" in markdown


def has_diagram_blocks(fragment: str) -> bool:
    """True if the rendered fragment contains a code block tagged as a diagram language."""
    return bool(_DIAGRAM_BLOCK_RE.search(fragment))
