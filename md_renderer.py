"""
Markdown Page Renderer

Builds a complete, standalone HTML page from Markdown:
- Outline extraction from rendered h2-h6 headings that carry an id
- Table of contents sidebar with depth-based indentation
- Theme-aware styling (light, dark, auto via prefers-color-scheme)
- Conditional features: syntax highlighting, KaTeX math, Mermaid diagrams, copy buttons

Page composition is pure string assembly: the same inputs always produce
byte-identical output, and nothing here touches the filesystem.

Known limitation: heading extraction is a structural regex scan, not an
HTML parse. A heading whose inline content contains another heading tag
of the same level ends at the first matching closing tag.
"""
import re
from typing import Dict, Iterable, List, NamedTuple

from md_config import RenderConfig
from md_converter import convert_markdown, get_highlight_css, has_diagram_blocks, has_math_delimiters

DEFAULT_TITLE = "Markdown Preview"
TOC_TITLE = "Table of Contents"
TOC_INDENT_PX = 20

HIGHLIGHT_STYLE_ID = "syntax-highlight"
KATEX_VERSION = "0.16.9"
KATEX_CDN = f"https://cdn.jsdelivr.net/npm/katex@{KATEX_VERSION}/dist"
MERMAID_CDN = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.esm.min.mjs"

# h2-h6 opening tag with a standalone id attribute; other attributes may appear
# in any order. Attribute text never spans a '<' so a failed match stays local.
_HEADING_OPEN_RE = re.compile(
    r'<h(?P<level>[2-6])\b[^<>]*?\sid=(?P<q>["\'])(?P<id>[^"\'<>]+)(?P=q)[^<>]*>',
    re.IGNORECASE,
)
_HEADING_CLOSE_RE = {
    level: re.compile(rf"</h{level}\s*>", re.IGNORECASE) for level in range(2, 7)
}
_TAG_RE = re.compile(r"<[^>]*>")


class OutlineEntry(NamedTuple):
    """One heading in the document outline."""
    id: str
    text: str
    level: int


# ---------- Helpers ----------

def escape_html(s: str) -> str:
    """Escape HTML special characters including quotes."""
    if not s:
        return ""
    return (s.replace("&", "&amp;")
             .replace("<", "&lt;")
             .replace(">", "&gt;")
             .replace('"', "&quot;")
             .replace("'", "&#x27;"))


def strip_tags(s: str) -> str:
    """Remove markup tags, keeping text (and whitespace) as-is."""
    return _TAG_RE.sub("", s)


# ---------- Outline / ToC ----------

def extract_headings(fragment: str) -> List[OutlineEntry]:
    """
    Scan an HTML fragment for h2-h6 headings with anchor ids.

    Level-1 headings and headings without an id are skipped. Entries are
    returned in document order, without reordering or deduplication.
    A heading runs to the first closing tag of its level; one with no
    closing tag is skipped.
    """
    entries = []
    # level -> first closing tag found by the last lookup (None: no more closing tags)
    closings = {}
    pos = 0
    while True:
        opening = _HEADING_OPEN_RE.search(fragment, pos)
        if opening is None:
            return entries
        level = int(opening.group("level"))

        if level in closings and (closings[level] is None or closings[level].start() >= opening.end()):
            closing = closings[level]
        else:
            closing = _HEADING_CLOSE_RE[level].search(fragment, opening.end())
            closings[level] = closing

        if closing is None:
            pos = opening.end()
            continue
        entries.append(OutlineEntry(
            id=opening.group("id"),
            text=strip_tags(fragment[opening.end():closing.start()]),
            level=level,
        ))
        pos = closing.end()


def toc_indent(level: int) -> int:
    """Left indentation in px: level 2 is the baseline."""
    return (level - 2) * TOC_INDENT_PX


def render_toc_html(entries: Iterable[OutlineEntry]) -> str:
    """Render outline entries as a navigation sidebar. Empty outline -> empty string."""
    items = [
        f'<li style="padding-left: {toc_indent(entry.level)}px">'
        f'<a href="#{entry.id}">{entry.text}</a></li>'
        for entry in entries
    ]
    if not items:
        return ""
    return (
        f'<nav class="toc" aria-label="{TOC_TITLE}">'
        f'<div class="toc-title">{TOC_TITLE}</div>'
        f'<ul>{"".join(items)}</ul>'
        '</nav>'
    )


# ---------- Styles ----------

LIGHT_THEME_VARS = {
    "--bg-primary": "#ffffff",
    "--bg-secondary": "#f6f8fa",
    "--text-primary": "#24292f",
    "--text-secondary": "#57606a",
    "--border-color": "#d0d7de",
    "--link-color": "#0969da",
    "--link-hover": "#0550ae",
    "--code-bg": "#f6f8fa",
    "--inline-code-bg": "rgba(175,184,193,0.2)",
    "--blockquote-border": "#d0d7de",
    "--toc-bg": "#f6f8fa",
    "--shadow": "rgba(0,0,0,0.1)",
}

DARK_THEME_VARS = {
    "--bg-primary": "#0d1117",
    "--bg-secondary": "#161b22",
    "--text-primary": "#c9d1d9",
    "--text-secondary": "#8b949e",
    "--border-color": "#30363d",
    "--link-color": "#58a6ff",
    "--link-hover": "#79c0ff",
    "--code-bg": "#161b22",
    "--inline-code-bg": "rgba(110,118,129,0.4)",
    "--blockquote-border": "#3b434b",
    "--toc-bg": "#161b22",
    "--shadow": "rgba(0,0,0,0.3)",
}


def css_variables(selector: str, variables: Dict[str, str]) -> str:
    body = ";".join(f"{name}:{value}" for name, value in variables.items())
    return f"{selector}{{{body}}}"


def get_theme_css(theme: str) -> list:
    """
    CSS variable blocks for a theme.

    Light variables are always present. 'dark' overrides them
    unconditionally; 'auto' overrides them only under the client's
    dark color-scheme preference; 'light' emits no dark block.
    """
    css = [css_variables(":root", LIGHT_THEME_VARS)]
    dark_block = css_variables(":root", DARK_THEME_VARS)
    if theme == "dark":
        css.append(dark_block)
        css.append(":root{color-scheme:dark}")
    elif theme == "auto":
        css.append(f"@media (prefers-color-scheme: dark){{{dark_block}}}")
    return css


def generate_css(config: RenderConfig) -> str:
    """Page stylesheet for the configured theme and features."""
    base_css = get_theme_css(config.theme) + [
        "*{margin:0;padding:0;box-sizing:border-box}",
        "body{font-family:-apple-system,BlinkMacSystemFont,\"Segoe UI\",\"Noto Sans\",Helvetica,Arial,sans-serif;font-size:16px;line-height:1.6;color:var(--text-primary);background-color:var(--bg-primary)}",
        ".container{max-width:1280px;margin:0 auto;display:flex;gap:2rem;padding:2rem}",
        ".content{flex:1;min-width:0;max-width:900px;margin:0 auto}",
        ".toc{position:sticky;top:2rem;width:280px;height:fit-content;max-height:calc(100vh - 4rem);overflow-y:auto;background:var(--toc-bg);border:1px solid var(--border-color);border-radius:8px;padding:1.5rem;flex-shrink:0}",
        ".toc-title{font-weight:600;font-size:.875rem;text-transform:uppercase;letter-spacing:.5px;color:var(--text-secondary);margin-bottom:1rem}",
        ".toc ul{list-style:none}.toc li{margin:.5rem 0}",
        ".toc a{color:var(--text-secondary);text-decoration:none;font-size:.875rem;transition:color .2s;display:block}.toc a:hover{color:var(--link-color)}",
        "@media (max-width:1024px){.toc{display:none}}",
        "h1,h2,h3,h4,h5,h6{margin-top:1.5em;margin-bottom:.5em;font-weight:600;line-height:1.25;color:var(--text-primary);scroll-margin-top:1rem}",
        "h1{font-size:2em;border-bottom:1px solid var(--border-color);padding-bottom:.3em}",
        "h2{font-size:1.5em;border-bottom:1px solid var(--border-color);padding-bottom:.3em}",
        "h3{font-size:1.25em}h4{font-size:1em}h5{font-size:.875em}h6{font-size:.85em;color:var(--text-secondary)}",
        "p{margin-top:0;margin-bottom:1em}",
        "a{color:var(--link-color);text-decoration:none}a:hover{color:var(--link-hover);text-decoration:underline}",
        "ul,ol{margin-top:0;margin-bottom:1em;padding-left:2em}li+li{margin-top:.25em}",
        "blockquote{margin:0 0 1em 0;padding:0 1em;color:var(--text-secondary);border-left:4px solid var(--blockquote-border)}",
        "code{font-family:ui-monospace,SFMono-Regular,\"SF Mono\",Menlo,Consolas,\"Liberation Mono\",monospace;font-size:.875em;background:var(--inline-code-bg);padding:.2em .4em;border-radius:6px}",
        "pre{background:var(--code-bg);border:1px solid var(--border-color);border-radius:8px;padding:1em;overflow-x:auto;margin-bottom:1em;position:relative}",
        "pre code{background:none;padding:0;font-size:.875em;line-height:1.5}",
        ".math-display{margin:1em 0;overflow-x:auto}",
        "table{border-collapse:collapse;width:100%;margin-bottom:1em;border:1px solid var(--border-color)}",
        "th,td{padding:.75em 1em;text-align:left;border:1px solid var(--border-color)}",
        "th{background:var(--bg-secondary);font-weight:600}tr:nth-child(even){background:var(--bg-secondary)}",
        "img{max-width:100%;height:auto;border-radius:8px;margin:1em 0}",
        "hr{height:1px;border:none;background:var(--border-color);margin:2em 0}",
        "input[type=\"checkbox\"]{margin-right:.5em}.task-list-item{list-style:none}",
        "@media print{.toc{display:none!important}pre{white-space:pre-wrap}}",
    ]

    if config.copy_button:
        base_css.append(".copy-button{position:absolute;top:.5rem;right:.5rem;background:var(--bg-secondary);border:1px solid var(--border-color);border-radius:6px;padding:.4rem .8rem;font-size:.75rem;cursor:pointer;opacity:0;transition:opacity .2s,background .2s;color:var(--text-primary)}pre:hover .copy-button,.copy-button:focus{opacity:1}.copy-button:hover{background:var(--border-color)}.copy-button.copied{background:#28a745;color:#fff;border-color:#28a745}@media print{.copy-button{display:none!important}}")

    return "".join(base_css)


# ---------- Feature fragments ----------

def generate_syntax_highlight_styles(theme: str) -> str:
    """Highlight stylesheet. 'auto' picks the dark variant: it cannot be swapped client-side."""
    return f'<style id="{HIGHLIGHT_STYLE_ID}">\n{get_highlight_css(theme)}\n</style>'


def generate_katex_styles() -> str:
    return f'<link rel="stylesheet" href="{KATEX_CDN}/katex.min.css">'


def generate_katex_script() -> str:
    return (
        f'<script defer src="{KATEX_CDN}/katex.min.js"></script>\n'
        f'<script defer src="{KATEX_CDN}/contrib/auto-render.min.js" onload="renderMathInElement(document.body, {{\n'
        "  delimiters: [\n"
        "    {left: '$$', right: '$$', display: true},\n"
        "    {left: '$', right: '$', display: false}\n"
        "  ],\n"
        "  throwOnError: false\n"
        '});"></script>'
    )


def generate_mermaid_script(theme: str) -> str:
    """Mermaid module script; converts language-mermaid code blocks into diagrams."""
    if theme == "dark":
        mermaid_theme = "'dark'"
    elif theme == "light":
        mermaid_theme = "'default'"
    else:
        mermaid_theme = "window.matchMedia('(prefers-color-scheme: dark)').matches ? 'dark' : 'default'"
    return f"""<script type="module">
  import mermaid from '{MERMAID_CDN}';
  document.querySelectorAll('pre > code.language-mermaid').forEach(function(code){{
    var div = document.createElement('div');
    div.className = 'mermaid';
    div.textContent = code.textContent;
    code.parentElement.replaceWith(div);
  }});
  mermaid.initialize({{ startOnLoad: false, theme: {mermaid_theme} }});
  mermaid.run({{ querySelector: '.mermaid' }});
</script>"""


def generate_copy_button_script() -> str:
    return """<script>
  document.addEventListener('DOMContentLoaded', function(){
    document.querySelectorAll('pre > code:not(.language-mermaid)').forEach(function(block){
      var button = document.createElement('button');
      button.className = 'copy-button';
      button.type = 'button';
      button.textContent = 'Copy';
      button.setAttribute('aria-label', 'Copy code to clipboard');
      function reset(){ button.textContent = 'Copy'; button.classList.remove('copied'); }
      button.addEventListener('click', function(){
        if (!navigator.clipboard || !navigator.clipboard.writeText){
          button.textContent = 'Error'; setTimeout(reset, 2000); return;
        }
        navigator.clipboard.writeText(block.textContent).then(function(){
          button.textContent = 'Copied!';
          button.classList.add('copied');
          setTimeout(reset, 2000);
        }).catch(function(){
          button.textContent = 'Error';
          setTimeout(reset, 2000);
        });
      });
      block.parentElement.appendChild(button);
    });
  });
</script>"""


def generate_toc_scroll_script() -> str:
    return """<script>
  document.addEventListener('DOMContentLoaded', function(){
    document.querySelectorAll('.toc a').forEach(function(link){
      link.addEventListener('click', function(e){
        var target = document.getElementById(decodeURIComponent(link.getAttribute('href').substring(1)));
        if (!target) return;
        e.preventDefault();
        target.scrollIntoView({ behavior: 'smooth', block: 'start' });
        history.replaceState(null, '', link.getAttribute('href'));
      });
    });
  });
</script>"""


# ---------- Page composition ----------

def build_html(
    content: str,
    toc: str,
    config: RenderConfig,
    title: str,
    has_math: bool,
    has_mermaid: bool
) -> str:
    """
    Build the complete HTML document.

    has_math and has_mermaid are decided by the caller and trusted as-is.
    """
    head = [
        '<meta charset="UTF-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f"<title>{escape_html(title)}</title>",
        f"<style>\n{generate_css(config)}\n</style>",
    ]
    if config.syntax_highlight:
        head.append(generate_syntax_highlight_styles(config.theme))
    if has_math:
        head.append(generate_katex_styles())

    scripts = []
    if config.copy_button:
        scripts.append(generate_copy_button_script())
    if has_mermaid:
        scripts.append(generate_mermaid_script(config.theme))
    if has_math:
        scripts.append(generate_katex_script())
    if toc:
        scripts.append(generate_toc_scroll_script())

    body = ['<div class="container">']
    if toc:
        body.append(toc)
    body.append(f'<main class="content">\n{content}\n</main>')
    body.append("</div>")
    body.extend(scripts)

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        + "\n".join(head) + "\n"
        "</head>\n"
        "<body>\n"
        + "\n".join(body) + "\n"
        "</body>\n"
        "</html>\n"
    )


def render_markdown(markdown: str, config: RenderConfig, title: str = DEFAULT_TITLE) -> str:
    """Render Markdown source into a complete HTML page."""
    content = convert_markdown(markdown, syntax_highlight=config.syntax_highlight, math=config.math)

    toc = render_toc_html(extract_headings(content)) if config.toc else ""
    has_mermaid = config.mermaid and has_diagram_blocks(content)
    has_math = config.math and has_math_delimiters(markdown)

    return build_html(content, toc, config, title, has_math, has_mermaid)
