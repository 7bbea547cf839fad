"""
Markdown -> Styled HTML with Streamlit UI

Interactive front-end for the renderer:
- Upload a .md file or paste Markdown
- Pick theme and feature toggles (defaults come from the .rendermdrc config)
- Build, preview inline, and download the standalone HTML page
"""
import os
from typing import Any, Dict, Optional

import streamlit as st

from md_config import THEMES, resolve_config
from md_files import sanitize_filename
from md_renderer import DEFAULT_TITLE, render_markdown

# ---------- App config ----------
APP_TITLE = "Markdown -> Styled HTML"
THEME_LABELS = {"auto": "Auto (follow system)", "light": "Light", "dark": "Dark"}


# ---------- Helpers ----------

def options_to_overrides(
    theme_label: str,
    toc: bool,
    copy_button: bool,
    math: bool,
    mermaid: bool,
    syntax_highlight: bool
) -> Dict[str, Any]:
    """Map UI selections to config overrides."""
    theme = next((key for key, label in THEME_LABELS.items() if label == theme_label), None)
    return {
        "theme": theme,
        "toc": toc,
        "copy_button": copy_button,
        "math": math,
        "mermaid": mermaid,
        "syntax_highlight": syntax_highlight,
    }


def default_title(filename: Optional[str]) -> str:
    """Page title: the uploaded file name, like the CLI uses."""
    if filename:
        return os.path.basename(filename)
    return DEFAULT_TITLE


def download_name(filename: Optional[str]) -> str:
    return sanitize_filename(filename or "")


@st.cache_data(show_spinner="Building HTML...")
def build_page(md_text: str, overrides: Dict[str, Any], title: str) -> str:
    """Resolve config with UI overrides and render the page."""
    return render_markdown(md_text, resolve_config(overrides), title)


# ---------- Streamlit UI ----------
st.set_page_config(page_title=APP_TITLE, layout="wide")
st.title(APP_TITLE)
st.caption("Render Markdown to a single styled HTML page with table of contents, syntax highlighting, math, Mermaid diagrams and copy buttons.")

base_config = resolve_config()
uploaded_filename = None
md_text = ""

with st.container(border=True):
    st.subheader("Source")
    uploaded = st.file_uploader("Upload a .md file", type=["md", "markdown"])
    if uploaded is not None:
        try:
            md_text = uploaded.read().decode("utf-8-sig")
            uploaded_filename = uploaded.name
        except Exception as e:
            st.error(f"Failed to read file: {e}")
    md_text = st.text_area("Or paste Markdown", value=md_text, height=260, placeholder="# Title\n\n...")

st.divider()

with st.container(border=True):
    st.subheader("Options")
    col1, col2 = st.columns([1, 1], gap="medium")
    with col1:
        theme_label = st.selectbox(
            "Theme",
            [THEME_LABELS[t] for t in THEMES],
            index=THEMES.index(base_config.theme),
            help="Auto follows the viewer's light/dark system preference"
        )
        toc_enabled = st.toggle("Table of contents", value=base_config.toc)
        copy_enabled = st.toggle("Copy buttons on code blocks", value=base_config.copy_button)
    with col2:
        highlight_enabled = st.toggle("Syntax highlighting", value=base_config.syntax_highlight)
        math_enabled = st.toggle("Math (KaTeX)", value=base_config.math, help="Render $...$ and $$...$$")
        mermaid_enabled = st.toggle("Mermaid diagrams", value=base_config.mermaid)

st.divider()

build_col, preview_col = st.columns([1, 3], gap="large")
with build_col:
    st.subheader("Build")
    if st.button("Build HTML", type="primary", use_container_width=True):
        if not md_text.strip():
            st.warning("Provide Markdown via upload or paste.")
        else:
            try:
                overrides = options_to_overrides(
                    theme_label, toc_enabled, copy_enabled,
                    math_enabled, mermaid_enabled, highlight_enabled
                )
                html = build_page(md_text, overrides, default_title(uploaded_filename))
                # Session state keeps the download button across re-runs
                st.session_state["generated_html"] = html
                st.session_state["generated_name"] = download_name(uploaded_filename)
                st.success("HTML built successfully!")
            except Exception as e:
                st.error(f"Build failed: {e}")

    if "generated_html" in st.session_state:
        st.download_button(
            "Download HTML",
            data=st.session_state["generated_html"].encode("utf-8"),
            file_name=st.session_state.get("generated_name", "document.html"),
            mime="text/html",
            use_container_width=True
        )

with preview_col:
    st.subheader("Preview")
    if "generated_html" in st.session_state:
        st.components.v1.html(st.session_state["generated_html"], height=650, scrolling=True)
    else:
        st.info("Build to see a live preview here.")
