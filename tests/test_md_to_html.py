"""
Unit tests for md_to_html.py

Tests the Streamlit front-end helpers with Streamlit mocked out.
"""
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Create comprehensive streamlit mock before importing md_to_html
mock_st = MagicMock()
# columns() returns variable number based on input
def mock_columns(num_cols, **kwargs):
    if isinstance(num_cols, list):
        return [MagicMock() for _ in num_cols]
    return [MagicMock() for _ in range(num_cols)]
mock_st.columns = mock_columns
mock_st.container.return_value.__enter__ = MagicMock(return_value=MagicMock())
mock_st.container.return_value.__exit__ = MagicMock(return_value=False)
mock_st.set_page_config = MagicMock()
mock_st.title = MagicMock()
mock_st.caption = MagicMock()
mock_st.file_uploader = MagicMock(return_value=None)
mock_st.text_area = MagicMock(return_value="")
mock_st.selectbox = MagicMock(return_value="Auto (follow system)")
mock_st.toggle = MagicMock(return_value=True)
mock_st.button = MagicMock(return_value=False)
mock_st.divider = MagicMock()
mock_st.subheader = MagicMock()
mock_st.session_state = {}
# cache_data can be used as @st.cache_data or @st.cache_data(...)
def mock_cache_data(func=None, **kwargs):
    if func is not None:
        return func
    return lambda f: f
mock_st.cache_data = mock_cache_data
mock_st.error = MagicMock()
mock_st.warning = MagicMock()
mock_st.success = MagicMock()
mock_st.info = MagicMock()
mock_st.stop = MagicMock(side_effect=SystemExit)

sys.modules['streamlit'] = mock_st
sys.modules['streamlit.components'] = MagicMock()
sys.modules['streamlit.components.v1'] = MagicMock()

import md_to_html


class TestOptionsToOverrides(unittest.TestCase):
    """Test mapping UI selections to config overrides."""

    def test_theme_labels_map_back(self):
        for theme, label in md_to_html.THEME_LABELS.items():
            overrides = md_to_html.options_to_overrides(label, True, True, True, True, True)
            self.assertEqual(overrides["theme"], theme)

    def test_unknown_label_leaves_theme_unset(self):
        overrides = md_to_html.options_to_overrides("Sepia", True, True, True, True, True)
        self.assertIsNone(overrides["theme"])

    def test_toggles_passed_through(self):
        overrides = md_to_html.options_to_overrides("Dark", False, True, False, True, False)
        self.assertEqual(overrides, {
            "theme": "dark",
            "toc": False,
            "copy_button": True,
            "math": False,
            "mermaid": True,
            "syntax_highlight": False,
        })


class TestNames(unittest.TestCase):
    """Test page title and download file naming."""

    def test_default_title_from_upload(self):
        self.assertEqual(md_to_html.default_title("notes.md"), "notes.md")
        self.assertEqual(md_to_html.default_title("dir/notes.md"), "notes.md")

    def test_default_title_without_upload(self):
        self.assertEqual(md_to_html.default_title(None), "Markdown Preview")
        self.assertEqual(md_to_html.default_title(""), "Markdown Preview")

    def test_download_name(self):
        self.assertEqual(md_to_html.download_name("notes.md"), "notes.html")
        self.assertEqual(md_to_html.download_name("my notes.markdown"), "my_notes.html")
        self.assertEqual(md_to_html.download_name(None), "document.html")


@patch("md_config.default_search_paths", return_value=[])
class TestBuildPage(unittest.TestCase):
    """Test page building through the cached helper."""

    def test_build_page_renders_document(self, _paths):
        html = md_to_html.build_page("# Title\n\n## Section\n", {"theme": "light"}, "notes.md")
        self.assertTrue(html.startswith("<!DOCTYPE html>"))
        self.assertIn("<title>notes.md</title>", html)
        self.assertIn('<a href="#section">Section</a>', html)

    def test_build_page_respects_toggles(self, _paths):
        overrides = md_to_html.options_to_overrides("Light", False, False, True, True, True)
        html = md_to_html.build_page("## Section\n\n```python\nx = 1\n```\n", overrides, "doc")
        self.assertNotIn('<nav class="toc"', html)
        self.assertNotIn("copy-button", html)
        self.assertNotIn("prefers-color-scheme: dark)", html)


class TestModuleUi(unittest.TestCase):
    """Test the page renders without a build request."""

    def test_no_build_without_click(self):
        self.assertNotIn("generated_html", mock_st.session_state)
        mock_st.set_page_config.assert_called()


if __name__ == "__main__":
    unittest.main()
