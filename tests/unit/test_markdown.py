"""Unit tests for answer rendering."""

import io
from unittest.mock import patch

import pytest
from rich.console import Console
from rich.markdown import Markdown
from rich.text import Text

from voiceprompt.ui.markdown import render_markdown


def render(renderable) -> str:
    console = Console(file=io.StringIO(), width=80, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


@pytest.mark.unit
class TestRenderMarkdown:
    def test_renders_markdown(self):
        renderable = render_markdown("# Title\n\n- one\n- two")

        assert isinstance(renderable, Markdown)
        output = render(renderable)
        assert "Title" in output
        assert "one" in output and "two" in output
        assert "# Title" not in output

    def test_render_error_shown_inline(self):
        with patch("voiceprompt.ui.markdown.Markdown", side_effect=ValueError("bad table")):
            renderable = render_markdown("| broken")

        assert isinstance(renderable, Text)
        assert render(renderable).strip() == "Markdown render error: bad table"
