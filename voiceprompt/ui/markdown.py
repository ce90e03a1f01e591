"""Markdown rendering for answers."""

import logging

from rich.console import RenderableType
from rich.markdown import Markdown
from rich.text import Text

logger = logging.getLogger(__name__)


def render_markdown(markdown_text: str) -> RenderableType:
    """Render an answer for the console; a broken document renders as an error line."""
    try:
        return Markdown(markdown_text)
    except Exception as e:
        logger.warning(f"Markdown render error: {e}")
        return Text(f"Markdown render error: {e}", style="red")
