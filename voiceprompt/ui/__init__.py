"""Terminal user interface."""

from .markdown import render_markdown
from .terminal_screen import TerminalScreen

__all__ = ["render_markdown", "TerminalScreen"]
