"""Storage of raw captures for debugging."""

from .file_manager import FileManager

__all__ = ["FileManager"]
