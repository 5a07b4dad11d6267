"""Local storage of impact recordings."""

from .file_manager import FileManager

__all__ = ["FileManager"]
