"""Built-in Markdown dialect plugin for zotnotes."""

from __future__ import annotations

from .dialect import MARKDOWN_DIALECT
from .plugin import PLUGIN_ID, export_formats

__all__ = ["MARKDOWN_DIALECT", "PLUGIN_ID", "export_formats"]
