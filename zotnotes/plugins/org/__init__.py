"""Built-in Org-mode dialect plugin for zotnotes."""

from __future__ import annotations

from .dialect import ORG_DIALECT
from .plugin import PLUGIN_ID, export_formats

__all__ = ["ORG_DIALECT", "PLUGIN_ID", "export_formats"]
