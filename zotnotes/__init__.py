"""Export Zotero PDF and EPUB annotations to Org-mode and Markdown."""

from __future__ import annotations

__version__ = "0.1.0"
