"""Pluggy integration for the built-in Markdown dialect."""

from __future__ import annotations

from zotnotes.plugins import ExportContribution, hookimpl

from .dialect import FORMAT_ID, MARKDOWN_DIALECT

PLUGIN_ID = "zotnotes-builtin-markdown"


@hookimpl
def export_formats() -> tuple[ExportContribution, ...]:
    """Expose the Markdown dialect as a plugin contribution."""

    contribution = ExportContribution(
        format_id=FORMAT_ID,
        dialect=MARKDOWN_DIALECT,
        description="Markdown with front matter and zotero:// links",
    )
    return (contribution,)


__all__ = ["PLUGIN_ID", "export_formats"]
