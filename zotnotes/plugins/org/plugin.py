"""Pluggy integration for the built-in Org-mode dialect."""

from __future__ import annotations

from zotnotes.plugins import ExportContribution, hookimpl

from .dialect import FORMAT_ID, ORG_DIALECT

PLUGIN_ID = "zotnotes-builtin-org"


@hookimpl
def export_formats() -> tuple[ExportContribution, ...]:
    """Expose the Org-mode dialect as a plugin contribution."""

    contribution = ExportContribution(
        format_id=FORMAT_ID,
        dialect=ORG_DIALECT,
        description="Org-mode with property drawer and org-pdftools links",
    )
    return (contribution,)


__all__ = ["PLUGIN_ID", "export_formats"]
