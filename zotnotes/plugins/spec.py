"""Hook specifications for zotnotes dialect plugins."""

from __future__ import annotations

from collections.abc import Iterable

from ._markers import hookspec
from .types import ExportContribution


class ZotnotesHookSpec:
    """Hooks a dialect plugin may implement."""

    @hookspec
    def export_formats(self) -> Iterable[ExportContribution] | ExportContribution:
        """Return the output dialects this plugin adds.

        Format ids are matched case-insensitively and must be unique across
        all installed plugins.
        """
