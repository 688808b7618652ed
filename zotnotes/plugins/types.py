"""Type definitions for zotnotes plugin contracts."""

from __future__ import annotations

from dataclasses import dataclass

from ..formatting.annotations import Dialect


@dataclass(slots=True, frozen=True)
class ExportContribution:
    """Descriptor describing an output dialect provided by a plugin."""

    format_id: str
    dialect: Dialect
    description: str
