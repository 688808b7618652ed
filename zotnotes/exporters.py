"""zotnotes export error types."""

from __future__ import annotations


class ExportError(RuntimeError):
    """Raised when an export cannot be carried out."""


class UnknownFormatError(ExportError):
    """Raised when no dialect is registered under the requested identifier."""

    def __init__(self, export_format: str, available: list[str]) -> None:
        if available:
            message = (
                f"Unknown export format: {export_format}. "
                f"Available: {', '.join(available)}."
            )
        else:
            message = "No export plugins are available."
        super().__init__(message)
        self.export_format = export_format
        self.available = available


__all__ = ["ExportError", "UnknownFormatError"]
