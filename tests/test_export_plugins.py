"""Tests covering dialect plugin integration flow."""

from __future__ import annotations

import types
from pathlib import Path

import pytest
from zotnotes.formatting.annotations import Dialect
from zotnotes.plugins import ExportContribution, hookimpl
from zotnotes.plugins import manager as plugin_manager
from zotnotes.plugins.org import ORG_DIALECT
from zotnotes.services import export as export_service
from zotnotes.services.export import ExportError, Exporter
from zotnotes.storage import Storage

PLAIN_DIALECT = Dialect(
    format_id="txt",
    label="Plain text",
    extension=".txt",
    render_link=lambda annotation, attachment: f"p.{annotation.page_label}",
    wrap_block=lambda block_type, body: f"{block_type.upper()}: {body}\n",
    render_tags=lambda tags: "tags: " + ", ".join(tags),
    render_header=lambda meta: f"{meta.display_title}\n\n",
    placeholder="<{label} at {location}>",
)


def _install(monkeypatch, module: types.ModuleType) -> None:
    original_iter = plugin_manager._builtin_plugin_modules

    def _combined() -> tuple[object, ...]:
        return original_iter() + (module,)

    monkeypatch.setattr(plugin_manager, "_builtin_plugin_modules", _combined)
    plugin_manager.reset_plugin_manager_cache()
    export_service.clear_export_registry_cache()


def test_custom_dialect_plugin_drives_exporter(
    storage: Storage, tmp_path: Path, monkeypatch
) -> None:
    module = types.ModuleType("zotnotes_test_plugin")

    @hookimpl
    def export_formats() -> tuple[ExportContribution, ...]:
        return (
            ExportContribution(
                format_id="TXT",
                dialect=PLAIN_DIALECT,
                description="Plain text dump",
            ),
        )

    module.export_formats = export_formats
    _install(monkeypatch, module)

    assert export_service.get_export_format_choices() == ["md", "org", "txt"]
    assert ("txt", "Plain text dump") in export_service.get_export_format_descriptions()

    dialect = export_service.get_dialect("txt")
    result = Exporter(storage).generate_content(storage.get_item("ARTICLE1"), dialect)

    assert result is not None
    assert result.content.startswith("Deep Learning: A Review\n\np.1\nQUOTE: First")
    assert "COMMENT: A sticky note\ntags: todo\n" in result.content
    assert "EXAMPLE: <Image at 10>\n" in result.content

    written = export_service.export_items(
        Exporter(storage), [storage.get_item("ARTICLE1")], dialect, tmp_path / "out"
    )
    assert [p.name for p, _ in written] == ["Deep_Learning_A_Review.txt"]


def test_single_contribution_is_accepted(monkeypatch) -> None:
    module = types.ModuleType("zotnotes_single_plugin")

    @hookimpl
    def export_formats() -> ExportContribution:
        return ExportContribution(
            format_id="txt", dialect=PLAIN_DIALECT, description=""
        )

    module.export_formats = export_formats
    _install(monkeypatch, module)

    assert export_service.get_dialect("txt") is PLAIN_DIALECT


def test_duplicate_format_is_rejected(monkeypatch) -> None:
    module = types.ModuleType("zotnotes_duplicate_plugin")

    @hookimpl
    def export_formats() -> tuple[ExportContribution, ...]:
        return (
            ExportContribution(format_id="Org", dialect=ORG_DIALECT, description=""),
        )

    module.export_formats = export_formats
    _install(monkeypatch, module)

    with pytest.raises(ExportError) as exc_info:
        export_service.get_dialect("org")

    assert "Duplicate export format" in str(exc_info.value)


def test_malformed_contribution_is_rejected(monkeypatch) -> None:
    module = types.ModuleType("zotnotes_broken_plugin")

    @hookimpl
    def export_formats() -> list[object]:
        return ["not a contribution"]

    module.export_formats = export_formats
    _install(monkeypatch, module)

    with pytest.raises(ExportError) as exc_info:
        export_service.get_export_format_choices()

    assert "ExportContribution" in str(exc_info.value)
