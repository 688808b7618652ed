"""Loopback HTTP API serving annotation exports by citekey."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .exporters import ExportError
from .formatting.metadata import item_title
from .library import Library
from .services.export import Exporter, get_dialect, resolve_items

logger = logging.getLogger(__name__)

ORG_FORMAT = "org"
MISSING_CITEKEY_MESSAGE = "Missing citekey in URL. Use: /export-org/citekey/<citekey>"


class ApiModel(BaseModel):
    """Base for API payloads, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(ApiModel):
    success: bool = False
    error: str


class OrgExportResponse(ApiModel):
    success: bool = True
    citekey: str
    title: str
    annotation_count: int
    org: str


class ExportResponse(ApiModel):
    success: bool = True
    citekey: str
    title: str
    format: str
    annotation_count: int
    content: str


class BatchRequest(ApiModel):
    citekeys: list[str] = Field(default_factory=list)
    format: str = ORG_FORMAT


class BatchItemResponse(ApiModel):
    title: str
    annotation_count: int
    citekey: str | None = None


class BatchResponse(ApiModel):
    success: bool = True
    content: str
    total_annotations: int
    item_count: int
    items: list[BatchItemResponse]


class ApiError(Exception):
    """Error carrying the HTTP status code for the response envelope."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _payload(model: ApiModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, exclude_none=True)


def _export_citekey(
    library: Library, exporter: Exporter, citekey: str, export_format: str
) -> tuple[str, int, str]:
    citekey = citekey.strip()
    if not citekey:
        raise ApiError(400, MISSING_CITEKEY_MESSAGE)

    try:
        dialect = get_dialect(export_format)
    except ExportError as exc:
        raise ApiError(400, str(exc)) from exc

    item = library.find_by_citekey(citekey)
    if item is None:
        raise ApiError(404, f"Item not found for citekey: {citekey}")

    result = exporter.generate_content(item, dialect)
    if result is None or result.annotation_count == 0:
        raise ApiError(404, f"No annotations found for citekey: {citekey}")

    return item_title(item), result.annotation_count, result.content


def create_router(library: Library) -> APIRouter:
    """Build the export routes over ``library``."""

    router = APIRouter(tags=["export"])
    exporter = Exporter(library)

    @router.get("/export-org/citekey")
    @router.get("/export-org/citekey/")
    def export_org_missing() -> dict[str, Any]:
        raise ApiError(400, MISSING_CITEKEY_MESSAGE)

    @router.get("/export-org/citekey/{citekey}")
    def export_org(citekey: str) -> dict[str, Any]:
        """Export one item's annotations as Org-mode text."""
        title, count, content = _export_citekey(library, exporter, citekey, ORG_FORMAT)
        return _payload(
            OrgExportResponse(
                citekey=citekey.strip(),
                title=title,
                annotation_count=count,
                org=content,
            )
        )

    @router.get("/export/citekey/{citekey}")
    def export_citekey(citekey: str, format: str = ORG_FORMAT) -> dict[str, Any]:
        """Export one item's annotations in the requested format."""
        title, count, content = _export_citekey(library, exporter, citekey, format)
        return _payload(
            ExportResponse(
                citekey=citekey.strip(),
                title=title,
                format=format.strip().lower(),
                annotation_count=count,
                content=content,
            )
        )

    @router.post("/export/batch")
    def export_batch(request: BatchRequest) -> dict[str, Any]:
        """Export several citekeys into one blob, skipping unknown ones."""
        try:
            dialect = get_dialect(request.format)
        except ExportError as exc:
            raise ApiError(400, str(exc)) from exc

        citekeys = [key.strip() for key in request.citekeys if key.strip()]
        if not citekeys:
            raise ApiError(400, "No citekeys supplied.")

        entries, labels, missing = resolve_items(library, citekeys=citekeys)
        for citekey in missing:
            logger.info("Skipping unknown citekey %s", citekey)

        result = exporter.generate_batch_content(entries, dialect, labels)
        if result is None:
            raise ApiError(404, "No annotations found for the requested citekeys.")

        return _payload(BatchResponse.model_validate(asdict(result)))

    return router


def create_app(library: Library) -> FastAPI:
    """Return a FastAPI application exporting annotations from ``library``."""

    app = FastAPI(title="zotnotes", docs_url=None, redoc_url=None)
    app.include_router(create_router(library))

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_payload(ErrorResponse(error=exc.message)),
        )

    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Export request failed")
        return JSONResponse(
            status_code=500,
            content=_payload(ErrorResponse(error=f"Error processing request: {exc}")),
        )

    # RuntimeError covers storage and plugin failures raised inside handlers.
    app.add_exception_handler(RuntimeError, handle_unexpected)
    app.add_exception_handler(Exception, handle_unexpected)

    return app


__all__ = ["ApiError", "create_app", "create_router"]
