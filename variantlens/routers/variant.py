"""
Single-variant resolution endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from ..dependencies import get_services, variant_rate_limit
from ..errors import ValidationError
from ..schemas.report import Report
from ..schemas.requests import VariantRequest
from ..services.container import ServiceContainer
from ..services.report_export import generate_markdown

router = APIRouter(prefix="", tags=["variant"])

FORMATS = ("json", "md")


def _render(report: Report, fmt: Optional[str]):
    fmt = (fmt or "json").lower()
    if fmt not in FORMATS:
        raise ValidationError(f"Unsupported format '{fmt}'; use one of {', '.join(FORMATS)}")
    if fmt == "md":
        return PlainTextResponse(generate_markdown(report), media_type="text/markdown; charset=utf-8")
    return JSONResponse(report.model_dump(by_alias=True, mode="json"))


@router.post("/variant")
async def resolve_variant(
    request: VariantRequest,
    format: Optional[str] = Query(None, description="json (default) or md"),
    client: str = Depends(variant_rate_limit),
    services: ServiceContainer = Depends(get_services),
):
    """
    Resolve one protein-level variant to structure, residue mapping and evidence.

    Input: { hgvs: "KRAS:p.G12D" }
    """
    report = await services.pipeline.run(request.hgvs, actor=client)
    return _render(report, format)


@router.get("/variant")
async def resolve_variant_get(
    hgvs: str = Query(..., description="Protein-level HGVS, e.g. TP53:p.R175H"),
    format: Optional[str] = Query(None, description="json (default) or md"),
    client: str = Depends(variant_rate_limit),
    services: ServiceContainer = Depends(get_services),
):
    report = await services.pipeline.run(hgvs, actor=client)
    return _render(report, format)
