"""
Admin-only audit log access.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ..audit import ACTION_AUDIT_READ
from ..audit.writer import RECENT_DEFAULT, RECENT_MAX
from ..dependencies import get_services
from ..errors import ValidationError
from ..middleware.admin_middleware import require_admin_key
from ..services.container import ServiceContainer

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("")
async def read_audit(
    format: str = Query("summary", description="summary | csv | json"),
    limit: int = Query(RECENT_DEFAULT, ge=1, description=f"json only; capped at {RECENT_MAX}"),
    admin: str = Depends(require_admin_key),
    services: ServiceContainer = Depends(get_services),
):
    fmt = format.lower()
    if fmt not in ("summary", "csv", "json"):
        raise ValidationError(f"Unsupported format '{format}'; use summary, csv or json")

    audit = services.audit
    audit.record(actor=admin, action=ACTION_AUDIT_READ, outcome="success", variant=None)

    if fmt == "csv":
        return Response(
            content=audit.export_csv(),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": 'attachment; filename="variantlens-audit.csv"'},
        )
    if fmt == "json":
        entries = audit.recent(limit)
        return {"count": len(entries), "limit": min(limit, RECENT_MAX), "entries": [e.to_dict() for e in entries]}

    is_valid, errors = audit.verify_chain()
    return {**audit.summary(), "chain_valid": is_valid, "chain_errors": errors}
