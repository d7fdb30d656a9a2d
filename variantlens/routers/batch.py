"""
Batch submission and job status endpoints.
"""
from fastapi import APIRouter, Depends

from ..dependencies import batch_rate_limit, get_services
from ..schemas.requests import BatchRequest, BatchSubmitResponse, JobStatusResponse
from ..services.container import ServiceContainer

router = APIRouter(prefix="/batch", tags=["batch"])


@router.post("", status_code=202, response_model=BatchSubmitResponse)
async def submit_batch(
    request: BatchRequest,
    client: str = Depends(batch_rate_limit),
    services: ServiceContainer = Depends(get_services),
):
    """Queue up to 20 variants; poll the returned URL for results."""
    job = await services.orchestrator.submit(request.variants)
    return BatchSubmitResponse(
        job_id=job.job_id,
        status=job.status.value,
        poll_url=f"/batch/{job.job_id}/status",
        variants_count=len(job.variants),
    )


@router.get("/{job_id}/status", response_model=JobStatusResponse)
async def batch_status(job_id: str, services: ServiceContainer = Depends(get_services)):
    job = services.orchestrator.status(job_id)
    return JobStatusResponse(**job.to_dict())
