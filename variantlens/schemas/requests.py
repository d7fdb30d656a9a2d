"""
Request/response models for the variant, batch and audit endpoints.
"""
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import CamelModel


class VariantRequest(CamelModel):
    hgvs: str = Field(..., description="Protein-level HGVS, e.g. KRAS:p.G12D")


class BatchRequest(CamelModel):
    variants: List[str] = Field(..., description="Up to 20 protein-level HGVS strings")


class BatchSubmitResponse(CamelModel):
    job_id: str
    status: str
    poll_url: str
    variants_count: int


class JobStatusResponse(CamelModel):
    job_id: str
    status: str
    variants_count: int
    progress: Dict[str, int]
    created_at: str
    updated_at: str
    results: Optional[List[Optional[Dict[str, Any]]]] = None
    error: Optional[str] = None
