"""
Pydantic schemas for the variant resolution API.
"""
from .variant import NormalizedVariant, VariantType
from .structure import ResidueMapping, StructureCandidate, StructureSourceName
from .evidence import (
    ClinVarRecord,
    EvidenceBundle,
    EvidenceQueries,
    PubMedCitation,
    assert_passthrough,
)
from .report import Provenance, Report
from .requests import BatchRequest, BatchSubmitResponse, JobStatusResponse, VariantRequest

__all__ = [
    "NormalizedVariant",
    "VariantType",
    "ResidueMapping",
    "StructureCandidate",
    "StructureSourceName",
    "ClinVarRecord",
    "EvidenceBundle",
    "EvidenceQueries",
    "PubMedCitation",
    "assert_passthrough",
    "Provenance",
    "Report",
    "BatchRequest",
    "BatchSubmitResponse",
    "JobStatusResponse",
    "VariantRequest",
]
