"""
Terminal report model returned by a successful pipeline run.
"""
from typing import Any, Dict, List

from .base import CamelModel
from .evidence import EvidenceBundle
from .structure import ResidueMapping, StructureCandidate
from .variant import NormalizedVariant


class Provenance(CamelModel):
    model_config = {"frozen": True}

    generated_at: str
    app_version: str
    queries: Dict[str, Any]
    source_ids: Dict[str, Any]
    unavailable: List[str] = []
    disclaimer: str


class Report(CamelModel):
    model_config = {"frozen": True}

    variant: NormalizedVariant
    structure: StructureCandidate
    residue_mapping: ResidueMapping
    evidence: EvidenceBundle
    provenance: Provenance
