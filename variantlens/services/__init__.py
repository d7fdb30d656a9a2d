"""
Pipeline services: normalization, gene/structure resolution, residue
mapping, evidence aggregation and batch orchestration.
"""
from .normalizer import normalize
from .gene_resolver import GeneRecord, GeneResolver
from .structure_resolver import StructureResolver
from .residue_mapper import ResidueMapper
from .evidence_aggregator import EvidenceAggregator
from .pipeline import VariantPipeline
from .job_orchestrator import JobOrchestrator, JobStatus

__all__ = [
    "normalize",
    "GeneRecord",
    "GeneResolver",
    "StructureResolver",
    "ResidueMapper",
    "EvidenceAggregator",
    "VariantPipeline",
    "JobOrchestrator",
    "JobStatus",
]
