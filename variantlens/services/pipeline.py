"""
Variant Pipeline

normalize -> resolve gene -> validate position -> (structure || evidence)
-> map residue -> Report

Every attempt, successful or not, produces exactly one audit entry.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from ..audit import ACTION_RESOLVE, AuditWriter
from ..config import APP_VERSION, RESEARCH_DISCLAIMER
from ..errors import VariantLensError
from ..schemas.report import Provenance, Report
from ..schemas.structure import StructureSourceName
from .evidence_aggregator import EvidenceAggregator, EvidenceResult
from .gene_resolver import GeneRecord, GeneResolver
from .normalizer import normalize
from .residue_mapper import ResidueMapper
from .structure_resolver import StructureResolution, StructureResolver

logger = logging.getLogger(__name__)


def build_provenance(
    gene: GeneRecord,
    resolution: StructureResolution,
    evidence: EvidenceResult,
    sifts_queried: bool,
    unavailable,
    app_version: str = APP_VERSION,
) -> Provenance:
    structure = resolution.candidate
    queries = {
        "structure_strategies": [o.to_dict() for o in resolution.outcomes],
        "pdb_search": {"accession": gene.uniprot_accession},
        "clinvar": evidence.bundle.queries.clinvar,
        "pubmed": evidence.bundle.queries.pubmed,
    }
    if any(o.strategy == StructureSourceName.ALPHAFOLD.value for o in resolution.outcomes):
        queries["alphafold"] = {"accession": gene.uniprot_accession}
    if sifts_queried:
        queries["sifts"] = {"pdb_id": structure.id, "accession": gene.uniprot_accession}

    bundle = evidence.bundle
    return Provenance(
        generated_at=datetime.now(timezone.utc).isoformat(),
        app_version=app_version,
        queries=queries,
        source_ids={
            "uniprot": gene.uniprot_accession,
            "structure": structure.id,
            "structure_source": structure.source.value,
            "clinvar": bundle.clinvar.id if bundle.clinvar else None,
            "pubmed": [c.id for c in bundle.pubmed],
        },
        unavailable=list(unavailable),
        disclaimer=RESEARCH_DISCLAIMER,
    )


class VariantPipeline:
    def __init__(
        self,
        genes: GeneResolver,
        structures: StructureResolver,
        mapper: ResidueMapper,
        evidence: EvidenceAggregator,
        audit: AuditWriter,
        app_version: str = APP_VERSION,
    ):
        self.genes = genes
        self.structures = structures
        self.mapper = mapper
        self.evidence = evidence
        self.audit = audit
        self.app_version = app_version

    async def run(self, raw: str, actor: str = "anonymous", request_id: Optional[str] = None) -> Report:
        """
        Resolve one variant to a Report.

        Raises:
            VariantLensError subclasses (ParseError, UnknownGeneError,
            InvalidPositionError, NoStructureError, UpstreamUnavailableError)
        """
        started = time.perf_counter()
        outcome = "INTERNAL_ERROR"
        gene_symbol = None
        try:
            variant = normalize(raw, resolver=self.genes)
            gene_symbol = variant.gene
            gene = self.genes.resolve(variant.gene)
            gene_symbol = gene.symbol
            self.genes.validate_position(gene, variant.position)

            structure_task = asyncio.ensure_future(
                self.structures.resolve_with_trace(gene.uniprot_accession, variant.position)
            )
            evidence_task = asyncio.ensure_future(self.evidence.collect(gene.symbol, variant.protein_change))
            try:
                resolution, evidence = await asyncio.gather(structure_task, evidence_task)
            except BaseException:
                structure_task.cancel()
                evidence_task.cancel()
                raise
            structure = resolution.candidate
            mapping = await self.mapper.map_residue(structure, gene.uniprot_accession, variant.position)

            unavailable = list(evidence.unavailable)
            if mapping.upstream_unavailable:
                unavailable.append("SIFTS")

            report = Report(
                variant=variant,
                structure=structure,
                residue_mapping=mapping,
                evidence=evidence.bundle,
                provenance=build_provenance(
                    gene,
                    resolution,
                    evidence,
                    sifts_queried=structure.source == StructureSourceName.PDB,
                    unavailable=unavailable,
                    app_version=self.app_version,
                ),
            )
            outcome = "success"
            return report
        except VariantLensError as e:
            outcome = e.code
            raise
        finally:
            latency_ms = (time.perf_counter() - started) * 1000
            self.audit.record(
                actor=actor,
                action=ACTION_RESOLVE,
                outcome=outcome,
                latency_ms=latency_ms,
                variant=raw,
                gene=gene_symbol,
                request_id=request_id,
            )
            logger.info(f"Resolved {raw!r} -> {outcome} in {latency_ms:.0f}ms")
