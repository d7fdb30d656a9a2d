"""
Evidence Aggregator

Collects ClinVar and PubMed records for a normalized variant and copies
allow-listed fields verbatim. No field is ever derived, scored or
summarized; the finished bundle is checked with assert_passthrough before
it leaves this module.

ClinVar and PubMed are optional: an outage of either degrades to an empty
slot and is reported back to the caller, it does not fail the variant.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..errors import UpstreamUnavailableError
from ..schemas.evidence import (
    ClinVarRecord,
    EvidenceBundle,
    EvidenceQueries,
    PubMedCitation,
    assert_passthrough,
)
from .sources.base import EvidenceSource

logger = logging.getLogger(__name__)

PUBMED_MAX_RESULTS = 5
_YEAR_RE = re.compile(r"\b(\d{4})\b")


@dataclass(frozen=True)
class EvidenceResult:
    bundle: EvidenceBundle
    unavailable: Tuple[str, ...] = field(default_factory=tuple)


def clinvar_query(gene: str, protein_change: str) -> str:
    return f"{gene}[gene] AND ({protein_change}[variant name] OR p.{protein_change}[variant name])"


def pubmed_query(gene: str, protein_change: str) -> str:
    return (
        f'"{gene}"[Title/Abstract] AND '
        f'("p.{protein_change}"[Title/Abstract] OR "{protein_change}"[Title/Abstract])'
    )


def clinvar_record_from_summary(doc: Dict[str, Any]) -> ClinVarRecord:
    """Copy the allow-listed fields out of a ClinVar esummary document."""
    classification = doc.get("germline_classification") or doc.get("clinical_significance") or {}
    traits = classification.get("trait_set") or doc.get("trait_set") or []
    return ClinVarRecord(
        id=str(doc.get("uid")),
        significance=classification.get("description") or None,
        review_status=classification.get("review_status") or None,
        conditions=[t["trait_name"] for t in traits if t.get("trait_name")],
        last_updated=classification.get("last_evaluated") or classification.get("last_evaluation") or None,
    )


def citation_from_summary(pmid: str, doc: Dict[str, Any]) -> PubMedCitation:
    pubdate = doc.get("pubdate") or doc.get("epubdate") or ""
    match = _YEAR_RE.search(pubdate)
    return PubMedCitation(
        id=str(doc.get("uid") or pmid),
        title=doc.get("title") or None,
        source=doc.get("source") or None,
        year=match.group(1) if match else None,
    )


class EvidenceAggregator:
    def __init__(self, source: EvidenceSource, pubmed_max: int = PUBMED_MAX_RESULTS):
        self.source = source
        self.pubmed_max = pubmed_max

    async def _clinvar(self, term: str) -> Optional[ClinVarRecord]:
        ids = await self.source.search_clinvar(term)
        if not ids:
            return None
        doc = await self.source.clinvar_summary(ids[0])
        if not doc:
            return None
        return clinvar_record_from_summary(doc)

    async def _pubmed(self, term: str) -> Tuple[int, List[PubMedCitation]]:
        count, pmids = await self.source.search_pubmed(term, self.pubmed_max)
        if not pmids:
            return count, []
        docs = await self.source.pubmed_summaries(pmids)
        return count, [citation_from_summary(pmid, docs[pmid]) for pmid in pmids if pmid in docs]

    async def collect(self, gene: str, protein_change: str) -> EvidenceResult:
        """
        Gather ClinVar and PubMed evidence concurrently.

        Returns:
            EvidenceResult with the bundle and the names of sources that
            were unavailable.
        """
        queries = EvidenceQueries(
            clinvar=clinvar_query(gene, protein_change),
            pubmed=pubmed_query(gene, protein_change),
        )
        clinvar_result, pubmed_result = await asyncio.gather(
            self._clinvar(queries.clinvar),
            self._pubmed(queries.pubmed),
            return_exceptions=True,
        )

        unavailable = []
        if isinstance(clinvar_result, UpstreamUnavailableError):
            logger.warning(f"ClinVar unavailable for {gene}:{protein_change}: {clinvar_result.message}")
            unavailable.append("ClinVar")
            clinvar_result = None
        elif isinstance(clinvar_result, BaseException):
            raise clinvar_result

        if isinstance(pubmed_result, UpstreamUnavailableError):
            logger.warning(f"PubMed unavailable for {gene}:{protein_change}: {pubmed_result.message}")
            unavailable.append("PubMed")
            pubmed_result = (0, [])
        elif isinstance(pubmed_result, BaseException):
            raise pubmed_result

        count, citations = pubmed_result
        bundle = EvidenceBundle(
            clinvar=clinvar_result,
            pubmed=citations,
            pubmed_count=count,
            queries=queries,
        )
        assert_passthrough(bundle)
        return EvidenceResult(bundle=bundle, unavailable=tuple(unavailable))

    async def aggregate_evidence(self, gene: str, protein_change: str) -> EvidenceBundle:
        result = await self.collect(gene, protein_change)
        return result.bundle
