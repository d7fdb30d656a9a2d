"""
Fixture-backed sources for offline runs and tests.
"""
import copy
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..rate_limiter import OutboundThrottle
from .base import EvidenceSource, StructureSource
from .fixture_data import EVIDENCE_FIXTURES, STRUCTURE_FIXTURES

logger = logging.getLogger(__name__)


class _FixtureSource:
    def __init__(self, throttle: Optional[OutboundThrottle] = None):
        self.throttle = throttle
        self.calls: List[Tuple[str, str]] = []

    async def _tick(self, operation: str, key: str) -> None:
        if self.throttle is not None:
            await self.throttle.acquire()
        self.calls.append((operation, key))


class FixtureStructureSource(_FixtureSource, StructureSource):
    def __init__(self, data: Optional[Dict[str, Any]] = None, throttle: Optional[OutboundThrottle] = None):
        super().__init__(throttle)
        self.data = data if data is not None else STRUCTURE_FIXTURES

    def _accession(self, accession: str) -> Dict[str, Any]:
        return self.data.get("accessions", {}).get(accession.upper(), {})

    async def search_pdb(self, accession: str) -> List[Dict[str, Any]]:
        await self._tick("search_pdb", accession)
        return copy.deepcopy(self._accession(accession).get("search", []))

    async def fetch_pdb_entries(self, pdb_ids: Sequence[str], accession: str) -> List[Dict[str, Any]]:
        await self._tick("fetch_pdb_entries", ",".join(pdb_ids))
        entries = self._accession(accession).get("entries", {})
        return [copy.deepcopy(entries[pdb_id]) for pdb_id in pdb_ids if pdb_id in entries]

    async def fetch_alphafold(self, accession: str) -> Optional[Dict[str, Any]]:
        await self._tick("fetch_alphafold", accession)
        return copy.deepcopy(self._accession(accession).get("alphafold"))

    async def fetch_sifts_mappings(self, pdb_id: str) -> Optional[Dict[str, Any]]:
        await self._tick("fetch_sifts_mappings", pdb_id)
        payload = self.data.get("sifts", {}).get(pdb_id.lower())
        return {pdb_id.lower(): copy.deepcopy(payload)} if payload is not None else None

    async def fetch_observed_ranges(self, pdb_id: str) -> Optional[Dict[str, Any]]:
        await self._tick("fetch_observed_ranges", pdb_id)
        payload = self.data.get("coverage", {}).get(pdb_id.lower())
        return {pdb_id.lower(): copy.deepcopy(payload)} if payload is not None else None


def _term_matches(term: str, gene: str, names: Sequence[str]) -> bool:
    if gene.upper() not in term.upper():
        return False
    return any(name in term for name in names)


class FixtureEvidenceSource(_FixtureSource, EvidenceSource):
    def __init__(self, data: Optional[Dict[str, Any]] = None, throttle: Optional[OutboundThrottle] = None):
        super().__init__(throttle)
        self.data = data if data is not None else EVIDENCE_FIXTURES

    async def search_clinvar(self, term: str) -> List[str]:
        await self._tick("search_clinvar", term)
        for record in self.data.get("clinvar", []):
            if _term_matches(term, record["gene"], record["names"]):
                return [record["doc"]["uid"]]
        return []

    async def clinvar_summary(self, uid: str) -> Optional[Dict[str, Any]]:
        await self._tick("clinvar_summary", uid)
        for record in self.data.get("clinvar", []):
            if record["doc"]["uid"] == uid:
                return copy.deepcopy(record["doc"])
        return None

    async def search_pubmed(self, term: str, retmax: int) -> Tuple[int, List[str]]:
        await self._tick("search_pubmed", term)
        for record in self.data.get("pubmed", []):
            if _term_matches(term, record["gene"], record["names"]):
                return record["count"], list(record["pmids"][:retmax])
        return 0, []

    async def pubmed_summaries(self, pmids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        await self._tick("pubmed_summaries", ",".join(pmids))
        docs = self.data.get("pubmed_docs", {})
        return {pmid: copy.deepcopy(docs[pmid]) for pmid in pmids if pmid in docs}
