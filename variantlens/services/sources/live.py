"""
Live sources: RCSB search + GraphQL, AlphaFold DB, PDBe SIFTS, NCBI E-utilities.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...config import (
    ALPHAFOLD_API_URL,
    EUTILS_URL,
    NCBI_API_KEY,
    PDBE_API_URL,
    RCSB_GRAPHQL_URL,
    RCSB_SEARCH_URL,
)
from ..upstream import UpstreamClient
from .base import EvidenceSource, StructureSource

logger = logging.getLogger(__name__)

ACCESSION_ATTRIBUTE = "rcsb_polymer_entity_container_identifiers.reference_sequence_identifiers.database_accession"

ENTRY_METADATA_QUERY = """
query entryMetadata($ids: [String!]!) {
  entries(entry_ids: $ids) {
    rcsb_id
    struct { title }
    rcsb_entry_info { resolution_combined }
    polymer_entities {
      rcsb_polymer_entity_align {
        reference_database_name
        reference_database_accession
        aligned_regions { ref_beg_seq_id length }
      }
    }
  }
}
"""


def _entry_coverage(entry: Dict[str, Any], accession: str) -> Optional[List[int]]:
    starts, ends = [], []
    for entity in entry.get("polymer_entities") or []:
        for align in entity.get("rcsb_polymer_entity_align") or []:
            if (align.get("reference_database_accession") or "").upper() != accession.upper():
                continue
            for region in align.get("aligned_regions") or []:
                begin, length = region.get("ref_beg_seq_id"), region.get("length")
                if begin is None or not length:
                    continue
                starts.append(begin)
                ends.append(begin + length - 1)
    if not starts:
        return None
    return [min(starts), max(ends)]


class HttpStructureSource(StructureSource):
    def __init__(self, client: UpstreamClient, search_rows: int = 25):
        self.client = client
        self.search_rows = search_rows

    async def search_pdb(self, accession: str) -> List[Dict[str, Any]]:
        body = {
            "query": {
                "type": "terminal",
                "service": "text",
                "parameters": {
                    "attribute": ACCESSION_ATTRIBUTE,
                    "operator": "exact_match",
                    "value": accession,
                },
            },
            "return_type": "entry",
            "request_options": {"paginate": {"start": 0, "rows": self.search_rows}},
        }
        # RCSB answers 204 when nothing matches
        data = await self.client.request_json("RCSB", "POST", RCSB_SEARCH_URL, json=body, empty_statuses=(204, 404))
        if not data:
            return []
        return [
            {"id": hit["identifier"].upper(), "score": hit.get("score")}
            for hit in data.get("result_set") or []
            if hit.get("identifier")
        ]

    async def fetch_pdb_entries(self, pdb_ids: Sequence[str], accession: str) -> List[Dict[str, Any]]:
        if not pdb_ids:
            return []
        payload = {"query": ENTRY_METADATA_QUERY, "variables": {"ids": list(pdb_ids)}}
        data = await self.client.request_json("RCSB", "POST", RCSB_GRAPHQL_URL, json=payload)
        entries = ((data or {}).get("data") or {}).get("entries") or []
        results = []
        for entry in entries:
            if not entry:
                continue
            resolutions = (entry.get("rcsb_entry_info") or {}).get("resolution_combined") or []
            results.append({
                "id": entry["rcsb_id"].upper(),
                "resolution": float(resolutions[0]) if resolutions else None,
                "title": (entry.get("struct") or {}).get("title"),
                "coverage": _entry_coverage(entry, accession),
            })
        return results

    async def fetch_alphafold(self, accession: str) -> Optional[Dict[str, Any]]:
        data = await self.client.request_json(
            "AlphaFold", "GET", f"{ALPHAFOLD_API_URL}/{accession}", empty_statuses=(400, 404)
        )
        if not data:
            return None
        model = data[0] if isinstance(data, list) else data
        start, end = model.get("uniprotStart"), model.get("uniprotEnd")
        return {
            "id": model.get("entryId") or f"AF-{accession}-F1",
            "url": model.get("pdbUrl"),
            "title": model.get("uniprotDescription"),
            "coverage": [start, end] if start and end else None,
        }

    async def fetch_sifts_mappings(self, pdb_id: str) -> Optional[Dict[str, Any]]:
        return await self.client.request_json("PDBe", "GET", f"{PDBE_API_URL}/mappings/uniprot/{pdb_id.lower()}")

    async def fetch_observed_ranges(self, pdb_id: str) -> Optional[Dict[str, Any]]:
        return await self.client.request_json(
            "PDBe", "GET", f"{PDBE_API_URL}/pdb/entry/polymer_coverage/{pdb_id.lower()}"
        )


class HttpEvidenceSource(EvidenceSource):
    def __init__(self, client: UpstreamClient, api_key: Optional[str] = NCBI_API_KEY):
        self.client = client
        self.api_key = api_key

    def _params(self, **params) -> Dict[str, Any]:
        params["retmode"] = "json"
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    async def _esearch(self, db: str, term: str, retmax: int, **extra) -> Dict[str, Any]:
        data = await self.client.request_json(
            "NCBI", "GET", f"{EUTILS_URL}/esearch.fcgi", params=self._params(db=db, term=term, retmax=retmax, **extra)
        )
        return (data or {}).get("esearchresult") or {}

    async def _esummary(self, db: str, ids: Sequence[str]) -> Dict[str, Any]:
        data = await self.client.request_json(
            "NCBI", "GET", f"{EUTILS_URL}/esummary.fcgi", params=self._params(db=db, id=",".join(ids))
        )
        return (data or {}).get("result") or {}

    async def search_clinvar(self, term: str) -> List[str]:
        result = await self._esearch("clinvar", term, retmax=1)
        return list(result.get("idlist") or [])

    async def clinvar_summary(self, uid: str) -> Optional[Dict[str, Any]]:
        result = await self._esummary("clinvar", [uid])
        return result.get(uid)

    async def search_pubmed(self, term: str, retmax: int) -> Tuple[int, List[str]]:
        result = await self._esearch("pubmed", term, retmax=retmax, sort="pub_date")
        return int(result.get("count") or 0), list(result.get("idlist") or [])

    async def pubmed_summaries(self, pmids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        if not pmids:
            return {}
        result = await self._esummary("pubmed", pmids)
        return {pmid: result[pmid] for pmid in pmids if isinstance(result.get(pmid), dict)}
