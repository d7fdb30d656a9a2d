"""
Source interfaces for everything the pipeline reads from outside.

Live implementations talk to RCSB, AlphaFold DB, PDBe and NCBI; fixture
implementations serve the same shapes from bundled data.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple


class StructureSource(ABC):
    """
    Shapes:
        search_pdb -> [{"id": "4OBE", "score": 1.0}, ...] in search rank order
        fetch_pdb_entries -> [{"id", "resolution", "title", "coverage"}, ...]
        fetch_alphafold -> {"id", "url", "title", "coverage"} or None
        fetch_sifts_mappings -> PDBe /mappings/uniprot payload or None
        fetch_observed_ranges -> PDBe /pdb/entry/polymer_coverage payload or None
    """

    @abstractmethod
    async def search_pdb(self, accession: str) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def fetch_pdb_entries(self, pdb_ids: Sequence[str], accession: str) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def fetch_alphafold(self, accession: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def fetch_sifts_mappings(self, pdb_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def fetch_observed_ranges(self, pdb_id: str) -> Optional[Dict[str, Any]]:
        ...


class EvidenceSource(ABC):
    """
    Shapes follow NCBI E-utilities JSON:
        search_clinvar -> [uid, ...]
        clinvar_summary -> esummary document for one uid, or None
        search_pubmed -> (count, [pmid, ...])
        pubmed_summaries -> {pmid: esummary document}
    """

    @abstractmethod
    async def search_clinvar(self, term: str) -> List[str]:
        ...

    @abstractmethod
    async def clinvar_summary(self, uid: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def search_pubmed(self, term: str, retmax: int) -> Tuple[int, List[str]]:
        ...

    @abstractmethod
    async def pubmed_summaries(self, pmids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        ...
