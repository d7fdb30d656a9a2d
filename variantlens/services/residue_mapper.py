"""
Residue Mapper

Maps a UniProt position onto a structure's chain/residue using PDBe SIFTS
segment mappings. The answer is conservative: anything that cannot be
verified from SIFTS is reported as mapped=False with a reason, never
approximated from sequence offsets.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..errors import UpstreamUnavailableError
from ..schemas.structure import ResidueMapping, StructureCandidate, StructureSourceName
from .sources.base import StructureSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiftsSegment:
    chain: str
    unp_start: int
    unp_end: int
    residue_start: int
    residue_end: int
    author_start: Optional[int]
    author_end: Optional[int]
    start_insertion_code: str
    end_insertion_code: str

    def covers(self, position: int) -> bool:
        return self.unp_start <= position <= self.unp_end

    @property
    def consistent(self) -> bool:
        span = self.unp_end - self.unp_start
        if self.residue_end - self.residue_start != span:
            return False
        if self.author_start is not None and self.author_end is not None:
            return self.author_end - self.author_start == span
        return True


def parse_sifts_segments(payload: Optional[Dict[str, Any]], pdb_id: str, accession: str) -> List[SiftsSegment]:
    """Extract the segments for one accession from a PDBe mappings payload."""
    if not payload:
        return []
    entry = payload.get(pdb_id.lower()) or payload.get(pdb_id.upper()) or {}
    uniprot = entry.get("UniProt") or {}
    block = next((v for k, v in uniprot.items() if k.upper() == accession.upper()), None)
    if not block:
        return []

    segments = []
    for m in block.get("mappings") or []:
        start, end = m.get("start") or {}, m.get("end") or {}
        if None in (m.get("unp_start"), m.get("unp_end"), start.get("residue_number"), end.get("residue_number")):
            continue
        segments.append(SiftsSegment(
            chain=m.get("chain_id") or m.get("struct_asym_id") or "?",
            unp_start=int(m["unp_start"]),
            unp_end=int(m["unp_end"]),
            residue_start=int(start["residue_number"]),
            residue_end=int(end["residue_number"]),
            author_start=start.get("author_residue_number"),
            author_end=end.get("author_residue_number"),
            start_insertion_code=(start.get("author_insertion_code") or "").strip(),
            end_insertion_code=(end.get("author_insertion_code") or "").strip(),
        ))
    return sorted(segments, key=lambda s: (s.chain, s.unp_start))


def parse_observed_ranges(payload: Optional[Dict[str, Any]], pdb_id: str) -> Optional[Dict[str, List[Tuple[int, int]]]]:
    """chain_id -> observed (start, end) residue_number ranges, or None if absent."""
    if not payload:
        return None
    entry = payload.get(pdb_id.lower()) or payload.get(pdb_id.upper())
    if not entry:
        return None
    ranges: Dict[str, List[Tuple[int, int]]] = {}
    for molecule in entry.get("molecules") or []:
        for chain in molecule.get("chains") or []:
            chain_id = chain.get("chain_id") or chain.get("struct_asym_id")
            for observed in chain.get("observed") or []:
                start = (observed.get("start") or {}).get("residue_number")
                end = (observed.get("end") or {}).get("residue_number")
                if start is None or end is None:
                    continue
                ranges.setdefault(chain_id, []).append((int(start), int(end)))
    return ranges


def _author_label(segment: SiftsSegment, offset: int) -> Optional[str]:
    """Author residue number (plus insertion code), or None if not derivable."""
    if segment.author_start is None:
        return None
    number = int(segment.author_start) + offset
    if offset == 0:
        return f"{number}{segment.start_insertion_code}"
    if segment.unp_start + offset == segment.unp_end and segment.end_insertion_code:
        return f"{segment.author_end}{segment.end_insertion_code}"
    if segment.start_insertion_code or segment.end_insertion_code:
        # inner residue of a segment that uses insertion codes
        return None
    return str(number)


class ResidueMapper:
    def __init__(self, source: StructureSource):
        self.source = source

    @staticmethod
    def _unmapped(structure: StructureCandidate, reason: str, upstream_unavailable: bool = False) -> ResidueMapping:
        return ResidueMapping(
            mapped=False, structure_id=structure.id, reason=reason, upstream_unavailable=upstream_unavailable
        )

    async def map_residue(
        self, structure: StructureCandidate, accession: str, uniprot_position: int
    ) -> ResidueMapping:
        """
        Args:
            structure: Chosen structure candidate
            accession: UniProt accession the position refers to
            uniprot_position: 1-based residue index in the canonical sequence

        Returns:
            ResidueMapping; mapped=True only when SIFTS places the residue on
            an observed residue of a chain.
        """
        if structure.source == StructureSourceName.ALPHAFOLD:
            return self._unmapped(structure, "SIFTS does not cover AlphaFold models")

        try:
            payload = await self.source.fetch_sifts_mappings(structure.id)
        except UpstreamUnavailableError as e:
            logger.warning(f"SIFTS unavailable for {structure.id}: {e.message}")
            return self._unmapped(structure, f"SIFTS unavailable: {e.reason}", upstream_unavailable=True)

        segments = [s for s in parse_sifts_segments(payload, structure.id, accession) if s.covers(uniprot_position)]
        if not segments:
            return self._unmapped(structure, f"UniProt residue {uniprot_position} is not in any SIFTS segment")

        consistent = [s for s in segments if s.consistent]
        if not consistent:
            return self._unmapped(structure, "SIFTS segment spans disagree")

        try:
            observed = parse_observed_ranges(await self.source.fetch_observed_ranges(structure.id), structure.id)
        except UpstreamUnavailableError as e:
            logger.warning(f"Observed-residue coverage unavailable for {structure.id}: {e.message}")
            return self._unmapped(
                structure, f"observed-residue coverage unavailable: {e.reason}", upstream_unavailable=True
            )
        if observed is None:
            return self._unmapped(structure, "observed-residue coverage not published for this entry")

        insertion_blocked = False
        for segment in consistent:
            offset = uniprot_position - segment.unp_start
            residue_number = segment.residue_start + offset
            chain_ranges = observed.get(segment.chain, [])
            if not any(start <= residue_number <= end for start, end in chain_ranges):
                continue
            label = _author_label(segment, offset)
            if label is None:
                insertion_blocked = True
                continue
            return ResidueMapping(
                mapped=True,
                chain=segment.chain,
                structure_residue=label,
                structure_id=structure.id,
            )

        if insertion_blocked:
            return self._unmapped(structure, "author numbering uses insertion codes inside the segment")
        return self._unmapped(
            structure, f"UniProt residue {uniprot_position} has no observed density in {structure.id}"
        )
