"""
Structure Resolver

Chooses one 3D structure for a UniProt accession by trying an ordered list
of strategies. Each attempt yields a StrategyOutcome; the first outcome with
a candidate wins.

Default order:
1. PdbStrategy - experimental entries at or better than the resolution
   threshold that cover the variant residue, ranked by (resolution asc,
   search score desc). Entries above the threshold, or whose coverage
   misses the residue, are excluded before ranking; entries without a
   resolution (NMR) are kept and ranked after every resolved entry.
2. AlphaFoldStrategy - predicted model from AlphaFold DB.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import PDB_MAX_CANDIDATES, RESOLUTION_THRESHOLD_ANGSTROM
from ..errors import NoStructureError
from ..schemas.structure import StructureCandidate, StructureSourceName
from .sources.base import StructureSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyOutcome:
    strategy: str
    candidate: Optional[StructureCandidate] = None
    considered: Tuple[str, ...] = ()
    excluded: Tuple[str, ...] = ()
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.candidate is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "candidate": self.candidate.id if self.candidate else None,
            "considered": list(self.considered),
            "excluded": list(self.excluded),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class StructureResolution:
    candidate: StructureCandidate
    outcomes: Tuple[StrategyOutcome, ...] = field(default_factory=tuple)


def _coverage(value) -> Optional[Tuple[int, int]]:
    if not value or len(value) != 2 or None in value:
        return None
    return int(value[0]), int(value[1])


def rank_pdb_candidates(candidates: Sequence[StructureCandidate]) -> List[StructureCandidate]:
    """Best first: lowest resolution, then highest search score; entries without a resolution (NMR) last."""
    return sorted(
        candidates,
        key=lambda c: (
            c.resolution_angstrom is None,
            c.resolution_angstrom or 0.0,
            -(c.search_score if c.search_score is not None else 0.0),
        ),
    )


def _covers(coverage: Optional[Tuple[int, int]], position: Optional[int]) -> bool:
    """Unknown coverage is left to the residue mapper to verify."""
    if position is None or coverage is None:
        return True
    return coverage[0] <= position <= coverage[1]


class PdbStrategy:
    name = StructureSourceName.PDB.value

    def __init__(
        self,
        source: StructureSource,
        threshold: float = RESOLUTION_THRESHOLD_ANGSTROM,
        max_candidates: int = PDB_MAX_CANDIDATES,
    ):
        self.source = source
        self.threshold = threshold
        self.max_candidates = max_candidates

    async def attempt(self, accession: str, position: Optional[int] = None) -> StrategyOutcome:
        hits = await self.source.search_pdb(accession)
        if not hits:
            return StrategyOutcome(self.name, reason="no PDB entries for accession")

        hits = hits[: self.max_candidates]
        scores = {hit["id"]: hit.get("score") for hit in hits}
        entries = await self.source.fetch_pdb_entries(list(scores), accession)

        eligible, excluded = [], []
        for entry in entries:
            resolution = entry.get("resolution")
            coverage = _coverage(entry.get("coverage"))
            # no resolution (NMR) is kept and ranked last
            if resolution is not None and resolution > self.threshold:
                excluded.append(entry["id"])
                continue
            if not _covers(coverage, position):
                excluded.append(entry["id"])
                continue
            eligible.append(StructureCandidate(
                id=entry["id"],
                source=StructureSourceName.PDB,
                resolution_angstrom=float(resolution) if resolution is not None else None,
                coverage=coverage,
                title=entry.get("title"),
                search_score=scores.get(entry["id"]),
                url=f"https://www.rcsb.org/structure/{entry['id']}",
            ))

        considered = tuple(scores)
        if not eligible:
            target = f" covering residue {position}" if position is not None else ""
            logger.info(
                f"No PDB entry for {accession} within {self.threshold} A{target} "
                f"(excluded: {', '.join(excluded) or 'none'})"
            )
            return StrategyOutcome(
                self.name,
                considered=considered,
                excluded=tuple(excluded),
                reason=f"no PDB entry at or better than {self.threshold} A{target}",
            )

        best = rank_pdb_candidates(eligible)[0]
        return StrategyOutcome(self.name, candidate=best, considered=considered, excluded=tuple(excluded))


class AlphaFoldStrategy:
    name = StructureSourceName.ALPHAFOLD.value

    def __init__(self, source: StructureSource):
        self.source = source

    async def attempt(self, accession: str, position: Optional[int] = None) -> StrategyOutcome:
        model = await self.source.fetch_alphafold(accession)
        if not model:
            return StrategyOutcome(self.name, reason="no AlphaFold model for accession")
        candidate = StructureCandidate(
            id=model["id"],
            source=StructureSourceName.ALPHAFOLD,
            resolution_angstrom=None,
            coverage=_coverage(model.get("coverage")),
            title=model.get("title"),
            url=model.get("url"),
        )
        return StrategyOutcome(self.name, candidate=candidate, considered=(candidate.id,))


class StructureResolver:
    def __init__(self, source: StructureSource, strategies: Optional[Sequence] = None):
        self.source = source
        self.strategies = list(strategies) if strategies is not None else [
            PdbStrategy(source),
            AlphaFoldStrategy(source),
        ]

    async def resolve_with_trace(self, accession: str, position: Optional[int] = None) -> StructureResolution:
        """
        Run strategies in order until one yields a candidate.

        When ``position`` is given, PDB entries whose UniProt coverage
        does not include it are excluded before ranking.

        Upstream failures propagate (UpstreamUnavailableError): an outage is
        not the same as "no structure" and must not trigger a fallback.

        Raises:
            NoStructureError: every strategy came back empty
        """
        outcomes: List[StrategyOutcome] = []
        for strategy in self.strategies:
            outcome = await strategy.attempt(accession, position)
            outcomes.append(outcome)
            if outcome.succeeded:
                logger.info(f"Structure for {accession}: {outcome.candidate.id} via {outcome.strategy}")
                return StructureResolution(candidate=outcome.candidate, outcomes=tuple(outcomes))

        reasons = "; ".join(f"{o.strategy}: {o.reason}" for o in outcomes)
        raise NoStructureError(f"No usable structure for {accession} ({reasons})")

    async def resolve_structure(self, accession: str, position: Optional[int] = None) -> StructureCandidate:
        resolution = await self.resolve_with_trace(accession, position)
        return resolution.candidate
