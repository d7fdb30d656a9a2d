"""
Gene Resolver Service

Maps a gene symbol (or a known alias) to its UniProt accession using the
curated gene table shipped with the package.

Features:
- Exact matching only, symbols before aliases
- Aliases claimed by more than one gene are ambiguous and never resolve
- Canonical protein length for position validation
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

from ..errors import AmbiguousGeneError, InvalidPositionError, UnknownGeneError

logger = logging.getLogger(__name__)

GENE_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "gene_table.json"


@dataclass(frozen=True)
class GeneRecord:
    symbol: str
    uniprot_accession: str
    aliases: FrozenSet[str] = field(default_factory=frozenset)
    length: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "symbol": self.symbol,
            "uniprot_accession": self.uniprot_accession,
            "aliases": sorted(self.aliases),
            "length": self.length,
        }


def _key(text: str) -> str:
    return text.strip().upper()


class GeneResolver:
    """
    Deterministic symbol/alias -> GeneRecord lookup.

    Examples:
        >>> resolver = GeneResolver.default()
        >>> resolver.resolve("ABCC7").uniprot_accession
        'P13569'
    """

    def __init__(self, entries: Iterable[Mapping]):
        self._by_symbol: Dict[str, GeneRecord] = {}
        self._by_alias: Dict[str, GeneRecord] = {}
        self._ambiguous: Dict[str, Set[str]] = {}

        records: List[GeneRecord] = []
        for entry in entries:
            symbol = _key(entry["symbol"])
            if symbol in self._by_symbol:
                raise ValueError(f"Duplicate gene symbol in gene table: {symbol}")
            record = GeneRecord(
                symbol=symbol,
                uniprot_accession=entry["accession"].strip().upper(),
                aliases=frozenset(_key(a) for a in entry.get("aliases", [])),
                length=entry.get("length"),
            )
            self._by_symbol[symbol] = record
            records.append(record)

        claims: Dict[str, Set[str]] = {}
        for record in records:
            for alias in record.aliases:
                if alias == record.symbol:
                    continue
                if alias in self._by_symbol:
                    logger.warning(
                        f"Alias {alias} of {record.symbol} collides with gene symbol {alias}; alias ignored"
                    )
                    continue
                claims.setdefault(alias, set()).add(record.symbol)

        for alias, symbols in claims.items():
            if len(symbols) > 1:
                self._ambiguous[alias] = symbols
                logger.warning(f"Alias {alias} is claimed by {sorted(symbols)}; marked ambiguous")
            else:
                self._by_alias[alias] = self._by_symbol[next(iter(symbols))]

        logger.info(
            f"GeneResolver loaded {len(self._by_symbol)} genes, "
            f"{len(self._by_alias)} aliases, {len(self._ambiguous)} ambiguous"
        )

    @classmethod
    def from_json(cls, path: Path) -> "GeneResolver":
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f))

    @classmethod
    def default(cls) -> "GeneResolver":
        return cls.from_json(GENE_TABLE_PATH)

    def resolve(self, symbol: str) -> GeneRecord:
        """
        Resolve a symbol or alias to its GeneRecord.

        Raises:
            AmbiguousGeneError: alias maps to more than one gene
            UnknownGeneError: no exact symbol or alias match
        """
        key = _key(symbol or "")
        if key in self._by_symbol:
            return self._by_symbol[key]
        if key in self._ambiguous:
            candidates = ", ".join(sorted(self._ambiguous[key]))
            raise AmbiguousGeneError(f"Gene alias '{symbol}' is ambiguous (matches {candidates})")
        if key in self._by_alias:
            return self._by_alias[key]
        raise UnknownGeneError(f"Unknown gene symbol '{symbol}'")

    def canonical_symbol(self, symbol: str) -> Optional[str]:
        """Canonical symbol for a symbol or unambiguous alias, else None."""
        key = _key(symbol or "")
        record = self._by_symbol.get(key) or self._by_alias.get(key)
        return record.symbol if record else None

    def validate_position(self, record: GeneRecord, position: int) -> None:
        if record.length is not None and position > record.length:
            raise InvalidPositionError(
                f"Position {position} exceeds {record.symbol} protein length ({record.length} aa)"
            )

    def __len__(self) -> int:
        return len(self._by_symbol)
