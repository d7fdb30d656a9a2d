"""
HGVS Normalizer

Parses protein-level HGVS-like text into a canonical NormalizedVariant.

Accepted forms:
- GENE:p.R175H, GENE:p.Arg175His, GENE:R175H (prefix optional)
- NM_000000.0(GENE):p.Ala178Pro (RefSeq transcript carried through)
- Frameshift (p.Ser1982Argfs*22 -> S1982fs), stop (p.G542*, p.G542X,
  p.Gly542Ter -> G542Ter), single-residue del/dup
- Case and whitespace are forgiven ("tp53 : p. r175h")

Nucleotide (c./g./m./n./r.) notation and bare rsIDs are rejected, never
coerced into a protein change.
"""

import logging
import re
from typing import Optional, TYPE_CHECKING

from ..errors import ParseError
from ..schemas.variant import NormalizedVariant, VariantType

if TYPE_CHECKING:
    from .gene_resolver import GeneResolver

logger = logging.getLogger(__name__)

THREE_TO_ONE = {
    "Ala": "A", "Arg": "R", "Asn": "N", "Asp": "D", "Cys": "C",
    "Gln": "Q", "Glu": "E", "Gly": "G", "His": "H", "Ile": "I",
    "Leu": "L", "Lys": "K", "Met": "M", "Phe": "F", "Pro": "P",
    "Ser": "S", "Thr": "T", "Trp": "W", "Tyr": "Y", "Val": "V",
}
ONE_LETTER = frozenset(THREE_TO_ONE.values())
STOP_TOKENS = frozenset({"*", "X", "TER", "STOP"})

_RSID_RE = re.compile(r"^rs\d+$", re.IGNORECASE)
_NUCLEOTIDE_RE = re.compile(r"(?:^|:|\))[cgmnr]\.", re.IGNORECASE)
_PROTEIN_PREFIX_RE = re.compile(r"p\.", re.IGNORECASE)
_GENE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.\-]*$")
_TRANSCRIPT_GENE_RE = re.compile(
    r"^(?P<transcript>[A-Za-z]{2}_\d+(?:\.\d+)?)\((?P<gene>[A-Za-z0-9][A-Za-z0-9.\-]*)\)$"
)
_TRANSCRIPT_ONLY_RE = re.compile(r"^[A-Za-z]{2}_\d+(?:\.\d+)?$")
_CHANGE_RE = re.compile(r"^(?P<ref>[A-Za-z]{3}|[A-Za-z])(?P<pos>\d+)(?P<alt>.+)$")
_FRAMESHIFT_RE = re.compile(
    r"^(?:[A-Za-z]{3}|[A-Za-z])?fs(?:(?:\*|Ter|X)(?:\d+|\?)?)?$", re.IGNORECASE
)

EXPECTED_FORMAT = "Expected GENE:p.RefPosAlt, e.g. TP53:p.R175H"


def _residue(token: str) -> Optional[str]:
    """One-letter code for a one- or three-letter residue token, else None."""
    if len(token) == 1:
        letter = token.upper()
        return letter if letter in ONE_LETTER else None
    if len(token) == 3:
        return THREE_TO_ONE.get(token.capitalize())
    return None


def _split_gene(prefix: str):
    match = _TRANSCRIPT_GENE_RE.match(prefix)
    if match:
        return match.group("gene").upper(), match.group("transcript").upper()
    if _TRANSCRIPT_ONLY_RE.match(prefix):
        raise ParseError(
            f"Transcript '{prefix}' needs a gene symbol, e.g. NM_000492.4(CFTR):p.F508del"
        )
    if not _GENE_RE.match(prefix):
        raise ParseError(f"Invalid gene symbol '{prefix}'. {EXPECTED_FORMAT}")
    return prefix.upper(), None


def _parse_alt(alt: str, ref: str):
    """Returns (canonical alt token, VariantType)."""
    lowered = alt.lower()
    if lowered == "del":
        return "del", VariantType.DELETION
    if lowered == "dup":
        return "dup", VariantType.DUPLICATION
    if _FRAMESHIFT_RE.match(alt):
        return "fs", VariantType.FRAMESHIFT
    if alt.upper() in STOP_TOKENS:
        return "Ter", VariantType.NONSENSE
    if "_" in alt or lowered.startswith(("ins", "delins")) or "ext" in lowered:
        raise ParseError(f"Unsupported protein change '{alt}': only single-residue changes are supported")

    residue = _residue(alt)
    if residue is None:
        raise ParseError(f"Unknown amino acid code '{alt}'")
    if residue == ref:
        return residue, VariantType.SILENT
    return residue, VariantType.MISSENSE


def normalize(raw: str, resolver: Optional["GeneResolver"] = None) -> NormalizedVariant:
    """
    Normalize a raw variant string.

    Args:
        raw: User-supplied text, e.g. "tp53 : p. r175h"
        resolver: Optional gene resolver used to canonicalize aliases
            (ABCC7 -> CFTR). Unknown genes pass through unchanged.

    Returns:
        NormalizedVariant with one-letter residue codes

    Raises:
        ParseError: for anything that is not a single protein-level change
    """
    if raw is None or not str(raw).strip():
        raise ParseError(f"Invalid HGVS format: empty input. {EXPECTED_FORMAT}")

    text = str(raw).strip()

    if _RSID_RE.match(text):
        raise ParseError("Protein-level HGVS required; dbSNP rsIDs are not supported")
    if _NUCLEOTIDE_RE.search(re.sub(r"\s+", "", text)):
        raise ParseError(
            "Protein-level HGVS required; nucleotide-level notation (c./g./m./n./r.) is not supported"
        )
    if len(_PROTEIN_PREFIX_RE.findall(text)) > 1:
        raise ParseError("Only one protein variant per request is supported")

    compact = re.sub(r"\s+", "", text)

    if ":" not in compact:
        if _PROTEIN_PREFIX_RE.search(compact):
            raise ParseError('Missing ":" between gene and protein change')
        raise ParseError(
            f"Protein-level HGVS required; '{text}' is a bare identifier, not a protein change. {EXPECTED_FORMAT}"
        )

    prefix, change = compact.split(":", 1)
    if not prefix:
        raise ParseError(f"Missing gene symbol. {EXPECTED_FORMAT}")
    gene, transcript = _split_gene(prefix)

    if change[:2].lower() == "p.":
        change = change[2:]
    if change.startswith("(") and change.endswith(")"):
        change = change[1:-1]
    if change in ("=", "?", "0", "0?"):
        raise ParseError(f"p.{change} (no or unknown protein change) is not supported")
    if ":" in change:
        raise ParseError("Only one protein variant per request is supported")

    match = _CHANGE_RE.match(change)
    if not match:
        raise ParseError(f"Invalid protein change '{change}'. {EXPECTED_FORMAT}")

    ref_token, pos_token, alt_token = match.group("ref"), match.group("pos"), match.group("alt")
    ref = _residue(ref_token)
    if ref is None:
        raise ParseError(f"Unknown amino acid code '{ref_token}'")

    position = int(pos_token)
    if position < 1:
        raise ParseError("Protein position must be 1 or greater")

    alt, variant_type = _parse_alt(alt_token, ref)

    if resolver is not None:
        canonical = resolver.canonical_symbol(gene)
        if canonical and canonical != gene:
            logger.debug(f"Canonicalized gene alias {gene} -> {canonical}")
            gene = canonical

    return NormalizedVariant(
        gene=gene,
        transcript=transcript,
        protein_change=f"{ref}{position}{alt}",
        raw=str(raw),
        ref=ref,
        position=position,
        alt=alt,
        variant_type=variant_type,
    )
