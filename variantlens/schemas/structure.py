"""
Structure candidate and residue mapping models.
"""
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import Field

from .base import CamelModel


class StructureSourceName(str, Enum):
    PDB = "PDB"
    ALPHAFOLD = "AlphaFold"


class StructureCandidate(CamelModel):
    model_config = {"frozen": True}

    id: str
    source: StructureSourceName
    resolution_angstrom: Optional[float] = None
    coverage: Optional[Tuple[int, int]] = None
    title: Optional[str] = None
    search_score: Optional[float] = None
    url: Optional[str] = None


class ResidueMapping(CamelModel):
    """Explicit SIFTS verdict for one UniProt position on one structure."""
    model_config = {"frozen": True}

    mapped: bool
    chain: Optional[str] = None
    structure_residue: Optional[str] = None
    structure_id: Optional[str] = None
    source_database: Literal["SIFTS"] = "SIFTS"
    reason: Optional[str] = None
    # set when PDBe failed, as opposed to returning no record; never serialized
    upstream_unavailable: bool = Field(False, exclude=True)
