"""
Normalized variant model.
"""
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field

from .base import CamelModel


class VariantType(str, Enum):
    MISSENSE = "missense"
    NONSENSE = "nonsense"
    SILENT = "silent"
    DELETION = "deletion"
    DUPLICATION = "duplication"
    FRAMESHIFT = "frameshift"


class NormalizedVariant(CamelModel):
    """
    Canonical (gene, transcript?, proteinChange) triple.

    ``protein_change`` always uses one-letter residue codes and one of the
    suffixes ``fs``, ``Ter``, ``del``, ``dup`` or a plain substitution.
    """
    model_config = {"frozen": True}

    gene: str
    transcript: Optional[str] = None
    protein_change: str = Field(..., description="Canonical change, e.g. R175H, S1982fs, G542Ter")
    raw: str
    ref: str
    position: int = Field(..., ge=1)
    alt: str
    variant_type: VariantType

    @computed_field
    @property
    def hgvs(self) -> str:
        return f"{self.gene}:p.{self.protein_change}"
