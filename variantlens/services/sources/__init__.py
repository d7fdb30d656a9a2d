from .base import EvidenceSource, StructureSource
from .fixtures import FixtureEvidenceSource, FixtureStructureSource
from .live import HttpEvidenceSource, HttpStructureSource

__all__ = [
    "EvidenceSource",
    "StructureSource",
    "FixtureEvidenceSource",
    "FixtureStructureSource",
    "HttpEvidenceSource",
    "HttpStructureSource",
]
