"""
Evidence bundle models and the passthrough (allow-list) check.

The bundle may only carry fields copied from a source record plus the exact
query terms that were sent. Anything else is a contract violation.
"""
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic.alias_generators import to_camel

from ..errors import EvidencePurityError
from .base import CamelModel

CLINVAR_FIELDS = frozenset({"significance", "review_status", "id", "conditions", "last_updated"})
PUBMED_FIELDS = frozenset({"id", "title", "source", "year"})
QUERY_FIELDS = frozenset({"clinvar", "pubmed"})
BUNDLE_FIELDS = frozenset({"clinvar", "pubmed", "pubmed_count", "queries"})

# Never allowed anywhere in a bundle, whatever the nesting
FORBIDDEN_FIELDS = frozenset({"interpretation", "mechanism", "recommendation", "score"})


class ClinVarRecord(CamelModel):
    model_config = {"frozen": True, "extra": "forbid"}

    significance: Optional[str] = None
    review_status: Optional[str] = None
    id: str
    conditions: List[str] = []
    last_updated: Optional[str] = None


class PubMedCitation(CamelModel):
    model_config = {"frozen": True, "extra": "forbid"}

    id: str
    title: Optional[str] = None
    source: Optional[str] = None
    year: Optional[str] = None


class EvidenceQueries(CamelModel):
    model_config = {"frozen": True, "extra": "forbid"}

    clinvar: Optional[str] = None
    pubmed: Optional[str] = None


class EvidenceBundle(CamelModel):
    model_config = {"frozen": True, "extra": "forbid"}

    clinvar: Optional[ClinVarRecord] = None
    pubmed: List[PubMedCitation] = []
    pubmed_count: int = 0
    queries: EvidenceQueries = EvidenceQueries()


def _allowed(fields: frozenset) -> frozenset:
    return fields | frozenset(to_camel(f) for f in fields)


def _check_keys(data: Mapping[str, Any], allowed: frozenset, where: str) -> None:
    for key in data.keys():
        if key in FORBIDDEN_FIELDS:
            raise EvidencePurityError(f"Interpretive field '{key}' present in {where}")
        if key not in _allowed(allowed):
            raise EvidencePurityError(f"Field '{key}' in {where} is not a verbatim source field")


def assert_passthrough(bundle: Union[EvidenceBundle, Dict[str, Any]]) -> None:
    """Raise EvidencePurityError unless every key is on the allow-list."""
    data = bundle.model_dump() if isinstance(bundle, EvidenceBundle) else bundle
    if not isinstance(data, Mapping):
        raise EvidencePurityError("Evidence bundle must be a mapping")

    _check_keys(data, BUNDLE_FIELDS, "evidence bundle")

    clinvar = data.get("clinvar")
    if clinvar is not None:
        _check_keys(clinvar, CLINVAR_FIELDS, "clinvar record")

    for citation in data.get("pubmed") or []:
        _check_keys(citation, PUBMED_FIELDS, "pubmed citation")

    queries = data.get("queries")
    if queries is not None:
        _check_keys(queries, QUERY_FIELDS, "evidence queries")
