"""
Shared fixtures. Everything runs against the bundled fixture sources; no
test touches the network.
"""
import pytest
from fastapi.testclient import TestClient

from variantlens.audit import AuditWriter
from variantlens.main import create_app
from variantlens.services.container import build_services
from variantlens.services.evidence_aggregator import EvidenceAggregator
from variantlens.services.gene_resolver import GeneResolver
from variantlens.services.pipeline import VariantPipeline
from variantlens.services.residue_mapper import ResidueMapper
from variantlens.services.sources import FixtureEvidenceSource, FixtureStructureSource
from variantlens.services.structure_resolver import StructureResolver

ADMIN_KEY = "test-admin-key"


@pytest.fixture(scope="session")
def gene_resolver() -> GeneResolver:
    return GeneResolver.default()


@pytest.fixture
def structure_source() -> FixtureStructureSource:
    return FixtureStructureSource()


@pytest.fixture
def evidence_source() -> FixtureEvidenceSource:
    return FixtureEvidenceSource()


@pytest.fixture
def audit() -> AuditWriter:
    return AuditWriter()


@pytest.fixture
def pipeline(gene_resolver, structure_source, evidence_source, audit) -> VariantPipeline:
    return VariantPipeline(
        genes=gene_resolver,
        structures=StructureResolver(structure_source),
        mapper=ResidueMapper(structure_source),
        evidence=EvidenceAggregator(evidence_source),
        audit=audit,
    )


def make_services(**overrides):
    options = dict(
        use_fixtures=True,
        admin_api_key=ADMIN_KEY,
        audit_log_dir=None,
        upstream_requests_per_minute=10000,
        variant_rate_limit=1000,
        batch_rate_limit=1000,
        workers=3,
    )
    options.update(overrides)
    return build_services(**options)


@pytest.fixture
def services():
    return make_services()


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as test_client:
        yield test_client
