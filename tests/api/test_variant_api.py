"""
API tests for /variant.
"""
from fastapi.testclient import TestClient

from tests.conftest import make_services
from variantlens.main import create_app


def test_post_variant_returns_report(client):
    response = client.post("/variant", json={"hgvs": "KRAS:p.G12D"})
    assert response.status_code == 200
    data = response.json()

    assert data["variant"]["hgvs"] == "KRAS:p.G12D"
    assert data["variant"]["proteinChange"] == "G12D"
    assert data["variant"]["variantType"] == "missense"
    assert data["structure"]["source"] == "PDB"
    assert data["structure"]["id"] == "4OBE"
    assert data["structure"]["resolutionAngstrom"] == 1.24
    assert data["residueMapping"] == {
        "mapped": True,
        "chain": "A",
        "structureResidue": "12",
        "structureId": "4OBE",
        "sourceDatabase": "SIFTS",
        "reason": None,
    }
    assert data["evidence"]["clinvar"]["id"] == "12582"
    assert data["evidence"]["pubmedCount"] == 3
    assert data["provenance"]["sourceIds"]["uniprot"] == "P01116"
    assert "Research use only" in data["provenance"]["disclaimer"]


def test_get_variant_matches_post(client):
    response = client.get("/variant", params={"hgvs": "TP53:p.Arg175His"})
    assert response.status_code == 200
    data = response.json()
    assert data["variant"]["hgvs"] == "TP53:p.R175H"
    assert data["structure"]["id"] == "2OCJ"
    assert data["residueMapping"]["structureResidue"] == "175"


def test_alias_is_canonicalized(client):
    response = client.post("/variant", json={"hgvs": "ABCC7:p.F508del"})
    assert response.status_code == 200
    assert response.json()["variant"]["gene"] == "CFTR"


def test_alphafold_fallback(client):
    response = client.post("/variant", json={"hgvs": "PROM1:p.R373C"})
    assert response.status_code == 200
    data = response.json()
    assert data["structure"]["source"] == "AlphaFold"
    assert data["structure"]["resolutionAngstrom"] is None
    assert data["residueMapping"]["mapped"] is False


def test_markdown_format(client):
    response = client.post("/variant?format=md", json={"hgvs": "KRAS:p.G12D"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/markdown")
    assert response.text.startswith("# Variant Lens Evidence Briefing: KRAS:p.G12D")


def test_unknown_format_is_rejected(client):
    response = client.get("/variant", params={"hgvs": "KRAS:p.G12D", "format": "pdf"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_unknown_gene(client):
    response = client.post("/variant", json={"hgvs": "FAKEGENE:p.A1V"})
    assert response.status_code == 404
    assert response.json()["code"] == "UNKNOWN_GENE"


def test_rsid_is_a_parse_error(client):
    response = client.post("/variant", json={"hgvs": "rs113488022"})
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "PARSE_ERROR"
    assert "Protein-level HGVS required" in body["error"]


def test_position_beyond_protein_length(client):
    response = client.post("/variant", json={"hgvs": "CFTR:p.L1481P"})
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "INVALID_POSITION"
    assert "exceeds" in body["error"]


def test_no_structure(client):
    response = client.post("/variant", json={"hgvs": "JAK2:p.V617F"})
    assert response.status_code == 404
    assert response.json()["code"] == "NO_STRUCTURE"


def test_missing_body_field(client):
    response = client.post("/variant", json={})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_every_attempt_is_audited(client, services):
    client.post("/variant", json={"hgvs": "KRAS:p.G12D"})
    client.post("/variant", json={"hgvs": "FAKEGENE:p.A1V"})
    outcomes = [e.outcome for e in services.audit.entries()]
    assert outcomes == ["success", "UNKNOWN_GENE"]


def test_rate_limit_sets_retry_after():
    services = make_services(variant_rate_limit=2)
    with TestClient(create_app(services)) as client:
        for _ in range(2):
            assert client.post("/variant", json={"hgvs": "KRAS:p.G12D"}).status_code == 200
        response = client.post("/variant", json={"hgvs": "KRAS:p.G12D"})

    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert int(response.headers["Retry-After"]) >= 1
