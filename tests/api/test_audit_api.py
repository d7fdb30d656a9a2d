"""
API tests for the admin-only /audit endpoint.
"""
import csv
import io

from fastapi.testclient import TestClient

from tests.conftest import ADMIN_KEY, make_services
from variantlens.audit import ACTION_AUDIT_READ
from variantlens.main import create_app

HEADERS = {"x-admin-api-key": ADMIN_KEY}


def test_refuses_when_no_key_is_configured():
    services = make_services(admin_api_key=None)
    with TestClient(create_app(services)) as client:
        response = client.get("/audit", headers=HEADERS)
    assert response.status_code == 503
    assert response.json()["code"] == "MISCONFIGURED"


def test_missing_or_wrong_key(client):
    assert client.get("/audit").status_code == 401
    response = client.get("/audit", headers={"x-admin-api-key": "nope"})
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_summary_reports_chain_state(client):
    client.post("/variant", json={"hgvs": "KRAS:p.G12D"})
    client.post("/variant", json={"hgvs": "FAKEGENE:p.A1V"})

    response = client.get("/audit", headers=HEADERS)
    assert response.status_code == 200
    data = response.json()
    assert data["total_resolutions"] == 2
    assert data["success_rate"] == 50.0
    assert data["chain_valid"] is True
    assert data["chain_errors"] == 0


def test_csv_export(client):
    client.post("/variant", json={"hgvs": "KRAS:p.G12D"})
    response = client.get("/audit", params={"format": "csv"}, headers=HEADERS)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "variantlens-audit.csv" in response.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert rows[0]["variant"] == "KRAS:p.G12D"
    assert rows[0]["outcome"] == "success"


def test_json_is_newest_first_and_limited(client):
    for hgvs in ("KRAS:p.G12D", "TP53:p.R175H", "CFTR:p.F508del"):
        client.post("/variant", json={"hgvs": hgvs})

    response = client.get("/audit", params={"format": "json", "limit": 2}, headers=HEADERS)
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    # the read itself is the newest entry
    assert data["entries"][0]["action"] == ACTION_AUDIT_READ
    assert data["entries"][1]["variant"] == "CFTR:p.F508del"


def test_reads_are_audited(client, services):
    client.get("/audit", headers=HEADERS)
    [entry] = services.audit.entries()
    assert entry.action == ACTION_AUDIT_READ
    assert entry.actor == "admin"


def test_bad_limit_and_format(client):
    assert client.get("/audit", params={"format": "json", "limit": 0}, headers=HEADERS).status_code == 400
    assert client.get("/audit", params={"format": "xml"}, headers=HEADERS).status_code == 400
