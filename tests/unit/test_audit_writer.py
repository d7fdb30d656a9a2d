"""
Unit tests for the hash-chained audit writer.
"""
import csv
import dataclasses
import io
import json

from variantlens.audit import ACTION_AUDIT_READ, ACTION_RESOLVE, AuditWriter
from variantlens.audit.writer import CSV_COLUMNS, GENESIS_HASH, RECENT_MAX


def _fill(writer, n=3):
    for i in range(n):
        writer.record(
            actor="127.0.0.1",
            action=ACTION_RESOLVE,
            outcome="success" if i % 2 == 0 else "UNKNOWN_GENE",
            latency_ms=10 * (i + 1),
            variant=f"KRAS:p.G{i + 1}D",
            gene="KRAS" if i % 2 == 0 else None,
        )


def test_first_entry_links_to_genesis():
    writer = AuditWriter()
    entry = writer.record(actor="a", action=ACTION_RESOLVE, outcome="success")
    assert entry.previous_hash == GENESIS_HASH
    assert writer.last_hash == entry.current_hash


def test_chain_links_and_verifies():
    writer = AuditWriter()
    _fill(writer, 5)
    entries = writer.entries()
    for previous, current in zip(entries, entries[1:]):
        assert current.previous_hash == previous.current_hash
    assert writer.verify_chain() == (True, 0)


def test_tampering_is_detected():
    writer = AuditWriter()
    _fill(writer, 4)
    entries = writer.entries()
    entries[1] = dataclasses.replace(entries[1], outcome="success", gene="TP53")
    valid, errors = writer.verify_chain(entries)
    assert valid is False
    assert errors >= 1


def test_csv_quotes_awkward_values():
    writer = AuditWriter()
    writer.record(actor="x", action=ACTION_RESOLVE, outcome="PARSE_ERROR", variant='KRAS, "G12D"\nnext')
    rows = list(csv.reader(io.StringIO(writer.export_csv())))
    assert rows[0] == CSV_COLUMNS
    assert len(rows) == 2
    assert rows[1][CSV_COLUMNS.index("variant")] == 'KRAS, "G12D"\nnext'
    assert rows[1][CSV_COLUMNS.index("gene")] == ""


def test_recent_is_newest_first_and_capped():
    writer = AuditWriter()
    _fill(writer, 5)
    recent = writer.recent(2)
    assert [e.variant for e in recent] == ["KRAS:p.G5D", "KRAS:p.G4D"]
    assert len(writer.recent(RECENT_MAX + 500)) == 5
    assert writer.recent(0) == []


def test_summary_counts_resolutions_only():
    writer = AuditWriter()
    _fill(writer, 3)
    writer.record(actor="admin", action=ACTION_AUDIT_READ, outcome="success")

    summary = writer.summary()
    assert summary["total_entries"] == 4
    assert summary["total_resolutions"] == 3
    assert summary["success_rate"] == 66.7
    assert summary["top_genes"] == [{"gene": "KRAS", "count": 2}]
    assert summary["average_latency_ms"] == 20.0
    assert summary["by_action"] == {ACTION_RESOLVE: 3, ACTION_AUDIT_READ: 1}
    assert summary["outcomes"] == {"success": 2, "UNKNOWN_GENE": 1}


def test_empty_summary():
    summary = AuditWriter().summary()
    assert summary["total_entries"] == 0
    assert summary["success_rate"] == 0.0


def test_entries_are_persisted_as_json_lines(tmp_path):
    writer = AuditWriter(log_dir=str(tmp_path / "audit"))
    _fill(writer, 2)
    files = list((tmp_path / "audit").glob("audit_*.log"))
    assert len(files) == 1
    lines = [json.loads(line) for line in files[0].read_text().splitlines()]
    assert [line["current_hash"] for line in lines] == [e.current_hash for e in writer.entries()]
