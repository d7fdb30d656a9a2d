"""
Audit Trail Writer
Append-only audit log with SHA-256 hash chaining.

Every pipeline attempt (success or failure) and every admin read of the log
is recorded. Entries live in memory for the process lifetime and, when a log
directory is configured, are also appended as JSON lines to a daily file.
"""
import csv
import hashlib
import io
import json
import logging
import threading
import uuid
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

GENESIS_HASH = hashlib.sha256(b"GENESIS").hexdigest()

RECENT_DEFAULT = 100
RECENT_MAX = 1000

CSV_COLUMNS = [
    "timestamp",
    "request_id",
    "actor",
    "action",
    "variant",
    "gene",
    "outcome",
    "latency_ms",
    "previous_hash",
    "current_hash",
]

ACTION_RESOLVE = "resolve_variant"
ACTION_AUDIT_READ = "audit_read"


@dataclass(frozen=True)
class AuditEntry:
    request_id: str
    timestamp: str
    actor: str
    action: str
    variant: Optional[str]
    gene: Optional[str]
    outcome: str
    latency_ms: float
    previous_hash: str
    current_hash: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _hashable(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if k not in ("previous_hash", "current_hash")}


def calculate_hash(record: Dict[str, Any], previous_hash: str) -> str:
    """SHA256(previous_hash + canonical JSON of the record without hash fields)."""
    record_str = json.dumps(_hashable(record), sort_keys=True, default=str)
    return hashlib.sha256(f"{previous_hash}{record_str}".encode("utf-8")).hexdigest()


class AuditWriter:
    """
    Process-wide append-only audit log.

    Writes are serialized by a lock; readers take a snapshot of the entry
    list so they never observe a half-appended record.
    """

    def __init__(self, log_dir: Optional[str] = None):
        self._entries: List[AuditEntry] = []
        self._lock = threading.Lock()
        self.last_hash = GENESIS_HASH
        self.log_dir = Path(log_dir) if log_dir else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def _get_log_file(self) -> Path:
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        return self.log_dir / f"audit_{today}.log"

    def record(
        self,
        actor: str,
        action: str,
        outcome: str,
        latency_ms: float = 0.0,
        variant: Optional[str] = None,
        gene: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> AuditEntry:
        """
        Append one entry and return it.

        Args:
            actor: Client id, "admin" or "batch:<job_id>"
            action: resolve_variant or audit_read
            outcome: "success" or the error code
            latency_ms: Wall time of the attempt
            variant: Raw variant text as submitted
            gene: Canonical gene symbol when known
        """
        with self._lock:
            fields = {
                "request_id": request_id or uuid.uuid4().hex,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "actor": actor,
                "action": action,
                "variant": variant,
                "gene": gene,
                "outcome": outcome,
                "latency_ms": round(float(latency_ms), 2),
            }
            current_hash = calculate_hash(fields, self.last_hash)
            entry = AuditEntry(previous_hash=self.last_hash, current_hash=current_hash, **fields)
            self._entries.append(entry)
            self.last_hash = current_hash

            if self.log_dir is not None:
                try:
                    with open(self._get_log_file(), "a", encoding="utf-8") as f:
                        f.write(json.dumps(entry.to_dict()) + "\n")
                except OSError as e:
                    # the in-memory record stands; file persistence is best effort
                    logger.error(f"Failed to persist audit record {entry.request_id}: {e}")

        logger.info(f"[AUDIT] {json.dumps(entry.to_dict(), default=str)}")
        return entry

    def entries(self) -> List[AuditEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def recent(self, limit: int = RECENT_DEFAULT) -> List[AuditEntry]:
        """Newest first, at most RECENT_MAX entries."""
        limit = max(0, min(int(limit), RECENT_MAX))
        if limit == 0:
            return []
        return list(reversed(self.entries()[-limit:]))

    def summary(self) -> Dict[str, Any]:
        entries = self.entries()
        resolutions = [e for e in entries if e.action == ACTION_RESOLVE]
        successes = sum(1 for e in resolutions if e.outcome == "success")
        genes = Counter(e.gene for e in resolutions if e.gene)
        latencies = [e.latency_ms for e in resolutions]
        return {
            "total_entries": len(entries),
            "total_resolutions": len(resolutions),
            "success_rate": round(100.0 * successes / len(resolutions), 1) if resolutions else 0.0,
            "top_genes": [{"gene": g, "count": c} for g, c in genes.most_common(10)],
            "average_latency_ms": round(sum(latencies) / len(latencies), 2) if latencies else 0.0,
            "by_action": dict(Counter(e.action for e in entries)),
            "outcomes": dict(Counter(e.outcome for e in resolutions)),
        }

    def export_csv(self) -> str:
        """All entries, oldest first, quoted by the csv module."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writeheader()
        for entry in self.entries():
            row = entry.to_dict()
            writer.writerow({k: "" if row[k] is None else row[k] for k in CSV_COLUMNS})
        return buffer.getvalue()

    def verify_chain(self, entries: Optional[List[AuditEntry]] = None) -> Tuple[bool, int]:
        """
        Recompute the hash chain.

        Returns:
            (is_valid, error_count)
        """
        previous_hash = GENESIS_HASH
        error_count = 0
        for index, entry in enumerate(entries if entries is not None else self.entries()):
            record = entry.to_dict()
            if record["previous_hash"] != previous_hash:
                logger.warning(f"Audit hash chain broken at entry {index}: previous hash mismatch")
                error_count += 1
            if calculate_hash(record, previous_hash) != record["current_hash"]:
                logger.warning(f"Audit hash chain broken at entry {index}: hash mismatch")
                error_count += 1
            previous_hash = record["current_hash"]
        return error_count == 0, error_count
