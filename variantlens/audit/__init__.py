"""
Append-only audit log for resolution attempts and admin reads.
"""
from .writer import ACTION_AUDIT_READ, ACTION_RESOLVE, AuditEntry, AuditWriter

__all__ = ["ACTION_AUDIT_READ", "ACTION_RESOLVE", "AuditEntry", "AuditWriter"]
