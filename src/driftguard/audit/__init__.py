"""Checkpoint audit records stored as git notes."""

from driftguard.audit.schema import AuditRecord
from driftguard.audit.trail import AuditTrail

__all__ = ["AuditRecord", "AuditTrail"]
