# Integration Module
"""
Audit trail that records cryptographic operations and seals them under
Merkle roots.

Identities are recorded as public key fingerprints; key material and
message content never enter the log.
"""

# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import to avoid circular import issues."""
    from . import audit_log
    return getattr(audit_log, name)

__all__ = [
    'EventType',
    'CryptoEvent',
    'SealedBatch',
    'AuditLog',
    'create_audit_log',
    'message_id',
]
