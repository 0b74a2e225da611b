"""Security primitives: the audit trail of registry operations."""
