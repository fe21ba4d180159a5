"""Pre-install snapshot: creation, verification, restoration and rollback."""
