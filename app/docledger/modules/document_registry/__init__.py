"""
Document Registry module.

- Documents are keyed by content fingerprint; the content itself is never stored
- Registration is public and first-write-wins
- Registered records are never deleted; only status moves, via attestations
"""
