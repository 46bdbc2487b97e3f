"""
Central constants for the document ledger.
"""
from __future__ import annotations

# Content fingerprints are 32-byte digests (keccak256 / sha256).
CONTENT_HASH_BYTES = 32

# Column limits shared by models, migrations and input validation.
IDENTITY_MAX_LENGTH = 255
METADATA_URI_MAX_LENGTH = 2048

# Audit actions
ACTION_LEDGER_INITIALIZE = "ledger.initialize"
ACTION_VERIFIER_ADD = "verifier.add"
ACTION_VERIFIER_REMOVE = "verifier.remove"
ACTION_DOCUMENT_REGISTER = "document.register"
ACTION_DOCUMENT_ATTEST = "document.attest"

# Per-key lock namespace
DOCUMENT_LOCK_PREFIX = "document:"
