from __future__ import annotations

import re
from datetime import datetime, timezone

from app.docledger.constants import CONTENT_HASH_BYTES, IDENTITY_MAX_LENGTH, METADATA_URI_MAX_LENGTH
from app.docledger.errors import InvalidInput
from app.docledger.modules.document_registry.models import DocumentStatus

_HEX_RE = re.compile(r"[0-9a-f]+")


def normalize_identity(identity: str | None, *, field: str = "identity") -> str:
    """Identities are opaque: strip surrounding whitespace, nothing else."""
    if not isinstance(identity, str):
        raise InvalidInput(f"{field} must be a string.")
    value = identity.strip()
    if not value:
        raise InvalidInput(f"{field} is required.")
    if len(value) > IDENTITY_MAX_LENGTH:
        raise InvalidInput(f"{field} exceeds {IDENTITY_MAX_LENGTH} characters.")
    return value


def clean_identity(identity: object) -> str | None:
    """normalize_identity for predicates: None instead of InvalidInput."""
    try:
        return normalize_identity(identity)  # type: ignore[arg-type]
    except InvalidInput:
        return None


def normalize_content_hash(content_hash: bytes | str | None) -> str:
    """
    Canonical form of a content fingerprint: lowercase hex, no 0x prefix.

    Accepts raw digest bytes or a hex string (optionally 0x-prefixed).
    """
    if isinstance(content_hash, (bytes, bytearray)):
        if len(content_hash) != CONTENT_HASH_BYTES:
            raise InvalidInput(f"content_hash must be {CONTENT_HASH_BYTES} bytes, got {len(content_hash)}.")
        return bytes(content_hash).hex()
    if not isinstance(content_hash, str):
        raise InvalidInput("content_hash is required.")
    value = content_hash.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    if len(value) != CONTENT_HASH_BYTES * 2 or not _HEX_RE.fullmatch(value):
        raise InvalidInput(f"content_hash must be {CONTENT_HASH_BYTES * 2} hex digits.")
    return value


def normalize_metadata_uri(metadata_uri: str | None) -> str:
    if not isinstance(metadata_uri, str) or not metadata_uri.strip():
        raise InvalidInput("metadata_uri is required.")
    value = metadata_uri.strip()
    if len(value) > METADATA_URI_MAX_LENGTH:
        raise InvalidInput(f"metadata_uri exceeds {METADATA_URI_MAX_LENGTH} characters.")
    return value


def parse_status(value: DocumentStatus | str | int | None) -> DocumentStatus:
    """Accept a DocumentStatus, its name (any case) or its ordinal code."""
    if isinstance(value, DocumentStatus):
        return value
    if isinstance(value, bool):
        raise InvalidInput("status must be a status name or code.")
    if isinstance(value, int):
        try:
            return DocumentStatus.from_code(value)
        except ValueError as e:
            raise InvalidInput(str(e)) from e
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.isdigit():
            return parse_status(int(raw))
        for status in DocumentStatus:
            if status.value.lower() == raw.lower():
                return status
    names = ", ".join(s.value for s in DocumentStatus)
    raise InvalidInput(f"Invalid status. Must be one of: {names}")


def isoformat_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def json_body() -> dict:
    """Request JSON object, or {} when the body is missing or not an object."""
    from flask import request

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}
