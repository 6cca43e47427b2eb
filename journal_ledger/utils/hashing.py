"""
Deterministic hashing helpers.

Idempotency keys, request fingerprints and API keys are all
stored as 64-character sha256 hex digests.
"""

import hashlib
import json
from typing import Any


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def canonicalize_json(data: Any) -> str:
    """
    Canonical JSON text for data.

    Object keys are sorted at every depth and separators carry
    no whitespace, so two bodies that differ only in field
    order produce the same text. Array order is preserved.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def hash_request(payload: Any) -> str:
    """Content fingerprint of a JSON request body."""
    return sha256_hex(canonicalize_json(payload))


def derive_key_hash(scope_token: str, idempotency_key: str) -> str:
    """
    Hash an idempotency key into its caller's namespace.

    The scope token is hashed first so the raw API key never
    appears in the composed value.
    """
    return sha256_hex(f"{sha256_hex(scope_token)}:{idempotency_key}")
