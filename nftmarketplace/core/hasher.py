"""Canonical hashing helpers for journal sealing and deterministic addresses.

Addresses and transaction hashes on the local chain are derived from
canonical JSON, never from randomness, so that replaying the same
transactions on a fresh chain reproduces the same identifiers.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def derive_address(*parts: Any) -> str:
    """Derive a 20-byte hex address from arbitrary JSON-serializable parts."""
    return "0x" + sha256_hex(canonical_json_bytes(list(parts)))[:40]


def account_address(index: int) -> str:
    """Address of the ``index``-th funded account of a local chain."""
    return derive_address("account", index)


def contract_address(deployer: str, nonce: int) -> str:
    """Address of a contract created by ``deployer`` at ``nonce``."""
    return derive_address("create", deployer.lower(), nonce)


def compute_tx_hash(
    sender: str, nonce: int, to: str | None, method: str, args: list[Any], value: int
) -> str:
    """Hash identifying a transaction by its sender, nonce and call data."""
    payload = {
        "from": sender.lower(),
        "nonce": nonce,
        "to": to.lower() if to else None,
        "method": method,
        "args": args,
        "value": value,
    }
    return "0x" + sha256_hex(canonical_json_bytes(payload))


def compute_entry_hash(entry_dict: dict[str, Any]) -> str:
    """SHA-256 of a journal entry (excluding the entry_hash field itself).

    This is the seal that makes each entry tamper-evident.
    """
    d = {k: v for k, v in entry_dict.items() if k != "entry_hash"}
    return sha256_hex(canonical_json_bytes(d))
