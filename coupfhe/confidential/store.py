"""
Confidential Value Store - Seals role values for their owner.

The engine only relies on the contract:
- seal(owner, role) -> opaque handle
- unseal_and_compare(owner, handle, claimed) -> bool
- reveal(owner, handle) -> role

KeyedConfidentialStore is a stand-in backend: handles are
self-contained, masked with a keyed hash and bound to their owner
by a MAC. It hides roles from anyone reading the ledger without the
key, which is all the engine needs. It is not a cryptographic scheme
for adversarial players; swap in a real backend behind the same ABC.
"""

from __future__ import annotations
import base64
import hashlib
import hmac
import secrets
from abc import ABC, abstractmethod

from ..engine_core.catalog import ROLES, Role
from ..engine_core.errors import OwnershipError, StoreUnavailable


class ConfidentialValueStore(ABC):
    """Capability interface for sealed role values."""

    @abstractmethod
    def seal(self, owner_id: str, role: Role) -> str:
        """Seal a role for an owner and return its handle."""

    @abstractmethod
    def unseal_and_compare(self, owner_id: str, handle: str, claimed: Role) -> bool:
        """Return whether the sealed role equals the claim, and nothing else."""

    @abstractmethod
    def reveal(self, owner_id: str, handle: str) -> Role:
        """Open a handle. Only valid for its owner."""


_NONCE_BYTES = 16
_TAG_BYTES = 16


class KeyedConfidentialStore(ConfidentialValueStore):
    """
    Stateless store keyed by a secret.

    Two stores built with the same key can open each other's handles,
    so a game restored from the ledger keeps working across restarts.
    """

    def __init__(self, secret_key: bytes | str | None = None):
        if secret_key is None:
            secret_key = secrets.token_bytes(32)
        elif isinstance(secret_key, str):
            secret_key = secret_key.encode("utf-8")
        self._key = secret_key

    def seal(self, owner_id: str, role: Role) -> str:
        nonce = secrets.token_bytes(_NONCE_BYTES)
        masked = ROLES.index(role) ^ self._mask(owner_id, nonce)
        body = nonce + bytes([masked])
        tag = self._tag(owner_id, body)
        return base64.urlsafe_b64encode(body + tag).decode("ascii")

    def unseal_and_compare(self, owner_id: str, handle: str, claimed: Role) -> bool:
        role = self._open(owner_id, handle)
        return hmac.compare_digest(role.value, claimed.value)

    def reveal(self, owner_id: str, handle: str) -> Role:
        return self._open(owner_id, handle)

    def _open(self, owner_id: str, handle: str) -> Role:
        try:
            raw = base64.urlsafe_b64decode(handle.encode("ascii"))
        except (ValueError, UnicodeEncodeError) as e:
            raise OwnershipError(f"Malformed handle: {e}") from e

        if len(raw) != _NONCE_BYTES + 1 + _TAG_BYTES:
            raise OwnershipError("Malformed handle")

        body, tag = raw[:-_TAG_BYTES], raw[-_TAG_BYTES:]
        if not hmac.compare_digest(tag, self._tag(owner_id, body)):
            raise OwnershipError(f"Handle is not owned by {owner_id}")

        nonce, masked = body[:_NONCE_BYTES], body[_NONCE_BYTES]
        index = masked ^ self._mask(owner_id, nonce)
        if index >= len(ROLES):
            raise StoreUnavailable("Sealed value is corrupt")
        return ROLES[index]

    def _mask(self, owner_id: str, nonce: bytes) -> int:
        digest = hmac.new(
            self._key, b"mask|" + owner_id.encode("utf-8") + b"|" + nonce, hashlib.sha256
        ).digest()
        return digest[0]

    def _tag(self, owner_id: str, body: bytes) -> bytes:
        return hmac.new(
            self._key, b"tag|" + owner_id.encode("utf-8") + b"|" + body, hashlib.sha256
        ).digest()[:_TAG_BYTES]
