# =============================================================================
# lib/key_codec.py - Storage Key Derivation
# =============================================================================
# Pure functions (no I/O) that build object-store keys and map between a
# stored URL and the key it encodes.
#
# Key layout:
#   <sha1(owner identity)>/<hex unix seconds>-<hex random>/<logical path><suffix>
#
# Every write derives a fresh key, so a key is never reused for different
# bytes and objects can be cached as immutable.
#
# Usage:
#   from lib.key_codec import KeyCodec, derive_key
#   key = derive_key(user_id, "docs/report.pdf")
#   url = KeyCodec(base_url).key_to_url(key)
# =============================================================================

from __future__ import annotations

import hashlib
import secrets
import time
from dataclasses import dataclass

# 48 random bits per second per owner/path
DISAMBIGUATOR_RANDOM_BYTES = 6


def hash_owner(owner_identity: str) -> str:
    """Return the hex SHA-1 digest of an owner identity."""
    return hashlib.sha1(owner_identity.encode("utf-8")).hexdigest()


def make_disambiguator(now: float | None = None) -> str:
    """
    Build the time-plus-random segment of a storage key.

    Args:
        now: Unix timestamp to use (defaults to the current time)

    Returns:
        "<hex seconds>-<hex random>", e.g. "65a4f1c0-3fa91b07c2d4"
    """
    seconds = int(time.time() if now is None else now)
    return f"{seconds:x}-{secrets.token_hex(DISAMBIGUATOR_RANDOM_BYTES)}"


def derive_key(owner_identity: str, logical_path: str, suffix: str = "") -> str:
    """
    Derive a new storage key for one version of an asset.

    Args:
        owner_identity: Stable identity of the writer (the user id)
        logical_path: Caller-facing asset path
        suffix: Optional trailing marker, e.g. ".poster.png"

    Returns:
        A key that has not been handed out before (with overwhelming
        probability; see DISAMBIGUATOR_RANDOM_BYTES)
    """
    return f"{hash_owner(owner_identity)}/{make_disambiguator()}/{logical_path}{suffix}"


@dataclass(frozen=True)
class KeyCodec:
    """Maps storage keys to public URLs under a fixed base URL and back."""

    base_url: str

    @property
    def prefix(self) -> str:
        return self.base_url.rstrip("/") + "/"

    def key_to_url(self, key: str) -> str:
        return self.prefix + key

    def owns(self, url: str) -> bool:
        """True when the URL lies under the base URL and names a key."""
        return url.startswith(self.prefix) and len(url) > len(self.prefix)

    def url_to_key(self, url: str) -> str | None:
        """
        Strip the base URL prefix from a stored URL.

        Returns None for a URL outside the base URL. Such a row does not
        point at anything this store wrote, so callers must not hand it
        to the object store.
        """
        if not self.owns(url):
            return None
        return url[len(self.prefix):]

    def derive(self, owner_identity: str, logical_path: str, suffix: str = "") -> tuple[str, str]:
        """Derive a fresh key and return it together with its URL."""
        key = derive_key(owner_identity, logical_path, suffix)
        return key, self.key_to_url(key)
