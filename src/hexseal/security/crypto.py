"""AES-256-GCM seal/open for hexseal envelopes.

The browser runtime (Web Crypto) returns ciphertext with the 16-byte tag appended,
while stream-cipher style libraries hand the tag out separately. These helpers
always work with the two pieces split apart so the framer decides where the tag
goes on the wire:

- key: 32 bytes
- iv: 12 bytes (fixed from configuration, or random per call)
- tag: 16 bytes, no associated data
"""
import logging
import os
from typing import Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from hexseal.core.exceptions import AuthenticationError, ConfigurationError, FormatError
from .kdf import HEX_RE

logger = logging.getLogger(__name__)

KEY_LEN = 32
IV_LEN = 12
TAG_LEN = 16
# largest nonce AESGCM accepts on the open side
MAX_IV_LEN = 128


def generate_iv() -> bytes:
    return os.urandom(IV_LEN)


def parse_fixed_iv(iv_hex: str) -> bytes:
    """Decode a configured IV; it must be exactly 24 hex characters."""
    value = iv_hex.strip()
    if len(value) != IV_LEN * 2 or not HEX_RE.fullmatch(value):
        raise ConfigurationError(
            f"fixed IV must be {IV_LEN * 2} hex characters, got {len(value)} characters"
        )
    return bytes.fromhex(value)


def _check_key(key: bytes) -> None:
    if len(key) != KEY_LEN:
        raise ConfigurationError(f"key must be {KEY_LEN} bytes, got {len(key)}")


def seal(key: bytes, iv: bytes, plaintext: bytes) -> Tuple[bytes, bytes]:
    """Encrypt ``plaintext`` and return ``(ciphertext, tag)``."""
    _check_key(key)
    if len(iv) != IV_LEN:
        raise ConfigurationError(f"IV must be {IV_LEN} bytes, got {len(iv)}")
    sealed = AESGCM(key).encrypt(iv, plaintext, None)
    return sealed[:-TAG_LEN], sealed[-TAG_LEN:]


def unseal(key: bytes, iv: bytes, ciphertext: bytes, tag: bytes) -> bytes:
    """
    Verify ``tag`` and decrypt ``ciphertext``.

    Raises AuthenticationError if the tag does not verify. The IV length is taken
    from the envelope as-is; GCM accepts longer IVs and so does the peer runtime.
    """
    _check_key(key)
    if len(tag) != TAG_LEN:
        raise FormatError(f"authentication tag must be {TAG_LEN} bytes, got {len(tag)}")
    if not IV_LEN <= len(iv) <= MAX_IV_LEN:
        raise FormatError(f"IV must be {IV_LEN}-{MAX_IV_LEN} bytes, got {len(iv)}")
    try:
        return AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as exc:
        logger.debug("tag verification failed for %d-byte ciphertext", len(ciphertext))
        raise AuthenticationError(
            "authentication tag verification failed; the key, IV or ciphertext does not match"
        ) from exc


class IvPolicy:
    """Chooses the IV for each seal call.

    With no fixed IV every call gets a fresh random one. A fixed IV makes every
    envelope under the same key reuse one nonce, which breaks GCM confidentiality
    and integrity once two different plaintexts are sealed; it exists only so
    envelopes from the legacy server can be reproduced.
    """

    def __init__(self, fixed_iv: Optional[bytes] = None):
        if fixed_iv is not None and len(fixed_iv) != IV_LEN:
            raise ConfigurationError(f"IV must be {IV_LEN} bytes, got {len(fixed_iv)}")
        self.fixed_iv = fixed_iv
        if fixed_iv is not None:
            logger.warning(
                "fixed IV configured: every envelope reuses the same GCM nonce (insecure, legacy compatibility only)"
            )

    @classmethod
    def from_hex(cls, iv_hex: Optional[str]) -> "IvPolicy":
        if iv_hex is None or not iv_hex.strip():
            return cls(None)
        return cls(parse_fixed_iv(iv_hex))

    @property
    def is_fixed(self) -> bool:
        return self.fixed_iv is not None

    def next_iv(self) -> bytes:
        if self.fixed_iv is not None:
            return self.fixed_iv
        return generate_iv()
