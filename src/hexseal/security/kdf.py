"""Key derivation for hexseal envelopes."""
import logging
import re
from typing import Dict, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from hexseal.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ITERATIONS = 1000
KEY_LEN = 32
HEX_RE = re.compile(r"[0-9a-fA-F]+")


def normalize_salt(salt: str) -> str:
    """
    Return the effective salt string.

    A hex salt is decoded to bytes and those bytes are read back as UTF-8 text,
    which is what both peer runtimes do before handing the salt to PBKDF2.
    Their decoders never fail: a trailing odd nibble is dropped and invalid
    UTF-8 becomes U+FFFD. Salts that are not hex are used as-is.
    """
    if not HEX_RE.fullmatch(salt):
        return salt
    even = salt[: len(salt) // 2 * 2]
    return bytes.fromhex(even).decode("utf-8", errors="replace")


def derive_key(secret: Union[bytes, str, None], salt: str, key_len: int = KEY_LEN) -> bytes:
    """
    Derive the envelope key from the shared secret using PBKDF2-HMAC-SHA256.
    Returns raw derived key bytes.
    """
    if not secret:
        raise ConfigurationError("encryption secret is not set")
    if isinstance(secret, str):
        secret = secret.encode("utf-8")

    effective_salt = normalize_salt(salt).encode("utf-8")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=key_len,
        salt=effective_salt,
        iterations=ITERATIONS,
    )
    key = kdf.derive(secret)
    logger.debug("derived %d-byte key (salt %d bytes)", len(key), len(effective_salt))
    return key


def kdf_params_to_dict(salt: str) -> Dict:
    return {
        "algo": "pbkdf2-sha256",
        "salt": salt,
        "effective_salt": normalize_salt(salt),
        "iterations": ITERATIONS,
        "length": KEY_LEN,
    }
