"""Security helpers: key derivation and AES-GCM envelopes for hexseal.

This package provides:
- PBKDF2-SHA256 key derivation with the shared hex-salt normalization
- AES-256-GCM seal/open with the tag split out
- the ``iv:ciphertext+tag`` hex envelope framer, parser and validity check
- the EnvelopeCodec facade used by the transport layer
"""

from .kdf import derive_key, normalize_salt
from .crypto import seal, unseal, generate_iv, IvPolicy
from .envelope import frame, parse, looks_like_envelope, extract_envelope
from .session import KeyCell
from .encryption import (
    EnvelopeCodec,
    classify_plaintext,
    get_codec,
    reset_codec,
    encrypt_text,
    decrypt_text,
    encrypt_object,
    decrypt_object,
)

__all__ = [
    "derive_key",
    "normalize_salt",
    "seal",
    "unseal",
    "generate_iv",
    "IvPolicy",
    "frame",
    "parse",
    "looks_like_envelope",
    "extract_envelope",
    "KeyCell",
    "EnvelopeCodec",
    "classify_plaintext",
    "get_codec",
    "reset_codec",
    "encrypt_text",
    "decrypt_text",
    "encrypt_object",
    "decrypt_object",
]
