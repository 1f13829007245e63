"""Textual envelope format shared by the server and browser runtimes.

Layout:
    <ivHex>:<ciphertextHex><tagHex>

- ivHex: at least 24 hex characters (12-byte GCM IV)
- ciphertextHex + tagHex: one contiguous hex string, the tag is always the last
  32 hex characters (16 bytes)
- hex is accepted in any case and always written lowercase
"""
import json
from typing import Any, Tuple

from hexseal.core.exceptions import FormatError
from .crypto import IV_LEN, TAG_LEN
from .kdf import HEX_RE

SEPARATOR = ":"
MIN_IV_HEX = IV_LEN * 2
TAG_HEX = TAG_LEN * 2


def frame(iv: bytes, ciphertext: bytes, tag: bytes) -> str:
    if len(tag) != TAG_LEN:
        raise FormatError(f"authentication tag must be {TAG_LEN} bytes, got {len(tag)}")
    return f"{iv.hex()}{SEPARATOR}{(ciphertext + tag).hex()}"


def parse(envelope: str) -> Tuple[bytes, bytes, bytes]:
    """
    Split an envelope into ``(iv, ciphertext, tag)``.

    Surrounding whitespace is ignored, both around the whole envelope and around
    each part. Raises FormatError for anything that is not a well-formed envelope.
    """
    if not isinstance(envelope, str):
        raise FormatError(f"envelope must be a string, got {type(envelope).__name__}")

    iv_hex, sep, body_hex = envelope.strip().partition(SEPARATOR)
    iv_hex = iv_hex.strip()
    body_hex = body_hex.strip()
    if not sep or not iv_hex or not body_hex:
        raise FormatError("expected format 'iv:data'")

    if not HEX_RE.fullmatch(iv_hex) or not HEX_RE.fullmatch(body_hex):
        raise FormatError("IV and data must be hexadecimal")
    if len(iv_hex) < MIN_IV_HEX:
        raise FormatError(f"IV too short (expected at least {MIN_IV_HEX} hex characters)")
    if len(body_hex) < TAG_HEX:
        raise FormatError(f"data too short (expected at least {TAG_HEX} hex characters)")

    try:
        iv = bytes.fromhex(iv_hex)
        ciphertext = bytes.fromhex(body_hex[:-TAG_HEX])
        tag = bytes.fromhex(body_hex[-TAG_HEX:])
    except ValueError as exc:
        # odd number of hex digits
        raise FormatError(f"invalid hex encoding: {exc}") from exc
    return iv, ciphertext, tag


def looks_like_envelope(candidate: Any) -> bool:
    """Cheap structural check: same rules as :func:`parse`, but never raises."""
    try:
        parse(candidate)
    except FormatError:
        return False
    return True


def extract_envelope(raw: str) -> str:
    """
    Return the envelope candidate from ``raw``.

    Accepts a bare envelope or the transport's JSON wrapper ``{"data": "<envelope>"}``
    pasted as-is; anything else comes back trimmed.
    """
    text = str(raw).strip()
    try:
        wrapper = json.loads(text)
    except ValueError:
        return text
    if isinstance(wrapper, dict) and isinstance(wrapper.get("data"), str):
        return wrapper["data"].strip()
    return text
