"""
Encrypt/decrypt facade over the envelope codec.

This is the only surface the transport layer calls. It wires together:

- the one-shot derived key (:class:`hexseal.security.session.KeyCell`)
- the IV policy (fixed from configuration, or random per call)
- AES-GCM seal/open (:mod:`hexseal.security.crypto`)
- envelope framing and validation (:mod:`hexseal.security.envelope`)

Text and JSON values both travel as UTF-8 text; the envelope carries no content
type, so :func:`classify_plaintext` decides whether a payload is structured.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional, Union

from hexseal.core.exceptions import FormatError
from hexseal.core.settings import CodecSettings, load_settings
from .crypto import IvPolicy, seal, unseal
from .envelope import frame, looks_like_envelope, parse
from .kdf import derive_key
from .session import KeyCell

logger = logging.getLogger(__name__)

KIND_OBJECT = "object"
KIND_TEXT = "text"
SELF_CHECK_TEXT = "hexseal self-check ✓"


# ----------------------------------------------------------------------
# Content-type inference
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Structured:
    """A JSON value together with its canonical text."""

    value: Any
    text: str
    kind: str = KIND_OBJECT


@dataclass(frozen=True)
class Text:
    text: str
    kind: str = KIND_TEXT


Plaintext = Union[Structured, Text]


def _reject_constant(name: str) -> Any:
    # NaN/Infinity are not JSON for the browser runtime
    raise ValueError(f"non-standard JSON constant {name}")


def canonical_json(value: Any) -> str:
    """Serialize ``value`` the way ``JSON.stringify`` does: compact, key order kept."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def classify_plaintext(data: Any) -> Plaintext:
    """
    Decide whether ``data`` is a structured (JSON) value or plain text.

    Strings are structured when they parse as JSON; other values are structured
    when they serialize to JSON, and otherwise fall back to their ``str()`` form.
    """
    if isinstance(data, str):
        try:
            value = json.loads(data, parse_constant=_reject_constant)
        except ValueError:
            return Text(data)
        return Structured(value, canonical_json(value))

    try:
        return Structured(data, canonical_json(data))
    except (TypeError, ValueError):
        return Text(str(data))


@dataclass(frozen=True)
class SealedPayload:
    envelope: str
    kind: str


@dataclass(frozen=True)
class OpenedPayload:
    value: Any
    kind: str


# ----------------------------------------------------------------------
# Codec
# ----------------------------------------------------------------------

class EnvelopeCodec:
    """
    Text-in/text-out envelope codec.

    The key is derived once per codec on first use (or on :meth:`warm_up`) and
    shared by every call; seal/open calls are otherwise independent, so one codec
    can be used from many threads.
    """

    def __init__(self, settings: Optional[CodecSettings] = None):
        self.settings = settings if settings is not None else load_settings()
        self.iv_policy = IvPolicy.from_hex(self.settings.fixed_iv)
        self._key_cell = KeyCell(self._derive)

    def _derive(self) -> bytes:
        return derive_key(self.settings.effective_secret(), self.settings.salt)

    @property
    def key(self) -> bytes:
        return self._key_cell.get()

    def warm_up(self) -> None:
        """Derive the key now instead of on the first request."""
        self._key_cell.get()

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def encrypt_text(self, plain: str) -> str:
        if not isinstance(plain, str):
            raise FormatError(f"plaintext must be a string, got {type(plain).__name__}")
        try:
            data = plain.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise FormatError(f"plaintext is not encodable as UTF-8: {exc}") from exc

        key = self.key
        iv = self.iv_policy.next_iv()
        ciphertext, tag = seal(key, iv, data)
        logger.debug("sealed %d bytes", len(data))
        return frame(iv, ciphertext, tag)

    def decrypt_text(self, envelope: str) -> str:
        if not looks_like_envelope(envelope):
            raise FormatError("not an envelope")
        iv, ciphertext, tag = parse(envelope)
        data = unseal(self.key, iv, ciphertext, tag)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormatError("decrypted data is not valid UTF-8 text") from exc

    # ------------------------------------------------------------------
    # JSON values
    # ------------------------------------------------------------------

    def encrypt_object(self, value: Any) -> str:
        try:
            text = canonical_json(value)
        except (TypeError, ValueError) as exc:
            raise FormatError(f"value is not JSON-serializable: {exc}") from exc
        return self.encrypt_text(text)

    def decrypt_object(self, envelope: str) -> Any:
        text = self.decrypt_text(envelope)
        try:
            return json.loads(text, parse_constant=_reject_constant)
        except ValueError as exc:
            raise FormatError(f"decrypted text is not valid JSON: {exc}") from exc

    # ------------------------------------------------------------------
    # Content-type inference
    # ------------------------------------------------------------------

    def encrypt_auto(self, data: Any) -> SealedPayload:
        """Encrypt ``data`` as an object when it is JSON, as text otherwise."""
        payload = classify_plaintext(data)
        return SealedPayload(self.encrypt_text(payload.text), payload.kind)

    def decrypt_auto(self, envelope: str) -> OpenedPayload:
        """
        Decrypt ``envelope`` and return a JSON value when the plaintext is JSON,
        the plain text otherwise.

        The envelope is opened once; AuthenticationError and FormatError from the
        open itself propagate unchanged.
        """
        payload = classify_plaintext(self.decrypt_text(envelope))
        if isinstance(payload, Structured):
            return OpenedPayload(payload.value, payload.kind)
        return OpenedPayload(payload.text, payload.kind)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def self_check(self) -> bool:
        """
        Round-trip a fixed check string with the configured key and IV policy.

        Returns True; raises FormatError if it does not come back intact,
        and ConfigurationError/AuthenticationError from the underlying calls.
        """
        envelope = self.encrypt_text(SELF_CHECK_TEXT)
        if not looks_like_envelope(envelope) or self.decrypt_text(envelope) != SELF_CHECK_TEXT:
            logger.error("self-check failed: check string did not round-trip")
            raise FormatError("self-check failed: check string did not round-trip")
        logger.info("self-check passed")
        return True


# module-level default codec, built from the environment on first use
_default_codec: Optional[EnvelopeCodec] = None
_default_codec_lock = threading.Lock()


def get_codec() -> EnvelopeCodec:
    global _default_codec
    with _default_codec_lock:
        if _default_codec is None:
            _default_codec = EnvelopeCodec(load_settings())
        return _default_codec


def reset_codec() -> None:
    global _default_codec
    with _default_codec_lock:
        _default_codec = None


def encrypt_text(plain: str) -> str:
    return get_codec().encrypt_text(plain)


def decrypt_text(envelope: str) -> str:
    return get_codec().decrypt_text(envelope)


def encrypt_object(value: Any) -> str:
    return get_codec().encrypt_object(value)


def decrypt_object(envelope: str) -> Any:
    return get_codec().decrypt_object(envelope)
