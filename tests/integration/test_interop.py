"""
Cross-implementation checks for the envelope format.

The peer runtime is modelled independently of hexseal: the key comes from the
standard library's PBKDF2 and sealing uses AESGCM directly, with the tag appended
the way Web Crypto returns it.
"""

import hashlib

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from hexseal.core.exceptions import AuthenticationError
from hexseal.core.settings import load_settings
from hexseal.security.encryption import EnvelopeCodec

SECRET = "s1"
SALT_HEX = "61626364"  # "abcd"
FIXED_IV = "000102030405060708090a0b"
PLAINTEXT = "hello world"


@pytest.fixture
def peer_key():
    """Key as the browser derives it: hex salt read back as UTF-8 text."""
    return hashlib.pbkdf2_hmac("sha256", SECRET.encode(), b"abcd", 1000, 32)


@pytest.fixture
def codec():
    return EnvelopeCodec(load_settings({
        "ENCRYPTION_KEY": SECRET,
        "ENCRYPTION_SALT": SALT_HEX,
        "ENCRYPTION_IV": FIXED_IV,
        "ENCRYPTION_ALGORITHM": "aes-256-gcm",
    }))


def _peer_encrypt(key: bytes, iv_hex: str, text: str) -> str:
    sealed = AESGCM(key).encrypt(bytes.fromhex(iv_hex), text.encode("utf-8"), None)
    return f"{iv_hex}:{sealed.hex()}"


def _peer_decrypt(key: bytes, envelope: str) -> str:
    iv_hex, body_hex = envelope.split(":")
    return AESGCM(key).decrypt(bytes.fromhex(iv_hex), bytes.fromhex(body_hex), None).decode("utf-8")


def test_codec_key_matches_peer(codec, peer_key):
    assert codec.key == peer_key


def test_codec_envelope_opens_in_peer(codec, peer_key):
    envelope = codec.encrypt_text(PLAINTEXT)
    assert envelope.split(":")[0] == FIXED_IV
    assert _peer_decrypt(peer_key, envelope) == PLAINTEXT


def test_peer_envelope_opens_in_codec(codec, peer_key):
    envelope = _peer_encrypt(peer_key, FIXED_IV, PLAINTEXT)
    assert envelope.split(":")[0] == FIXED_IV
    assert codec.decrypt_text(envelope) == PLAINTEXT


def test_fixed_iv_envelopes_are_byte_identical(codec, peer_key):
    """Both sides produce the same bytes for the same secret, salt, IV and text."""
    assert codec.encrypt_text(PLAINTEXT) == _peer_encrypt(peer_key, FIXED_IV, PLAINTEXT)


def test_peer_random_iv_envelope_opens_in_codec(peer_key):
    """Random-IV mode: the IV travels in the envelope, so no IV config is needed."""
    codec = EnvelopeCodec(load_settings({"ENCRYPTION_KEY": SECRET, "ENCRYPTION_SALT": SALT_HEX}))
    envelope = _peer_encrypt(peer_key, "a1b2c3d4e5f60718293a4b5c", '{"msg":"hi"}')
    assert codec.decrypt_object(envelope) == {"msg": "hi"}


def test_two_codec_instances_interoperate():
    """Server-side and browser-side configurations of the same codec agree."""
    server = EnvelopeCodec(load_settings({"ENCRYPTION_KEY": SECRET, "ENCRYPTION_SALT": SALT_HEX, "ENCRYPTION_IV": FIXED_IV}))
    browser = EnvelopeCodec(load_settings({"ENCRYPTION_KEY": SECRET, "ENCRYPTION_SALT": SALT_HEX.upper(), "ENCRYPTION_ALGORITHM": "AES-GCM"}))

    assert browser.decrypt_text(server.encrypt_text(PLAINTEXT)) == PLAINTEXT
    assert server.decrypt_object(browser.encrypt_object({"k": [1, 2]})) == {"k": [1, 2]}


def test_salt_mismatch_does_not_interoperate(peer_key):
    """Using the raw hex string as salt (no normalization) yields a different key."""
    wrong = hashlib.pbkdf2_hmac("sha256", SECRET.encode(), SALT_HEX.encode(), 1000, 32)
    assert wrong != peer_key
    codec = EnvelopeCodec(load_settings({"ENCRYPTION_KEY": SECRET, "ENCRYPTION_SALT": SALT_HEX}))
    with pytest.raises(AuthenticationError):
        codec.decrypt_text(_peer_encrypt(wrong, FIXED_IV, PLAINTEXT))


def test_random_hex_salt_interoperates():
    """`openssl rand -hex 16` salts are not valid UTF-8; the peer hashes U+FFFD in their place."""
    salt_hex = "ff6a1c9e3b7d4f20a1b2c3d4e5f60718"
    peer_salt = bytes.fromhex(salt_hex).decode("utf-8", errors="replace").encode("utf-8")
    assert b"\xef\xbf\xbd" in peer_salt
    key = hashlib.pbkdf2_hmac("sha256", SECRET.encode(), peer_salt, 1000, 32)

    codec = EnvelopeCodec(load_settings({"ENCRYPTION_KEY": SECRET, "ENCRYPTION_SALT": salt_hex}))
    assert codec.key == key
    assert codec.decrypt_text(_peer_encrypt(key, FIXED_IV, PLAINTEXT)) == PLAINTEXT
