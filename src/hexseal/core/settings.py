"""Codec configuration read from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "AES-GCM"
DEFAULT_SALT = "default-salt"
DEV_SECRET = "default-encryption-key-change-in-production"
# server-style and Web Crypto-style names for the one supported mode
SUPPORTED_ALGORITHMS = ("aes-256-gcm", "aes-gcm")

_TRUTHY = ("1", "true", "yes", "on")


def normalize_algorithm(name: Optional[str]) -> str:
    if not name:
        return DEFAULT_ALGORITHM
    if name.strip().lower() not in SUPPORTED_ALGORITHMS:
        logger.warning("Unsupported algorithm %r; using %s", name, DEFAULT_ALGORITHM)
    return DEFAULT_ALGORITHM


@dataclass(frozen=True)
class CodecSettings:
    """Everything the codec needs from configuration.

    ``secret`` is excluded from repr so settings can be logged safely.
    """

    secret: Optional[str] = field(default=None, repr=False)
    salt: str = DEFAULT_SALT
    fixed_iv: Optional[str] = None
    algorithm: str = DEFAULT_ALGORITHM
    dev_mode: bool = False

    @property
    def uses_default_salt(self) -> bool:
        return self.salt == DEFAULT_SALT

    @property
    def uses_dev_secret(self) -> bool:
        return not self.secret and self.dev_mode

    def effective_secret(self) -> Optional[str]:
        """Return the configured secret, or the development key in dev mode."""
        if self.secret:
            return self.secret
        if self.dev_mode:
            return DEV_SECRET
        return None

    def insecure_reasons(self) -> List[str]:
        reasons = []
        if self.uses_dev_secret:
            reasons.append("development encryption key in use (set ENCRYPTION_KEY)")
        if self.uses_default_salt:
            reasons.append("default salt in use (set ENCRYPTION_SALT)")
        if self.fixed_iv:
            reasons.append("fixed IV configured; GCM nonce is reused for every envelope")
        return reasons


def load_settings(environ: Optional[Mapping[str, str]] = None) -> CodecSettings:
    """
    Build settings from the environment.

    Variables:
    - ``ENCRYPTION_KEY``: shared secret (required unless ``HEXSEAL_DEV_MODE`` is set)
    - ``ENCRYPTION_SALT``: KDF salt, hex or plain text
    - ``ENCRYPTION_IV``: optional fixed IV, 24 hex characters
    - ``ENCRYPTION_ALGORITHM``: ``aes-256-gcm`` / ``aes-gcm``
    - ``HEXSEAL_DEV_MODE``: allow the built-in development key

    Missing secrets are not rejected here; the key cell raises
    ConfigurationError on first use so the error surfaces at the caller.
    """
    env = os.environ if environ is None else environ

    settings = CodecSettings(
        secret=env.get("ENCRYPTION_KEY") or None,
        salt=env.get("ENCRYPTION_SALT") or DEFAULT_SALT,
        fixed_iv=(env.get("ENCRYPTION_IV") or "").strip() or None,
        algorithm=normalize_algorithm(env.get("ENCRYPTION_ALGORITHM")),
        dev_mode=env.get("HEXSEAL_DEV_MODE", "").strip().lower() in _TRUTHY,
    )

    for reason in settings.insecure_reasons():
        logger.warning("Insecure configuration: %s", reason)
    if not settings.effective_secret():
        logger.error("ENCRYPTION_KEY is not set; encryption will be refused")
    return settings
