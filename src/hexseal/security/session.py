"""One-shot holder for the derived envelope key.

The key is derived lazily on first use and then shared read-only by every
caller. Concurrent first callers block on a lock so PBKDF2 runs exactly once;
if derivation fails the ConfigurationError is stored and re-raised to every
later caller instead of retrying.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from hexseal.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class KeyCell:
    def __init__(self, derive: Callable[[], bytes]):
        self._derive = derive
        self._lock = threading.Lock()
        self._key: Optional[bytes] = None
        self._error: Optional[ConfigurationError] = None
        self._done = False

    @property
    def initialized(self) -> bool:
        return self._done

    def get(self) -> bytes:
        """Return the derived key, deriving it on first call.

        Raises the ConfigurationError from derivation on this and every later call.
        """
        if not self._done:
            with self._lock:
                if not self._done:
                    self._initialize()
        if self._error is not None:
            raise self._error
        return self._key

    def _initialize(self) -> None:
        logger.debug("deriving envelope key")
        try:
            self._key = self._derive()
        except ConfigurationError as exc:
            logger.error("key derivation refused: %s", exc.detail)
            self._error = exc
        self._done = True
