"""
Unit tests for the one-shot key cell.
"""

import threading
import time

import pytest
from hexseal.core.exceptions import ConfigurationError
from hexseal.security.session import KeyCell


class CountingDerive:
    """Derivation stub that records how often it runs."""

    def __init__(self, result=b"k" * 32, delay=0.0, error=None):
        self.calls = 0
        self.result = result
        self.delay = delay
        self.error = error

    def __call__(self):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


# ==============================================================================
# Tests: Lazy initialization
# ==============================================================================

def test_key_cell_is_lazy():
    derive = CountingDerive()
    cell = KeyCell(derive)
    assert not cell.initialized
    assert derive.calls == 0


def test_key_cell_derives_once():
    derive = CountingDerive()
    cell = KeyCell(derive)
    first = cell.get()
    second = cell.get()
    assert first is second
    assert derive.calls == 1
    assert cell.initialized


def test_key_cell_concurrent_first_use():
    """Concurrent first callers wait for a single derivation and see the same key."""
    derive = CountingDerive(result=bytearray(b"k" * 32), delay=0.05)
    cell = KeyCell(derive)
    barrier = threading.Barrier(8)
    results = []
    results_lock = threading.Lock()

    def worker():
        barrier.wait()
        key = cell.get()
        with results_lock:
            results.append(key)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert derive.calls == 1
    assert len(results) == 8
    assert all(r is results[0] for r in results)


# ==============================================================================
# Tests: Failure caching
# ==============================================================================

def test_key_cell_caches_configuration_error():
    """A refused derivation is not retried; every caller gets the same error."""
    error = ConfigurationError("encryption secret is not set")
    derive = CountingDerive(error=error)
    cell = KeyCell(derive)

    with pytest.raises(ConfigurationError) as first:
        cell.get()
    with pytest.raises(ConfigurationError) as second:
        cell.get()

    assert first.value is second.value is error
    assert derive.calls == 1
    assert cell.initialized


def test_key_cell_other_errors_propagate_and_retry():
    """Unexpected errors are not cached as configuration failures."""
    derive = CountingDerive(error=RuntimeError("boom"))
    cell = KeyCell(derive)

    with pytest.raises(RuntimeError):
        cell.get()
    assert not cell.initialized

    derive.error = None
    assert cell.get() == b"k" * 32
    assert derive.calls == 2
