"""Shared fixtures and deterministic entropy sources."""

import hashlib

import pytest

from cryptoprims.core_crypto.hashing import get_hash_algorithm, available_algorithms


class CountingEntropy:
    """Deterministic entropy for reproducible key generation in tests."""

    def __init__(self, seed: bytes = b"test-seed"):
        self._seed = seed
        self._counter = 0

    def random_bytes(self, n: int) -> bytes:
        out = b""
        while len(out) < n:
            block = self._seed + self._counter.to_bytes(8, 'big')
            out += hashlib.sha256(block).digest()
            self._counter += 1
        return out[:n]


class FailingEntropy:
    """Source that is always depleted."""

    def random_bytes(self, n: int) -> bytes:
        raise OSError("entropy pool depleted")


class ShortEntropy:
    """Source that returns fewer bytes than asked."""

    def random_bytes(self, n: int) -> bytes:
        return b"\x07" * (n // 2)


class ConstantEntropy:
    """Source that repeats one byte value."""

    def __init__(self, value: int):
        self._value = value

    def random_bytes(self, n: int) -> bytes:
        return bytes([self._value]) * n


@pytest.fixture
def sha256():
    return get_hash_algorithm("sha256")


@pytest.fixture(params=available_algorithms())
def any_algorithm(request):
    return get_hash_algorithm(request.param)


@pytest.fixture
def counting_entropy():
    return CountingEntropy()


@pytest.fixture
def failing_entropy():
    return FailingEntropy()


@pytest.fixture
def short_entropy():
    return ShortEntropy()


@pytest.fixture
def constant_entropy():
    return ConstantEntropy
