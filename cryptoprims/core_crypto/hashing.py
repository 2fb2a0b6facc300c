"""
Hash Algorithm Abstraction

A uniform contract over interchangeable fixed-output digest functions:

- hash(data)                  -> digest
- hash_with_salt(data, salt)  -> digest over an unambiguously framed input

Concrete algorithms:
- BLAKE3          fast general-purpose hash (blake3 package)
- SHA-256         cryptographic hash for integrity proofs
- SHA3-256        NIST FIPS 202 digest format
- Double SHA-256  Bitcoin-style SHA-256(SHA-256(x))

Every algorithm is stateless; one instance may be shared by any number
of trees, proofs and threads.
"""

import hashlib
import struct
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Union

import blake3


# Digests are plain immutable bytes
Digest = bytes

DIGEST_SIZE = 32
SALT_LENGTH_FORMAT = '>Q'  # 8-byte big-endian salt length prefix


class HashAlgorithm(ABC):
    """
    Base class for hash algorithms.

    Subclasses only implement _digest(); framing of salted input and
    pair combination live here so every algorithm behaves identically.
    """

    name: str = ''
    digest_size: int = DIGEST_SIZE

    @abstractmethod
    def _digest(self, data: bytes) -> Digest:
        """Compute the raw digest of data."""

    def hash(self, data: bytes) -> Digest:
        """
        Hash a byte sequence.

        Args:
            data: Any bytes, including empty

        Returns:
            Fixed-length digest
        """
        return self._digest(bytes(data))

    def hash_with_salt(self, data: bytes, salt: bytes) -> Digest:
        """
        Hash data together with a salt.

        The input is framed as len(salt) || salt || data, so two different
        (salt, data) splits of the same byte string never collide.

        Args:
            data: Data to hash
            salt: Salt bytes

        Returns:
            Fixed-length digest
        """
        salt = bytes(salt)
        framed = struct.pack(SALT_LENGTH_FORMAT, len(salt)) + salt + bytes(data)
        return self._digest(framed)

    def hash_pair(self, left: Digest, right: Digest) -> Digest:
        """Combine two child digests: hash(left || right)."""
        return self._digest(bytes(left) + bytes(right))

    def __eq__(self, other) -> bool:
        return isinstance(other, HashAlgorithm) and self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Blake3Hash(HashAlgorithm):
    """BLAKE3 with 32-byte output."""

    name = 'blake3'

    def _digest(self, data: bytes) -> Digest:
        return blake3.blake3(data).digest()


class Sha256Hash(HashAlgorithm):
    """SHA-256 (FIPS 180-4)."""

    name = 'sha256'

    def _digest(self, data: bytes) -> Digest:
        return hashlib.sha256(data).digest()


class Sha3_256Hash(HashAlgorithm):
    """SHA3-256 (FIPS 202)."""

    name = 'sha3-256'

    def _digest(self, data: bytes) -> Digest:
        return hashlib.sha3_256(data).digest()


class DoubleSha256Hash(HashAlgorithm):
    """SHA-256 applied twice, as used in Bitcoin block and tx hashes."""

    name = 'double-sha256'

    def _digest(self, data: bytes) -> Digest:
        return hashlib.sha256(hashlib.sha256(data).digest()).digest()


class HashAlgorithmType(Enum):
    """Closed set of supported hash algorithms."""

    BLAKE3 = 'blake3'
    SHA256 = 'sha256'
    SHA3_256 = 'sha3-256'
    DOUBLE_SHA256 = 'double-sha256'


_ALGORITHMS: Dict[HashAlgorithmType, HashAlgorithm] = {
    HashAlgorithmType.BLAKE3: Blake3Hash(),
    HashAlgorithmType.SHA256: Sha256Hash(),
    HashAlgorithmType.SHA3_256: Sha3_256Hash(),
    HashAlgorithmType.DOUBLE_SHA256: DoubleSha256Hash(),
}


def get_hash_algorithm(algorithm: Union[HashAlgorithmType, str]) -> HashAlgorithm:
    """
    Look up a shared hash algorithm instance.

    Args:
        algorithm: HashAlgorithmType member or its name (e.g. "sha256")

    Returns:
        The stateless HashAlgorithm for that variant

    Raises:
        ValueError: If the name is not a supported algorithm
    """
    if not isinstance(algorithm, HashAlgorithmType):
        try:
            algorithm = HashAlgorithmType(str(algorithm).lower())
        except ValueError:
            supported = ', '.join(t.value for t in HashAlgorithmType)
            raise ValueError(
                f"Unknown hash algorithm {algorithm!r} (supported: {supported})"
            ) from None
    return _ALGORITHMS[algorithm]


def available_algorithms() -> list:
    """Names of all supported hash algorithms."""
    return [t.value for t in HashAlgorithmType]
