"""
Error Taxonomy

Every failure raised by cryptoprims derives from CryptoPrimitivesError,
so a host application can catch the whole family at its boundary.

Verification never raises: a signature or Merkle proof that does not
check out is reported as False by verify() / verify_proof().
"""


class CryptoPrimitivesError(Exception):
    """Base class for all cryptoprims errors."""


# ============================================================================
# Signature Errors
# ============================================================================

class InvalidKeyError(CryptoPrimitivesError, ValueError):
    """Key material is malformed, of the wrong scheme, or wiped."""


class InvalidEncodingError(CryptoPrimitivesError, ValueError):
    """Serialized key or signature bytes could not be decoded."""


class InvalidSignatureError(CryptoPrimitivesError):
    """The signing operation itself failed."""


class EntropyExhaustedError(CryptoPrimitivesError):
    """The entropy source could not supply the requested randomness."""


# ============================================================================
# Merkle Tree Errors
# ============================================================================

class EmptyInputError(CryptoPrimitivesError, ValueError):
    """Merkle tree build called with no items."""


class TreeNotBuiltError(CryptoPrimitivesError, RuntimeError):
    """Merkle tree queried before build()."""


class TreeAlreadyBuiltError(CryptoPrimitivesError, RuntimeError):
    """build() called on a tree that already holds a dataset."""


class IndexOutOfRangeError(CryptoPrimitivesError, IndexError):
    """Proof requested for a leaf index that does not exist."""


class MalformedProofError(CryptoPrimitivesError, ValueError):
    """Merkle proof structure is internally inconsistent."""
