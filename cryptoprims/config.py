"""
Configuration

CryptoSuite is the explicit configuration passed into entry points: which
hash algorithm builds trees and which signature scheme signs. It replaces
any module-level mutable state; defaults live in the constants below.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .core_crypto.hashing import HashAlgorithm, HashAlgorithmType, get_hash_algorithm
from .core_crypto.merkle import MerkleTree
from .signatures.entropy import EntropySource, SystemEntropySource
from .signatures.keys import KeyPair, SignatureSchemeType
from .signatures.schemes import SignatureScheme, get_signature_scheme


DEFAULT_HASH_ALGORITHM = HashAlgorithmType.SHA256
DEFAULT_SIGNATURE_SCHEME = SignatureSchemeType.ED25519
DEFAULT_BATCH_SIZE = 10  # audit events per sealed batch


@dataclass(frozen=True)
class CryptoSuite:
    """Hash algorithm, signature scheme and entropy source used together."""
    hash_type: HashAlgorithmType = DEFAULT_HASH_ALGORITHM
    scheme_type: SignatureSchemeType = DEFAULT_SIGNATURE_SCHEME
    entropy_source: EntropySource = field(default_factory=SystemEntropySource)

    @classmethod
    def from_names(cls, hash_name: str = DEFAULT_HASH_ALGORITHM.value,
                   scheme_name: str = DEFAULT_SIGNATURE_SCHEME.value,
                   entropy_source: Optional[EntropySource] = None) -> 'CryptoSuite':
        """
        Build a suite from algorithm names, e.g. ("blake3", "ecdsa-p256").

        Raises:
            ValueError: If either name is unknown
        """
        hash_type = HashAlgorithmType(get_hash_algorithm(hash_name).name)
        scheme_type = get_signature_scheme(scheme_name).scheme_type
        return cls(hash_type, scheme_type, entropy_source or SystemEntropySource())

    def hash_algorithm(self) -> HashAlgorithm:
        return get_hash_algorithm(self.hash_type)

    def signature_scheme(self) -> SignatureScheme:
        return get_signature_scheme(self.scheme_type)

    def generate_keypair(self) -> KeyPair:
        """Generate a key pair with this suite's scheme and entropy source."""
        return self.signature_scheme().generate_keypair(self.entropy_source)

    def new_tree(self) -> MerkleTree:
        """Create an empty Merkle tree using this suite's hash algorithm."""
        return MerkleTree(self.hash_algorithm())

    def build_tree(self, items: Iterable[bytes]) -> MerkleTree:
        return MerkleTree.from_items(items, self.hash_algorithm())
