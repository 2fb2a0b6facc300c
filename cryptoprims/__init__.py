# cryptoprims
"""
Cryptographic primitives:
- Pluggable hash algorithms (core_crypto.hashing)
- Pluggable signature schemes (signatures)
- Merkle trees with inclusion proofs (core_crypto.merkle)
- Merkle-sealed audit log (integration)

Run tests with: pytest
"""

from .errors import (
    CryptoPrimitivesError,
    InvalidKeyError,
    InvalidEncodingError,
    InvalidSignatureError,
    EntropyExhaustedError,
    EmptyInputError,
    TreeNotBuiltError,
    TreeAlreadyBuiltError,
    IndexOutOfRangeError,
    MalformedProofError,
)
from .core_crypto import (
    Digest,
    HashAlgorithm,
    HashAlgorithmType,
    get_hash_algorithm,
    MerkleTree,
    MerkleProof,
    verify_proof,
    verify_proof_against_tree,
    build_merkle_root,
)
from .signatures import (
    EntropySource,
    SystemEntropySource,
    SignatureSchemeType,
    PrivateKey,
    PublicKey,
    KeyPair,
    Signature,
    get_signature_scheme,
    generate_keypair,
    sign,
    verify,
)
from .config import CryptoSuite

__version__ = "0.1.0"

__all__ = [
    'CryptoPrimitivesError',
    'InvalidKeyError',
    'InvalidEncodingError',
    'InvalidSignatureError',
    'EntropyExhaustedError',
    'EmptyInputError',
    'TreeNotBuiltError',
    'TreeAlreadyBuiltError',
    'IndexOutOfRangeError',
    'MalformedProofError',
    'Digest',
    'HashAlgorithm',
    'HashAlgorithmType',
    'get_hash_algorithm',
    'MerkleTree',
    'MerkleProof',
    'verify_proof',
    'verify_proof_against_tree',
    'build_merkle_root',
    'EntropySource',
    'SystemEntropySource',
    'SignatureSchemeType',
    'PrivateKey',
    'PublicKey',
    'KeyPair',
    'Signature',
    'get_signature_scheme',
    'generate_keypair',
    'sign',
    'verify',
    'CryptoSuite',
]
