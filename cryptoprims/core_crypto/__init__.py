# Core Cryptography Module
"""
Core hashing and Merkle tree implementations including:
- Pluggable hash algorithms (BLAKE3, SHA-256, SHA3-256, double SHA-256)
- Merkle trees with odd-layer duplication
- Inclusion proof generation and verification
"""

from .hashing import (
    Digest,
    HashAlgorithm,
    HashAlgorithmType,
    Blake3Hash,
    Sha256Hash,
    Sha3_256Hash,
    DoubleSha256Hash,
    get_hash_algorithm,
    available_algorithms,
)
from .merkle import (
    MerkleTree,
    MerkleProof,
    verify_proof,
    verify_proof_against_tree,
    verify_proof_by_name,
    build_merkle_root,
)

__all__ = [
    'Digest',
    'HashAlgorithm',
    'HashAlgorithmType',
    'Blake3Hash',
    'Sha256Hash',
    'Sha3_256Hash',
    'DoubleSha256Hash',
    'get_hash_algorithm',
    'available_algorithms',
    'MerkleTree',
    'MerkleProof',
    'verify_proof',
    'verify_proof_against_tree',
    'verify_proof_by_name',
    'build_merkle_root',
]
