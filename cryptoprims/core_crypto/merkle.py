"""
Merkle Tree Implementation

A Merkle tree (hash tree) is a tree data structure where:
- Leaf nodes contain hashes of data items (never the raw items)
- Non-leaf nodes contain hash(left || right) of their children
- The root hash represents the entire dataset

Features:
- Pluggable hash algorithm (injected at construction)
- Odd layer duplication (last node paired with itself)
- Immutable once built
- Inclusion proof generation (authentication path)
- Proof verification without the original tree

Odd layer policy: a layer with an odd number of nodes pairs its last
node with itself, parent = hash(last || last). Trees built with the
"promote unchanged" policy are not interoperable with this one.
"""

import hmac
import logging
import struct
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import (
    EmptyInputError,
    IndexOutOfRangeError,
    MalformedProofError,
    TreeAlreadyBuiltError,
    TreeNotBuiltError,
)
from .hashing import Digest, HashAlgorithm, Sha256Hash, get_hash_algorithm


logger = logging.getLogger(__name__)

PROOF_VERSION = 1
MAX_PROOF_DEPTH = 64


# ============================================================================
# Inclusion Proof
# ============================================================================

@dataclass(frozen=True)
class MerkleProof:
    """
    Self-contained inclusion proof for one leaf.

    directions[i] is True when the node on the path at level i is the
    LEFT child of its pair, i.e. the parent is hash(current || sibling).
    leaf_index is required: bit i of it must agree with directions[i].
    """
    leaf_hash: Digest
    siblings: Tuple[Digest, ...]
    directions: Tuple[bool, ...]
    root_hash: Digest
    leaf_index: int
    algorithm: str = 'sha256'

    @property
    def depth(self) -> int:
        """Number of levels between the leaf and the root."""
        return len(self.siblings)

    def validate(self) -> None:
        """
        Check the proof is structurally consistent.

        Raises:
            MalformedProofError: If lengths, types or the index disagree
        """
        if not isinstance(self.leaf_hash, (bytes, bytearray)) or not self.leaf_hash:
            raise MalformedProofError("Leaf hash must be non-empty bytes")
        if not isinstance(self.root_hash, (bytes, bytearray)) or not self.root_hash:
            raise MalformedProofError("Root hash must be non-empty bytes")
        if len(self.leaf_hash) != len(self.root_hash):
            raise MalformedProofError("Leaf and root digests differ in length")
        if len(self.siblings) != len(self.directions):
            raise MalformedProofError(
                f"{len(self.siblings)} siblings but {len(self.directions)} directions"
            )
        if len(self.siblings) > MAX_PROOF_DEPTH:
            raise MalformedProofError(f"Proof deeper than {MAX_PROOF_DEPTH} levels")
        for sibling in self.siblings:
            if not isinstance(sibling, (bytes, bytearray)) or len(sibling) != len(self.leaf_hash):
                raise MalformedProofError("Sibling digest has the wrong length")
        for is_left in self.directions:
            if not isinstance(is_left, bool):
                raise MalformedProofError("Direction flags must be booleans")
        if (not isinstance(self.leaf_index, int) or isinstance(self.leaf_index, bool)
                or self.leaf_index < 0):
            raise MalformedProofError("Leaf index must be a non-negative integer")
        if self.leaf_index >> len(self.siblings):
            raise MalformedProofError("Leaf index does not fit the proof depth")
        for level, is_left in enumerate(self.directions):
            if is_left != ((self.leaf_index >> level) & 1 == 0):
                raise MalformedProofError(
                    f"Direction at level {level} contradicts leaf index"
                )

    def to_dict(self) -> Dict[str, Any]:
        """Convert proof to a JSON-friendly dictionary (hex digests)."""
        return {
            'version': PROOF_VERSION,
            'algorithm': self.algorithm,
            'leaf_index': self.leaf_index,
            'leaf_hash': self.leaf_hash.hex(),
            'siblings': [s.hex() for s in self.siblings],
            'directions': ['left' if d else 'right' for d in self.directions],
            'root_hash': self.root_hash.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MerkleProof':
        """
        Create proof from dictionary.

        Raises:
            MalformedProofError: If fields are missing or not decodable
        """
        try:
            if data.get('version', PROOF_VERSION) != PROOF_VERSION:
                raise MalformedProofError(f"Unsupported proof version {data['version']}")
            leaf_index = data['leaf_index']
            if not isinstance(leaf_index, int) or isinstance(leaf_index, bool):
                raise MalformedProofError(
                    f"Leaf index must be an integer, got {type(leaf_index).__name__}"
                )
            directions = []
            for d in data['directions']:
                if d not in ('left', 'right'):
                    raise MalformedProofError(f"Invalid direction {d!r}")
                directions.append(d == 'left')
            proof = cls(
                leaf_hash=bytes.fromhex(data['leaf_hash']),
                siblings=tuple(bytes.fromhex(s) for s in data['siblings']),
                directions=tuple(directions),
                root_hash=bytes.fromhex(data['root_hash']),
                leaf_index=leaf_index,
                algorithm=str(data.get('algorithm', 'sha256')),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            if isinstance(exc, MalformedProofError):
                raise
            raise MalformedProofError(f"Invalid proof dictionary: {exc}") from exc
        proof.validate()
        return proof

    def to_bytes(self) -> bytes:
        """
        Serialize to bytes.

        Format: version (1) | alg_len (1) | algorithm | leaf_index (8) |
                digest_size (2) | count (2) | leaf_hash | root_hash |
                directions (count bytes, 1 = left) | siblings
        """
        algorithm = self.algorithm.encode('ascii')
        return (
            struct.pack('>BB', PROOF_VERSION, len(algorithm)) +
            algorithm +
            struct.pack('>QHH', self.leaf_index, len(self.leaf_hash), len(self.siblings)) +
            bytes(self.leaf_hash) +
            bytes(self.root_hash) +
            bytes(1 if d else 0 for d in self.directions) +
            b''.join(bytes(s) for s in self.siblings)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> 'MerkleProof':
        """
        Deserialize from bytes.

        Raises:
            MalformedProofError: If the encoding is truncated or inconsistent
        """
        try:
            offset = 0
            version, alg_len = struct.unpack_from('>BB', data, offset)
            offset += 2
            if version != PROOF_VERSION:
                raise MalformedProofError(f"Unsupported proof version {version}")
            algorithm = bytes(data[offset:offset + alg_len]).decode('ascii')
            offset += alg_len
            leaf_index, digest_size, count = struct.unpack_from('>QHH', data, offset)
            offset += 12
        except (struct.error, UnicodeDecodeError) as exc:
            raise MalformedProofError(f"Truncated proof header: {exc}") from exc

        expected = offset + 2 * digest_size + count + count * digest_size
        if digest_size == 0 or len(data) != expected:
            raise MalformedProofError(
                f"Proof encoding is {len(data)} bytes, expected {expected}"
            )

        leaf_hash = bytes(data[offset:offset + digest_size])
        offset += digest_size
        root_hash = bytes(data[offset:offset + digest_size])
        offset += digest_size

        flags = data[offset:offset + count]
        offset += count
        if any(flag not in (0, 1) for flag in flags):
            raise MalformedProofError("Direction flags must be 0 or 1")

        siblings = tuple(
            bytes(data[offset + i * digest_size:offset + (i + 1) * digest_size])
            for i in range(count)
        )
        proof = cls(
            leaf_hash=leaf_hash,
            siblings=siblings,
            directions=tuple(flag == 1 for flag in flags),
            root_hash=root_hash,
            leaf_index=leaf_index,
            algorithm=algorithm,
        )
        proof.validate()
        return proof

    def to_hex(self) -> str:
        """Serialize to hex string."""
        return self.to_bytes().hex()

    @classmethod
    def from_hex(cls, hex_str: str) -> 'MerkleProof':
        """Deserialize from hex string."""
        try:
            data = bytes.fromhex(hex_str)
        except ValueError as exc:
            raise MalformedProofError(f"Invalid hex: {exc}") from exc
        return cls.from_bytes(data)


def verify_proof(proof: MerkleProof, hash_algorithm: HashAlgorithm) -> bool:
    """
    Verify a Merkle inclusion proof.

    Recomputes the path from proof.leaf_hash using the sibling digests and
    direction flags, then compares the result with proof.root_hash.
    Costs one hash per level; the original tree is not needed.

    Args:
        proof: The inclusion proof
        hash_algorithm: Algorithm the tree was built with

    Returns:
        True if the recomputed root matches exactly, False otherwise
        (including for structurally malformed proofs)
    """
    try:
        proof.validate()
    except MalformedProofError as exc:
        logger.debug("Rejecting malformed proof: %s", exc)
        return False
    except (AttributeError, TypeError):
        return False

    if len(proof.leaf_hash) != hash_algorithm.digest_size:
        logger.debug("Rejecting proof: digest size does not match %s", hash_algorithm.name)
        return False

    current = bytes(proof.leaf_hash)
    for sibling, is_left in zip(proof.siblings, proof.directions):
        if is_left:
            current = hash_algorithm.hash_pair(current, sibling)
        else:
            current = hash_algorithm.hash_pair(sibling, current)

    return hmac.compare_digest(current, bytes(proof.root_hash))


def verify_proof_against_tree(proof: MerkleProof, tree: 'MerkleTree') -> bool:
    """
    Verify a proof and require that it commits to this tree's root.

    Args:
        proof: The inclusion proof
        tree: A built tree

    Returns:
        True only if the proof is valid and its root equals tree.root
    """
    if tree.root is None:
        return False
    if not hmac.compare_digest(bytes(proof.root_hash), tree.root):
        return False
    return verify_proof(proof, tree.hash_algorithm)


# ============================================================================
# Merkle Tree
# ============================================================================

class MerkleTree:
    """
    Merkle tree over an ordered sequence of data items.

    Example:
        >>> tree = MerkleTree(Sha256Hash())
        >>> root = tree.build([b"tx1", b"tx2", b"tx3", b"tx4"])
        >>> proof = tree.generate_proof(1)
        >>> verify_proof(proof, tree.hash_algorithm)
        True
    """

    def __init__(self, hash_algorithm: Optional[HashAlgorithm] = None):
        """
        Initialize an empty Merkle tree.

        Args:
            hash_algorithm: Algorithm for leaves and nodes (default SHA-256)
        """
        self._hash = hash_algorithm or Sha256Hash()
        self._layers: List[List[Digest]] = []
        self._root: Optional[Digest] = None

    @classmethod
    def from_items(cls, items: Iterable[bytes],
                   hash_algorithm: Optional[HashAlgorithm] = None) -> 'MerkleTree':
        """Construct and build a tree in one step."""
        tree = cls(hash_algorithm)
        tree.build(items)
        return tree

    def build(self, items: Iterable[bytes]) -> Digest:
        """
        Build the tree from an ordered sequence of data items.

        Each item is hashed into a leaf; adjacent pairs are then combined
        left to right until one node remains. An odd layer duplicates its
        last node.

        Args:
            items: Byte sequences, in order

        Returns:
            Root digest

        Raises:
            EmptyInputError: If items is empty
            TreeAlreadyBuiltError: If this tree was already built
        """
        if self._root is not None:
            raise TreeAlreadyBuiltError("Merkle tree is immutable once built")

        leaf_hashes = [self._hash.hash(item) for item in items]
        if not leaf_hashes:
            raise EmptyInputError("Cannot build Merkle tree with no items")

        layers = [leaf_hashes]
        current_layer = leaf_hashes

        while len(current_layer) > 1:
            next_layer = []
            for i in range(0, len(current_layer), 2):
                left = current_layer[i]
                # Odd layer: last node pairs with itself
                right = current_layer[i + 1] if i + 1 < len(current_layer) else left
                next_layer.append(self._hash.hash_pair(left, right))
            layers.append(next_layer)
            current_layer = next_layer

        self._layers = layers
        self._root = current_layer[0]
        logger.debug(
            "Built Merkle tree: leaves=%d height=%d algorithm=%s",
            len(leaf_hashes), len(layers), self._hash.name,
        )
        return self._root

    @property
    def hash_algorithm(self) -> HashAlgorithm:
        """The algorithm used for leaves and nodes."""
        return self._hash

    @property
    def is_built(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> Optional[Digest]:
        """Root digest, or None before build()."""
        return self._root

    @property
    def root_hex(self) -> Optional[str]:
        return self._root.hex() if self._root is not None else None

    @property
    def leaf_count(self) -> int:
        return len(self._layers[0]) if self._layers else 0

    @property
    def height(self) -> int:
        """Number of layers, leaves and root included."""
        return len(self._layers)

    @property
    def leaves(self) -> Tuple[Digest, ...]:
        """Leaf digests in order."""
        return tuple(self._layers[0]) if self._layers else ()

    def leaf_hash(self, index: int) -> Digest:
        """Get the digest of the leaf at index."""
        self._check_index(index)
        return self._layers[0][index]

    def _check_index(self, index: int) -> None:
        if not self._layers:
            raise TreeNotBuiltError("Tree has not been built yet")
        if not isinstance(index, int) or index < 0 or index >= self.leaf_count:
            raise IndexOutOfRangeError(
                f"Index {index} out of range [0, {self.leaf_count - 1}]"
            )

    def generate_proof(self, index: int) -> MerkleProof:
        """
        Generate an inclusion proof for the leaf at index.

        Args:
            index: Leaf index (0-based)

        Returns:
            MerkleProof snapshot of the path to the current root

        Raises:
            TreeNotBuiltError: If build() has not been called
            IndexOutOfRangeError: If index is not a valid leaf index
        """
        self._check_index(index)

        siblings = []
        directions = []
        current_index = index

        # Every layer except the root contributes one sibling
        for layer in self._layers[:-1]:
            is_left = current_index % 2 == 0
            if is_left:
                sibling_index = current_index + 1
                if sibling_index >= len(layer):
                    sibling_index = current_index  # duplicated last node
            else:
                sibling_index = current_index - 1

            siblings.append(layer[sibling_index])
            directions.append(is_left)
            current_index //= 2

        logger.debug("Generated proof for leaf %d (depth %d)", index, len(siblings))
        return MerkleProof(
            leaf_hash=self._layers[0][index],
            siblings=tuple(siblings),
            directions=tuple(directions),
            root_hash=self._root,
            leaf_index=index,
            algorithm=self._hash.name,
        )

    def verify_leaf(self, data: bytes, proof: MerkleProof) -> bool:
        """
        Check that raw data is the leaf a proof commits to, in this tree.

        Args:
            data: Original (unhashed) item
            proof: Inclusion proof for that item

        Returns:
            True if data hashes to proof.leaf_hash and the proof verifies
            against this tree's root
        """
        if not hmac.compare_digest(self._hash.hash(data), bytes(proof.leaf_hash)):
            return False
        return verify_proof_against_tree(proof, self)

    def __repr__(self) -> str:
        if self._root is None:
            return f"MerkleTree(empty, algorithm={self._hash.name})"
        return (
            f"MerkleTree(leaves={self.leaf_count}, height={self.height}, "
            f"algorithm={self._hash.name}, root={self.root_hex[:16]}...)"
        )


def build_merkle_root(items: Sequence[bytes],
                      hash_algorithm: Optional[HashAlgorithm] = None) -> Digest:
    """
    Convenience function to build a Merkle tree and return only the root.

    Args:
        items: List of data items
        hash_algorithm: Algorithm to use (default SHA-256)

    Returns:
        Root digest
    """
    return MerkleTree(hash_algorithm).build(items)


def verify_proof_by_name(proof: MerkleProof) -> bool:
    """
    Verify a proof using the algorithm named inside it.

    Returns False if the named algorithm is unknown.
    """
    try:
        algorithm = get_hash_algorithm(proof.algorithm)
    except ValueError:
        return False
    return verify_proof(proof, algorithm)
