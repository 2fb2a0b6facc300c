"""
Unit tests for Core Crypto modules.

Tests:
- Hash algorithms (known vectors, salting, lookup)
- Merkle Tree construction
- Inclusion proof generation and verification
- Proof serialization
"""

import hashlib
from concurrent.futures import ThreadPoolExecutor

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from cryptoprims.core_crypto.hashing import (
    Blake3Hash, DoubleSha256Hash, HashAlgorithmType, Sha256Hash, Sha3_256Hash,
    available_algorithms, get_hash_algorithm,
)
from cryptoprims.core_crypto.merkle import (
    MerkleProof, MerkleTree, build_merkle_root, verify_proof,
    verify_proof_against_tree, verify_proof_by_name,
)
from cryptoprims.errors import (
    EmptyInputError, IndexOutOfRangeError, MalformedProofError,
    TreeAlreadyBuiltError, TreeNotBuiltError,
)


def h(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


class TestHashAlgorithms:
    """Unit tests for the hash abstraction."""

    def test_sha256_vector(self):
        """SHA-256 of 'abc'."""
        expected = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        assert Sha256Hash().hash(b"abc").hex() == expected

    def test_sha3_256_vector(self):
        """SHA3-256 of 'abc'."""
        expected = "3a985da74fe225b2045c172d6bd390bd855f086e3e9d525b46bfe24511431532"
        assert Sha3_256Hash().hash(b"abc").hex() == expected

    def test_blake3_empty_vector(self):
        """BLAKE3 of empty input."""
        expected = "af1349b9f5f9a1a6a0404dea36dcc9499bcb25c9adc112b7cc9a93cae41f3262"
        assert Blake3Hash().hash(b"").hex() == expected

    def test_double_sha256_is_sha256_twice(self):
        assert DoubleSha256Hash().hash(b"block") == h(h(b"block"))

    def test_all_digests_32_bytes(self, any_algorithm):
        """Every algorithm produces its declared digest size."""
        digest = any_algorithm.hash(b"test")
        assert len(digest) == any_algorithm.digest_size == 32

    def test_deterministic(self, any_algorithm):
        assert any_algorithm.hash(b"same") == any_algorithm.hash(b"same")

    def test_empty_input_accepted(self, any_algorithm):
        assert len(any_algorithm.hash(b"")) == 32

    def test_algorithms_differ(self):
        """Different algorithms give different digests for the same input."""
        digests = {get_hash_algorithm(name).hash(b"x") for name in available_algorithms()}
        assert len(digests) == len(available_algorithms())

    def test_salt_changes_digest(self, any_algorithm):
        assert any_algorithm.hash_with_salt(b"data", b"salt") != any_algorithm.hash(b"data")

    def test_different_salts_differ(self, any_algorithm):
        a = any_algorithm.hash_with_salt(b"data", b"salt1")
        b = any_algorithm.hash_with_salt(b"data", b"salt2")
        assert a != b

    def test_salt_boundary_is_unambiguous(self, sha256):
        """'ab' + 'c' and 'a' + 'bc' must not collide."""
        assert sha256.hash_with_salt(b"c", b"ab") != sha256.hash_with_salt(b"bc", b"a")

    def test_salted_is_length_framed(self, sha256):
        expected = h((3).to_bytes(8, 'big') + b"abc" + b"data")
        assert sha256.hash_with_salt(b"data", b"abc") == expected

    def test_hash_pair(self, sha256):
        assert sha256.hash_pair(b"L", b"R") == h(b"LR")

    def test_lookup_by_name_and_enum(self):
        assert get_hash_algorithm("SHA256") is get_hash_algorithm(HashAlgorithmType.SHA256)
        assert isinstance(get_hash_algorithm("blake3"), Blake3Hash)

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError, match="Unknown hash algorithm"):
            get_hash_algorithm("md5")

    @given(st.binary(max_size=256))
    def test_determinism_property(self, data):
        algorithm = get_hash_algorithm("sha256")
        assert algorithm.hash(data) == algorithm.hash(data)

    @given(st.binary(max_size=64), st.binary(min_size=1, max_size=16),
           st.binary(min_size=1, max_size=16))
    def test_salt_sensitivity_property(self, data, salt1, salt2):
        algorithm = get_hash_algorithm("blake3")
        if salt1 != salt2:
            assert algorithm.hash_with_salt(data, salt1) != algorithm.hash_with_salt(data, salt2)


class TestMerkleTree:
    """Unit tests for Merkle Tree construction."""

    def test_empty_tree_has_no_root(self):
        tree = MerkleTree()
        assert tree.root is None
        assert tree.root_hex is None
        assert not tree.is_built
        assert tree.leaf_count == 0

    def test_single_leaf_root_is_item_hash(self, sha256):
        """Singleton dataset: root equals hash of the item."""
        tree = MerkleTree(sha256)
        root = tree.build([b"single"])
        assert root == h(b"single")
        assert tree.height == 1

    def test_two_leaves(self, sha256):
        tree = MerkleTree(sha256)
        assert tree.build([b"a", b"b"]) == h(h(b"a") + h(b"b"))

    def test_four_leaves_known_root(self, sha256):
        """["a","b","c","d"] gives the hand-computed root."""
        expected = h(h(h(b"a") + h(b"b")) + h(h(b"c") + h(b"d")))
        assert MerkleTree(sha256).build([b"a", b"b", b"c", b"d"]) == expected

    def test_reproducible_across_instances(self, any_algorithm):
        items = [b"a", b"b", b"c", b"d"]
        first = MerkleTree(any_algorithm).build(items)
        second = MerkleTree(any_algorithm).build(items)
        assert first == second

    def test_odd_layer_duplicates_last(self, sha256):
        """Three leaves: c pairs with itself."""
        expected = h(h(h(b"a") + h(b"b")) + h(h(b"c") + h(b"c")))
        assert MerkleTree(sha256).build([b"a", b"b", b"c"]) == expected

    def test_odd_layer_not_promoted(self, sha256):
        promoted = h(h(h(b"a") + h(b"b")) + h(b"c"))
        assert MerkleTree(sha256).build([b"a", b"b", b"c"]) != promoted

    def test_leaves_are_digests(self, sha256):
        tree = MerkleTree.from_items([b"x", b"y"], sha256)
        assert tree.leaves == (h(b"x"), h(b"y"))
        assert tree.leaf_hash(1) == h(b"y")

    def test_height(self):
        tree = MerkleTree.from_items([bytes([i]) for i in range(5)])
        assert tree.leaf_count == 5
        assert tree.height == 4  # 5 -> 3 -> 2 -> 1

    def test_empty_input_rejected(self):
        with pytest.raises(EmptyInputError):
            MerkleTree().build([])

    def test_empty_input_is_value_error(self):
        with pytest.raises(ValueError):
            MerkleTree().build(iter(()))

    def test_rebuild_rejected(self):
        tree = MerkleTree.from_items([b"a"])
        with pytest.raises(TreeAlreadyBuiltError):
            tree.build([b"b"])
        assert tree.root == h(b"a")

    def test_accepts_generator(self, sha256):
        tree = MerkleTree(sha256)
        tree.build(bytes([i]) for i in range(4))
        assert tree.leaf_count == 4

    def test_algorithm_changes_root(self):
        items = [b"a", b"b", b"c"]
        assert build_merkle_root(items, Sha256Hash()) != build_merkle_root(items, Blake3Hash())

    def test_default_algorithm_is_sha256(self):
        assert MerkleTree().hash_algorithm == Sha256Hash()

    def test_repr(self):
        assert "empty" in repr(MerkleTree())
        assert "leaves=2" in repr(MerkleTree.from_items([b"a", b"b"]))


class TestMerkleProof:
    """Unit tests for inclusion proofs."""

    def test_proof_before_build(self):
        with pytest.raises(TreeNotBuiltError):
            MerkleTree().generate_proof(0)

    @pytest.mark.parametrize("index", [-1, 4, 100])
    def test_index_out_of_range(self, index):
        tree = MerkleTree.from_items([b"a", b"b", b"c", b"d"])
        with pytest.raises(IndexOutOfRangeError):
            tree.generate_proof(index)

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 7, 8, 9, 16, 17])
    def test_every_leaf_verifies(self, any_algorithm, count):
        items = [f"item-{i}".encode() for i in range(count)]
        tree = MerkleTree.from_items(items, any_algorithm)
        for i in range(count):
            proof = tree.generate_proof(i)
            assert verify_proof(proof, any_algorithm)
            assert verify_proof_against_tree(proof, tree)
            assert tree.verify_leaf(items[i], proof)

    def test_proof_contents(self, sha256):
        tree = MerkleTree.from_items([b"a", b"b", b"c", b"d"], sha256)
        proof = tree.generate_proof(1)
        assert proof.leaf_hash == h(b"b")
        assert proof.siblings == (h(b"a"), h(h(b"c") + h(b"d")))
        assert proof.directions == (False, True)
        assert proof.root_hash == tree.root
        assert proof.leaf_index == 1
        assert proof.algorithm == "sha256"

    def test_odd_dataset_self_sibling(self, sha256):
        """Proof for "c" in ["a","b","c"] has hash("c") as its own sibling."""
        tree = MerkleTree.from_items([b"a", b"b", b"c"], sha256)
        proof = tree.generate_proof(2)
        assert proof.siblings[0] == h(b"c")
        assert proof.directions[0] is True
        assert verify_proof(proof, sha256)

    def test_singleton_proof_is_empty(self, sha256):
        tree = MerkleTree.from_items([b"only"], sha256)
        proof = tree.generate_proof(0)
        assert proof.siblings == ()
        assert proof.leaf_hash == proof.root_hash
        assert verify_proof(proof, sha256)

    def test_proof_depth_is_logarithmic(self):
        tree = MerkleTree.from_items([bytes([i % 256, i // 256]) for i in range(1000)])
        assert tree.generate_proof(999).depth == 10

    def test_wrong_algorithm_rejected(self, sha256):
        proof = MerkleTree.from_items([b"a", b"b"], sha256).generate_proof(0)
        assert not verify_proof(proof, Blake3Hash())

    def test_verify_by_name(self):
        proof = MerkleTree.from_items([b"a", b"b", b"c"], Sha3_256Hash()).generate_proof(2)
        assert verify_proof_by_name(proof)

    def test_verify_leaf_rejects_other_data(self):
        tree = MerkleTree.from_items([b"a", b"b"])
        assert not tree.verify_leaf(b"z", tree.generate_proof(0))

    def test_concurrent_proof_generation(self, sha256):
        """A built tree can be queried from many threads."""
        items = [f"tx{i}".encode() for i in range(64)]
        tree = MerkleTree.from_items(items, sha256)
        with ThreadPoolExecutor(max_workers=8) as pool:
            proofs = list(pool.map(tree.generate_proof, range(64)))
        assert all(verify_proof(p, sha256) for p in proofs)

    @settings(max_examples=50)
    @given(st.lists(st.binary(max_size=32), min_size=1, max_size=40), st.data())
    def test_proof_roundtrip_property(self, items, data):
        algorithm = get_hash_algorithm("sha256")
        tree = MerkleTree.from_items(items, algorithm)
        index = data.draw(st.integers(min_value=0, max_value=len(items) - 1))
        assert verify_proof(tree.generate_proof(index), algorithm)


class TestProofSerialization:
    """Tests for proof encodings."""

    def _proof(self, index=2):
        return MerkleTree.from_items([b"a", b"b", b"c", b"d", b"e"]).generate_proof(index)

    def test_bytes_roundtrip(self):
        proof = self._proof()
        assert MerkleProof.from_bytes(proof.to_bytes()) == proof

    def test_hex_roundtrip(self):
        proof = self._proof(4)
        assert MerkleProof.from_hex(proof.to_hex()) == proof

    def test_dict_roundtrip(self):
        proof = self._proof(3)
        data = proof.to_dict()
        assert data['directions'][0] == 'right'
        assert MerkleProof.from_dict(data) == proof

    def test_decoded_proof_verifies(self, sha256):
        proof = MerkleProof.from_bytes(self._proof().to_bytes())
        assert verify_proof(proof, sha256)

    def test_truncated_bytes_rejected(self):
        data = self._proof().to_bytes()
        with pytest.raises(MalformedProofError):
            MerkleProof.from_bytes(data[:-1])

    def test_empty_bytes_rejected(self):
        with pytest.raises(MalformedProofError):
            MerkleProof.from_bytes(b"")

    def test_trailing_bytes_rejected(self):
        with pytest.raises(MalformedProofError):
            MerkleProof.from_bytes(self._proof().to_bytes() + b"\x00")

    def test_bad_direction_byte_rejected(self):
        proof = self._proof()
        data = bytearray(proof.to_bytes())
        flags_offset = len(data) - proof.depth * 32 - proof.depth
        data[flags_offset] = 7
        with pytest.raises(MalformedProofError):
            MerkleProof.from_bytes(bytes(data))

    def test_bad_hex_rejected(self):
        with pytest.raises(MalformedProofError):
            MerkleProof.from_hex("zz")

    def test_dict_missing_field_rejected(self):
        data = self._proof().to_dict()
        del data['siblings']
        with pytest.raises(MalformedProofError):
            MerkleProof.from_dict(data)

    @pytest.mark.parametrize("index", ["3", 3.9, 3.0, None, True])
    def test_dict_non_integer_index_rejected(self, index):
        """Index values are never coerced or truncated."""
        data = self._proof().to_dict()
        data['leaf_index'] = index
        with pytest.raises(MalformedProofError):
            MerkleProof.from_dict(data)

    def test_dict_bad_direction_rejected(self):
        data = self._proof().to_dict()
        data['directions'][0] = 'up'
        with pytest.raises(MalformedProofError):
            MerkleProof.from_dict(data)
