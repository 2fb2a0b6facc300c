"""
Audit Log Module

Tamper-evident audit trail for cryptographic operations. Events are
recorded as compact JSON transactions and sealed in batches; each sealed
batch is committed to by the root of a Merkle tree built with the
configured hash algorithm, so any single event can later be proven with
an inclusion proof.

Features:
- Key generation, signing and verification events
- Tree build and proof events
- Identities recorded as public key fingerprints only (never key material)
- Per-event inclusion proofs against a batch root
- Full-log integrity check and JSON export/import
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import DEFAULT_BATCH_SIZE, CryptoSuite
from ..core_crypto.hashing import HashAlgorithm, get_hash_algorithm
from ..core_crypto.merkle import MerkleProof, MerkleTree, verify_proof
from ..signatures.keys import PublicKey


logger = logging.getLogger(__name__)

EVENT_VERSION = "1.0"
SYSTEM_ACTOR = "system"


def message_id(message: bytes) -> str:
    """Short SHA-256 identifier for a message, so content is never logged."""
    return hashlib.sha256(message).hexdigest()[:16]


# ============================================================================
# Event Types
# ============================================================================

class EventType(Enum):
    """Types of cryptographic events that can be logged."""

    # Signature events
    KEYPAIR_GENERATED = "keypair_generated"
    MESSAGE_SIGNED = "message_signed"
    SIGNATURE_VERIFIED = "signature_verified"
    SIGNATURE_REJECTED = "signature_rejected"

    # Merkle events
    TREE_BUILT = "tree_built"
    PROOF_GENERATED = "proof_generated"
    PROOF_VERIFIED = "proof_verified"
    PROOF_REJECTED = "proof_rejected"

    # System events
    LOG_OPENED = "log_opened"


# ============================================================================
# Event Structure
# ============================================================================

@dataclass
class CryptoEvent:
    """
    A cryptographic event to be logged.

    actor is a public key fingerprint, or "system".
    """
    event_type: EventType
    actor: str
    timestamp: int
    details: Dict[str, Any] = field(default_factory=dict)

    def to_transaction(self) -> str:
        """Convert event to a canonical JSON transaction string."""
        return json.dumps({
            'version': EVENT_VERSION,
            'type': self.event_type.value,
            'actor': self.actor,
            'time': self.timestamp,
            'details': self.details,
        }, separators=(',', ':'), sort_keys=True)

    @classmethod
    def from_transaction(cls, tx_str: str) -> 'CryptoEvent':
        """Parse event from a transaction string."""
        data = json.loads(tx_str)
        return cls(
            event_type=EventType(data['type']),
            actor=data['actor'],
            timestamp=data['time'],
            details=data.get('details', {}),
        )

    def __str__(self) -> str:
        dt = datetime.fromtimestamp(self.timestamp)
        return (
            f"[{dt.strftime('%Y-%m-%d %H:%M:%S')}] "
            f"{self.event_type.value} | actor:{self.actor[:8]}"
        )


@dataclass(frozen=True)
class SealedBatch:
    """Immutable batch of event transactions committed by a Merkle root."""
    index: int
    merkle_root: bytes
    algorithm: str
    timestamp: int
    transactions: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'merkle_root': self.merkle_root.hex(),
            'algorithm': self.algorithm,
            'timestamp': self.timestamp,
            'transactions': list(self.transactions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SealedBatch':
        return cls(
            index=data['index'],
            merkle_root=bytes.fromhex(data['merkle_root']),
            algorithm=data['algorithm'],
            timestamp=data['timestamp'],
            transactions=tuple(data['transactions']),
        )

    def build_tree(self, hash_algorithm: HashAlgorithm) -> MerkleTree:
        return MerkleTree.from_items(
            [tx.encode('utf-8') for tx in self.transactions], hash_algorithm
        )


# ============================================================================
# Audit Log
# ============================================================================

class AuditLog:
    """
    Merkle-sealed audit trail of cryptographic operations.

    Example:
        >>> audit = AuditLog(auto_seal=False)
        >>> audit.log_tree_built(tree)
        >>> batch = audit.seal()
        >>> proof = audit.prove_event(batch.index, 0)
        >>> audit.verify_event(batch.transactions[0], proof)
        True
    """

    def __init__(
        self,
        suite: Optional[CryptoSuite] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        auto_seal: bool = True,
        batches: Optional[List[SealedBatch]] = None,
    ):
        """
        Initialize the audit log.

        Args:
            suite: Crypto configuration; its hash algorithm seals batches
            batch_size: Number of pending events that triggers sealing
            auto_seal: If True, seal automatically at batch_size
            batches: Previously sealed batches (used by import_log)
        """
        if batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        self._suite = suite or CryptoSuite()
        self._hash = self._suite.hash_algorithm()
        self._batch_size = batch_size
        self._auto_seal = auto_seal
        self._batches: List[SealedBatch] = list(batches or [])
        self._pending: List[CryptoEvent] = []
        self._callbacks: List[Callable[[CryptoEvent], None]] = []

        self._add_event(CryptoEvent(
            event_type=EventType.LOG_OPENED,
            actor=SYSTEM_ACTOR,
            timestamp=int(time.time()),
            details={'algo': self._hash.name},
        ))

    @property
    def hash_algorithm(self) -> HashAlgorithm:
        return self._hash

    @property
    def batches(self) -> Tuple[SealedBatch, ...]:
        return tuple(self._batches)

    @property
    def pending_events(self) -> Tuple[CryptoEvent, ...]:
        return tuple(self._pending)

    def _add_event(self, event: CryptoEvent) -> CryptoEvent:
        """Add event to pending events and notify callbacks."""
        self._pending.append(event)

        for callback in self._callbacks:
            try:
                callback(event)
            except Exception:
                logger.warning("Audit callback %r failed", callback, exc_info=True)

        if self._auto_seal and len(self._pending) >= self._batch_size:
            self.seal()
        return event

    def add_callback(self, callback: Callable[[CryptoEvent], None]) -> None:
        """Add a callback to be notified of new events."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[CryptoEvent], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _record(self, event_type: EventType, actor: str, **details) -> CryptoEvent:
        return self._add_event(CryptoEvent(
            event_type=event_type,
            actor=actor,
            timestamp=int(time.time()),
            details=details,
        ))

    # ========================================================================
    # Signature Events
    # ========================================================================

    def log_keypair_generated(self, public_key: PublicKey) -> CryptoEvent:
        """Log a key generation; only the public fingerprint is recorded."""
        return self._record(
            EventType.KEYPAIR_GENERATED,
            public_key.fingerprint(),
            scheme=public_key.scheme.value,
        )

    def log_signature(self, public_key: PublicKey, message: bytes) -> CryptoEvent:
        """Log that a message was signed by the holder of public_key."""
        return self._record(
            EventType.MESSAGE_SIGNED,
            public_key.fingerprint(),
            scheme=public_key.scheme.value,
            msg_id=message_id(message),
        )

    def log_verification(self, public_key: PublicKey, message: bytes,
                         valid: bool) -> CryptoEvent:
        """Log the outcome of a signature verification."""
        return self._record(
            EventType.SIGNATURE_VERIFIED if valid else EventType.SIGNATURE_REJECTED,
            public_key.fingerprint(),
            scheme=public_key.scheme.value,
            msg_id=message_id(message),
        )

    # ========================================================================
    # Merkle Events
    # ========================================================================

    def log_tree_built(self, tree: MerkleTree) -> CryptoEvent:
        """Log a Merkle tree build (root, leaf count, algorithm)."""
        return self._record(
            EventType.TREE_BUILT,
            SYSTEM_ACTOR,
            root=tree.root_hex,
            leaves=tree.leaf_count,
            algo=tree.hash_algorithm.name,
        )

    def log_proof(self, proof: MerkleProof, verified: Optional[bool] = None) -> CryptoEvent:
        """
        Log a proof being issued (verified=None) or checked.

        Args:
            proof: The inclusion proof
            verified: None when generated, else the verification result
        """
        if verified is None:
            event_type = EventType.PROOF_GENERATED
        elif verified:
            event_type = EventType.PROOF_VERIFIED
        else:
            event_type = EventType.PROOF_REJECTED
        return self._record(
            event_type,
            SYSTEM_ACTOR,
            root=proof.root_hash.hex(),
            leaf=proof.leaf_index,
            depth=proof.depth,
        )

    # ========================================================================
    # Sealing and Proofs
    # ========================================================================

    def seal(self) -> Optional[SealedBatch]:
        """
        Seal pending events into a new batch.

        Returns:
            The new batch, or None if nothing is pending
        """
        if not self._pending:
            return None

        transactions = tuple(e.to_transaction() for e in self._pending)
        tree = MerkleTree.from_items(
            [tx.encode('utf-8') for tx in transactions], self._hash
        )
        batch = SealedBatch(
            index=len(self._batches),
            merkle_root=tree.root,
            algorithm=self._hash.name,
            timestamp=int(time.time()),
            transactions=transactions,
        )
        self._batches.append(batch)
        self._pending = []
        logger.debug("Sealed audit batch %d (%d events)", batch.index, len(transactions))
        return batch

    def flush(self) -> Optional[SealedBatch]:
        """Alias for seal - ensure all events are committed."""
        return self.seal()

    def prove_event(self, batch_index: int, position: int) -> MerkleProof:
        """
        Generate an inclusion proof for one sealed event.

        Raises:
            IndexError: If the batch does not exist
            IndexOutOfRangeError: If position is not in the batch
        """
        if not 0 <= batch_index < len(self._batches):
            raise IndexError(f"No sealed batch {batch_index}")
        batch = self._batches[batch_index]
        return batch.build_tree(get_hash_algorithm(batch.algorithm)).generate_proof(position)

    def verify_event(self, transaction: str, proof: MerkleProof) -> bool:
        """
        Check that a transaction is committed by one of the sealed roots.

        The proof is checked with the algorithm of the batch it commits
        to, which may differ from this log's current suite after import.

        Args:
            transaction: Event transaction string
            proof: Proof from prove_event()
        """
        batch = next(
            (b for b in self._batches if b.merkle_root == proof.root_hash), None
        )
        if batch is None:
            return False
        try:
            algorithm = get_hash_algorithm(batch.algorithm)
        except ValueError:
            return False
        if algorithm.hash(transaction.encode('utf-8')) != proof.leaf_hash:
            return False
        return verify_proof(proof, algorithm)

    def verify_integrity(self) -> bool:
        """Rebuild every batch tree and compare with its recorded root."""
        for expected_index, batch in enumerate(self._batches):
            if batch.index != expected_index:
                return False
            try:
                algorithm = get_hash_algorithm(batch.algorithm)
            except ValueError:
                return False
            if not batch.transactions:
                return False
            if batch.build_tree(algorithm).root != batch.merkle_root:
                logger.warning("Audit batch %d root mismatch", batch.index)
                return False
        return True

    # ========================================================================
    # Retrieval
    # ========================================================================

    def get_all_events(self) -> List[CryptoEvent]:
        """All sealed events followed by pending ones."""
        events = []
        for batch in self._batches:
            for tx in batch.transactions:
                try:
                    events.append(CryptoEvent.from_transaction(tx))
                except (json.JSONDecodeError, KeyError, ValueError):
                    logger.warning("Skipping unreadable audit transaction in batch %d",
                                   batch.index)
        events.extend(self._pending)
        return events

    def get_events_by_type(self, event_type: EventType) -> List[CryptoEvent]:
        return [e for e in self.get_all_events() if e.event_type == event_type]

    def get_actor_events(self, public_key: PublicKey) -> List[CryptoEvent]:
        """Get all events recorded for one public key."""
        fingerprint = public_key.fingerprint()
        return [e for e in self.get_all_events() if e.actor == fingerprint]

    def export_log(self) -> str:
        """Export sealed batches as JSON (pending events are sealed first)."""
        self.seal()
        return json.dumps({
            'version': EVENT_VERSION,
            'algorithm': self._hash.name,
            'batches': [b.to_dict() for b in self._batches],
        }, indent=2)

    @classmethod
    def import_log(cls, json_str: str, suite: Optional[CryptoSuite] = None,
                   batch_size: int = DEFAULT_BATCH_SIZE) -> 'AuditLog':
        """
        Import an audit log from JSON.

        Raises:
            ValueError: If the JSON is malformed or fails integrity checks
        """
        try:
            data = json.loads(json_str)
            batches = [SealedBatch.from_dict(b) for b in data['batches']]
            hash_name = data['algorithm']
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise ValueError(f"Invalid audit log: {exc}") from exc

        if suite is None:
            suite = CryptoSuite.from_names(hash_name=hash_name)
        log = cls(suite=suite, batch_size=batch_size, batches=batches)
        if not log.verify_integrity():
            raise ValueError("Audit log failed integrity check")
        return log


def create_audit_log(hash_name: str = 'sha256',
                     batch_size: int = DEFAULT_BATCH_SIZE) -> AuditLog:
    """Create a new audit log sealing with the named hash algorithm."""
    return AuditLog(suite=CryptoSuite.from_names(hash_name=hash_name),
                    batch_size=batch_size)
