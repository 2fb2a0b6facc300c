"""
Signature Schemes

Interchangeable asymmetric signature schemes behind one contract:
- generate_keypair(entropy_source) -> KeyPair
- sign(private_key, message)      -> Signature
- verify(public_key, message, signature) -> bool

Schemes:
- ECDSA over P-256 with SHA-256 (randomized nonce, 64-byte r || s)
- Ed25519 (deterministic twisted-Edwards signatures)

verify() returns False for any mismatch, including keys or signatures
from another scheme; it raises only for values that are not keys or
signatures at all.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from ..errors import (
    EntropyExhaustedError,
    InvalidKeyError,
    InvalidSignatureError,
)
from .entropy import EntropySource, SystemEntropySource, draw_bytes
from .keys import (
    CURVE,
    P256_ORDER,
    KeyPair,
    PrivateKey,
    PublicKey,
    Signature,
    SignatureSchemeType,
)


logger = logging.getLogger(__name__)

SCALAR_SIZE = 32
MAX_SCALAR_ATTEMPTS = 64  # rejection sampling; failure odds ~2^-32 per draw


class SignatureScheme(ABC):
    """Base class for signature schemes."""

    scheme_type: SignatureSchemeType

    @property
    def name(self) -> str:
        return self.scheme_type.value

    @abstractmethod
    def generate_keypair(self, entropy_source: Optional[EntropySource] = None) -> KeyPair:
        """Generate a key pair from the given entropy source."""

    @abstractmethod
    def _sign_raw(self, private_key: PrivateKey, message: bytes) -> bytes:
        """Produce raw signature bytes."""

    @abstractmethod
    def _verify_raw(self, public_key: PublicKey, message: bytes, signature: bytes) -> bool:
        """Check raw signature bytes; must not raise on mismatch."""

    def sign(self, private_key: PrivateKey, message: bytes) -> Signature:
        """
        Sign a message.

        Args:
            private_key: Private key of this scheme
            message: Message bytes (hashed inside the scheme if needed)

        Returns:
            Signature bound to this scheme

        Raises:
            InvalidKeyError: If the key is of another scheme, malformed or wiped
            InvalidSignatureError: If the signing operation fails
        """
        if not isinstance(private_key, PrivateKey):
            raise InvalidKeyError(f"Expected PrivateKey, got {type(private_key).__name__}")
        if private_key.scheme is not self.scheme_type:
            raise InvalidKeyError(
                f"{private_key.scheme.value} key cannot sign with {self.name}"
            )
        return Signature(self.scheme_type, self._sign_raw(private_key, bytes(message)))

    def verify(self, public_key: PublicKey, message: bytes, signature: Signature) -> bool:
        """
        Verify a signature.

        Args:
            public_key: Signer's public key
            message: Message that was signed
            signature: Signature to check

        Returns:
            True if valid, False otherwise (wrong key, message, or scheme)
        """
        if public_key.scheme is not self.scheme_type:
            return False
        if signature.scheme is not self.scheme_type:
            return False
        return self._verify_raw(public_key, bytes(message), signature.value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class EcdsaP256Scheme(SignatureScheme):
    """
    ECDSA on NIST P-256.

    Messages are hashed with SHA-256 inside the scheme. Signatures use a
    fresh nonce each time, so two signatures of one message differ but
    both verify.
    """

    scheme_type = SignatureSchemeType.ECDSA_P256

    def generate_keypair(self, entropy_source: Optional[EntropySource] = None) -> KeyPair:
        """
        Generate a P-256 key pair.

        The private scalar is drawn uniformly from [1, n-1] by rejection
        sampling 32-byte candidates from the entropy source.

        Raises:
            EntropyExhaustedError: If the source fails or never yields
                a scalar in range
        """
        source = entropy_source or SystemEntropySource()
        for _ in range(MAX_SCALAR_ATTEMPTS):
            candidate = draw_bytes(source, SCALAR_SIZE)
            scalar = int.from_bytes(candidate, 'big')
            if 1 <= scalar < P256_ORDER:
                break
        else:
            raise EntropyExhaustedError(
                f"No valid P-256 scalar after {MAX_SCALAR_ATTEMPTS} draws"
            )

        private_key = PrivateKey(self.scheme_type, candidate)
        public_key = PublicKey(self.scheme_type, self._public_from_scalar(scalar))
        logger.debug("Generated %s key pair %s", self.name, public_key.fingerprint())
        return KeyPair(private_key, public_key)

    @staticmethod
    def _public_from_scalar(scalar: int) -> bytes:
        key = ec.derive_private_key(scalar, CURVE)
        return key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint
        )

    @staticmethod
    def _load_private(private_key: PrivateKey) -> ec.EllipticCurvePrivateKey:
        scalar = int.from_bytes(private_key.raw_bytes(), 'big')
        if not 1 <= scalar < P256_ORDER:
            raise InvalidKeyError("ECDSA scalar outside [1, n-1]")
        try:
            return ec.derive_private_key(scalar, CURVE)
        except (ValueError, TypeError) as exc:
            raise InvalidKeyError("Malformed ECDSA private key") from exc

    def public_key_for(self, private_key: PrivateKey) -> PublicKey:
        """Recompute the public key from a private key."""
        scalar = int.from_bytes(private_key.raw_bytes(), 'big')
        if not 1 <= scalar < P256_ORDER:
            raise InvalidKeyError("ECDSA scalar outside [1, n-1]")
        return PublicKey(self.scheme_type, self._public_from_scalar(scalar))

    def _sign_raw(self, private_key: PrivateKey, message: bytes) -> bytes:
        key = self._load_private(private_key)
        try:
            der = key.sign(message, ec.ECDSA(hashes.SHA256()))
            r, s = decode_dss_signature(der)
        except (ValueError, TypeError) as exc:
            raise InvalidSignatureError(f"ECDSA signing failed: {exc}") from exc
        return r.to_bytes(SCALAR_SIZE, 'big') + s.to_bytes(SCALAR_SIZE, 'big')

    def _verify_raw(self, public_key: PublicKey, message: bytes, signature: bytes) -> bool:
        r = int.from_bytes(signature[:SCALAR_SIZE], 'big')
        s = int.from_bytes(signature[SCALAR_SIZE:], 'big')
        try:
            key = ec.EllipticCurvePublicKey.from_encoded_point(CURVE, public_key.material)
            key.verify(encode_dss_signature(r, s), message, ec.ECDSA(hashes.SHA256()))
            return True
        except (InvalidSignature, ValueError):
            return False


class Ed25519Scheme(SignatureScheme):
    """
    Ed25519 signatures.

    Deterministic: the same key and message always give the same bytes.
    """

    scheme_type = SignatureSchemeType.ED25519

    def generate_keypair(self, entropy_source: Optional[EntropySource] = None) -> KeyPair:
        """
        Generate an Ed25519 key pair from a 32-byte seed.

        Raises:
            EntropyExhaustedError: If the source cannot supply the seed
        """
        source = entropy_source or SystemEntropySource()
        seed = draw_bytes(source, SCALAR_SIZE)
        private_key = PrivateKey(self.scheme_type, seed)
        public_key = self.public_key_for(private_key)
        logger.debug("Generated %s key pair %s", self.name, public_key.fingerprint())
        return KeyPair(private_key, public_key)

    @staticmethod
    def _load_private(private_key: PrivateKey) -> ed25519.Ed25519PrivateKey:
        try:
            return ed25519.Ed25519PrivateKey.from_private_bytes(private_key.raw_bytes())
        except ValueError as exc:
            raise InvalidKeyError("Malformed Ed25519 private key") from exc

    def public_key_for(self, private_key: PrivateKey) -> PublicKey:
        """Recompute the public key from a private key."""
        raw = self._load_private(private_key).public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw
        )
        return PublicKey(self.scheme_type, raw)

    def _sign_raw(self, private_key: PrivateKey, message: bytes) -> bytes:
        key = self._load_private(private_key)
        try:
            return key.sign(message)
        except (ValueError, TypeError) as exc:
            raise InvalidSignatureError(f"Ed25519 signing failed: {exc}") from exc

    def _verify_raw(self, public_key: PublicKey, message: bytes, signature: bytes) -> bool:
        try:
            key = ed25519.Ed25519PublicKey.from_public_bytes(public_key.material)
            key.verify(signature, message)
            return True
        except (InvalidSignature, ValueError):
            return False


# ============================================================================
# Registry and Dispatch
# ============================================================================

_SCHEMES: Dict[SignatureSchemeType, SignatureScheme] = {
    SignatureSchemeType.ECDSA_P256: EcdsaP256Scheme(),
    SignatureSchemeType.ED25519: Ed25519Scheme(),
}


def get_signature_scheme(scheme: Union[SignatureSchemeType, str]) -> SignatureScheme:
    """
    Look up a signature scheme.

    Args:
        scheme: SignatureSchemeType member or its name ("ecdsa-p256", "ed25519")

    Raises:
        ValueError: If the name is not a supported scheme
    """
    if not isinstance(scheme, SignatureSchemeType):
        try:
            scheme = SignatureSchemeType(str(scheme).lower())
        except ValueError:
            supported = ', '.join(t.value for t in SignatureSchemeType)
            raise ValueError(
                f"Unknown signature scheme {scheme!r} (supported: {supported})"
            ) from None
    return _SCHEMES[scheme]


def generate_keypair(scheme: Union[SignatureSchemeType, str] = SignatureSchemeType.ED25519,
                     entropy_source: Optional[EntropySource] = None) -> KeyPair:
    """Generate a key pair for the named scheme."""
    return get_signature_scheme(scheme).generate_keypair(entropy_source)


def sign(private_key: PrivateKey, message: bytes) -> Signature:
    """Sign with whichever scheme the private key belongs to."""
    if not isinstance(private_key, PrivateKey):
        raise InvalidKeyError(f"Expected PrivateKey, got {type(private_key).__name__}")
    return _SCHEMES[private_key.scheme].sign(private_key, message)


def verify(public_key: PublicKey, message: bytes, signature: Signature) -> bool:
    """Verify with whichever scheme the public key belongs to."""
    return _SCHEMES[public_key.scheme].verify(public_key, message, signature)
