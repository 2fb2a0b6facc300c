"""
Key and Signature Containers

Value types shared by every signature scheme:
- PrivateKey  sensitive, redacted repr, zeroizable, context manager
- PublicKey   freely shareable
- KeyPair     private/public pair for one scheme
- Signature   immutable signature bytes

Canonical encoding: [scheme tag (1 byte) | raw material]. The tag makes
keys and signatures from different schemes impossible to confuse.
"""

import hashlib
import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from ..errors import InvalidEncodingError, InvalidKeyError


class SignatureSchemeType(Enum):
    """Closed set of supported signature schemes."""

    ECDSA_P256 = 'ecdsa-p256'
    ED25519 = 'ed25519'

    @property
    def tag(self) -> int:
        return _SCHEME_TAGS[self]

    @classmethod
    def from_tag(cls, tag: int) -> 'SignatureSchemeType':
        for scheme, value in _SCHEME_TAGS.items():
            if value == tag:
                return scheme
        raise InvalidEncodingError(f"Unknown signature scheme tag 0x{tag:02x}")


_SCHEME_TAGS = {
    SignatureSchemeType.ECDSA_P256: 0x01,
    SignatureSchemeType.ED25519: 0x02,
}

# Raw (untagged) lengths per scheme
PRIVATE_KEY_SIZES = {
    SignatureSchemeType.ECDSA_P256: 32,   # big-endian scalar
    SignatureSchemeType.ED25519: 32,      # seed
}
PUBLIC_KEY_SIZES = {
    SignatureSchemeType.ECDSA_P256: 65,   # X9.62 uncompressed point
    SignatureSchemeType.ED25519: 32,
}
SIGNATURE_SIZES = {
    SignatureSchemeType.ECDSA_P256: 64,   # r || s
    SignatureSchemeType.ED25519: 64,
}

CURVE = ec.SECP256R1()  # P-256 curve
# Order n of the P-256 base point
P256_ORDER = 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551


def _split_tagged(data: bytes, sizes: dict, what: str):
    """Split tagged encoding into (scheme, raw) and check its length."""
    if not isinstance(data, (bytes, bytearray)) or len(data) < 1:
        raise InvalidEncodingError(f"Empty {what} encoding")
    scheme = SignatureSchemeType.from_tag(data[0])
    raw = bytes(data[1:])
    if len(raw) != sizes[scheme]:
        raise InvalidEncodingError(
            f"{scheme.value} {what} must be {sizes[scheme]} bytes, got {len(raw)}"
        )
    return scheme, raw


def _from_hex(hex_str: str) -> bytes:
    try:
        return bytes.fromhex(hex_str)
    except (TypeError, ValueError) as exc:
        raise InvalidEncodingError(f"Invalid hex: {exc}") from exc


class PrivateKey:
    """
    Private key material for one scheme.

    The raw bytes live in a bytearray that zeroize() overwrites. repr()
    and str() never render the material.
    """

    __slots__ = ('_scheme', '_material', '_wiped')

    def __init__(self, scheme: SignatureSchemeType, material: bytes):
        if len(material) != PRIVATE_KEY_SIZES[scheme]:
            raise InvalidKeyError(
                f"{scheme.value} private key must be {PRIVATE_KEY_SIZES[scheme]} bytes"
            )
        self._scheme = scheme
        self._material = bytearray(material)
        self._wiped = False

    @property
    def scheme(self) -> SignatureSchemeType:
        return self._scheme

    @property
    def is_zeroized(self) -> bool:
        return self._wiped

    def raw_bytes(self) -> bytes:
        """
        Raw key material without the scheme tag.

        Raises:
            InvalidKeyError: If the key has been zeroized
        """
        if self.is_zeroized:
            raise InvalidKeyError("Private key has been zeroized")
        return bytes(self._material)

    def to_bytes(self) -> bytes:
        """Canonical encoding: tag || raw material."""
        return bytes([self._scheme.tag]) + self.raw_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> 'PrivateKey':
        """
        Decode a canonical private key encoding.

        Raises:
            InvalidEncodingError: On unknown tag, wrong length, or an
                ECDSA scalar outside [1, n-1]
        """
        scheme, raw = _split_tagged(data, PRIVATE_KEY_SIZES, 'private key')
        if scheme is SignatureSchemeType.ECDSA_P256:
            if not 1 <= int.from_bytes(raw, 'big') < P256_ORDER:
                raise InvalidEncodingError("ECDSA scalar outside [1, n-1]")
        # Any 32-byte Ed25519 seed is valid, all-zero included
        return cls(scheme, raw)

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_hex(cls, hex_str: str) -> 'PrivateKey':
        return cls.from_bytes(_from_hex(hex_str))

    def zeroize(self) -> None:
        """Overwrite the key material in place."""
        for i in range(len(self._material)):
            self._material[i] = 0
        self._wiped = True

    def __enter__(self) -> 'PrivateKey':
        return self

    def __exit__(self, *exc_info) -> None:
        self.zeroize()

    def __eq__(self, other) -> bool:
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return (self._scheme == other._scheme and
                hmac.compare_digest(bytes(self._material), bytes(other._material)))

    __hash__ = None

    def __repr__(self) -> str:
        return f"PrivateKey(scheme={self._scheme.value}, material=<redacted>)"

    __str__ = __repr__

    def __copy__(self):
        raise TypeError("PrivateKey cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("PrivateKey cannot be copied")

    def __reduce__(self):
        raise TypeError("PrivateKey cannot be pickled")


@dataclass(frozen=True)
class PublicKey:
    """Public key for one scheme."""
    scheme: SignatureSchemeType
    material: bytes

    def __post_init__(self):
        if len(self.material) != PUBLIC_KEY_SIZES[self.scheme]:
            raise InvalidKeyError(
                f"{self.scheme.value} public key must be "
                f"{PUBLIC_KEY_SIZES[self.scheme]} bytes"
            )

    def to_bytes(self) -> bytes:
        """Canonical encoding: tag || raw material."""
        return bytes([self.scheme.tag]) + self.material

    @classmethod
    def from_bytes(cls, data: bytes) -> 'PublicKey':
        """
        Decode a canonical public key encoding.

        Raises:
            InvalidEncodingError: On unknown tag, wrong length, or bytes
                that are not a point on the curve
        """
        scheme, raw = _split_tagged(data, PUBLIC_KEY_SIZES, 'public key')
        try:
            if scheme is SignatureSchemeType.ECDSA_P256:
                ec.EllipticCurvePublicKey.from_encoded_point(CURVE, raw)
            else:
                ed25519.Ed25519PublicKey.from_public_bytes(raw)
        except ValueError as exc:
            raise InvalidEncodingError(f"Invalid {scheme.value} public key: {exc}") from exc
        return cls(scheme, raw)

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_hex(cls, hex_str: str) -> 'PublicKey':
        return cls.from_bytes(_from_hex(hex_str))

    def fingerprint(self) -> str:
        """Short SHA-256 fingerprint of the canonical encoding, for logs."""
        return hashlib.sha256(self.to_bytes()).hexdigest()[:16]

    def __repr__(self) -> str:
        return f"PublicKey(scheme={self.scheme.value}, fingerprint={self.fingerprint()})"


@dataclass(frozen=True)
class Signature:
    """Signature bytes bound to one scheme."""
    scheme: SignatureSchemeType
    value: bytes

    def __post_init__(self):
        if len(self.value) != SIGNATURE_SIZES[self.scheme]:
            raise InvalidEncodingError(
                f"{self.scheme.value} signature must be "
                f"{SIGNATURE_SIZES[self.scheme]} bytes"
            )

    def to_bytes(self) -> bytes:
        """Canonical encoding: tag || raw signature."""
        return bytes([self.scheme.tag]) + self.value

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Signature':
        """
        Decode a canonical signature encoding.

        Raises:
            InvalidEncodingError: On unknown tag or wrong length
        """
        scheme, raw = _split_tagged(data, SIGNATURE_SIZES, 'signature')
        return cls(scheme, raw)

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_hex(cls, hex_str: str) -> 'Signature':
        return cls.from_bytes(_from_hex(hex_str))


@dataclass
class KeyPair:
    """Private/public key pair for one scheme."""
    private_key: Optional[PrivateKey]
    public_key: PublicKey

    @property
    def scheme(self) -> SignatureSchemeType:
        return self.public_key.scheme

    def public_bytes(self) -> bytes:
        """Get public key canonical encoding."""
        return self.public_key.to_bytes()

    def zeroize(self) -> None:
        """Wipe the private half."""
        if self.private_key is not None:
            self.private_key.zeroize()

    def __enter__(self) -> 'KeyPair':
        return self

    def __exit__(self, *exc_info) -> None:
        self.zeroize()

    def __repr__(self) -> str:
        return f"KeyPair(scheme={self.scheme.value}, public={self.public_key.fingerprint()})"
