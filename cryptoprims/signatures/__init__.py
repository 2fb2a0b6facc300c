# Digital Signatures Module
"""
Digital signature implementations including:
- ECDSA (P-256, SHA-256)
- Ed25519
- Zeroizable private keys with redacted repr
- Canonical tagged encodings for keys and signatures
- Pluggable entropy sources for key generation
"""

from .entropy import EntropySource, SystemEntropySource
from .keys import (
    SignatureSchemeType,
    PrivateKey,
    PublicKey,
    KeyPair,
    Signature,
)
from .schemes import (
    SignatureScheme,
    EcdsaP256Scheme,
    Ed25519Scheme,
    get_signature_scheme,
    generate_keypair,
    sign,
    verify,
)

__all__ = [
    'EntropySource',
    'SystemEntropySource',
    'SignatureSchemeType',
    'PrivateKey',
    'PublicKey',
    'KeyPair',
    'Signature',
    'SignatureScheme',
    'EcdsaP256Scheme',
    'Ed25519Scheme',
    'get_signature_scheme',
    'generate_keypair',
    'sign',
    'verify',
]
