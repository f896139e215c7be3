"""
Cryptographic primitives for leaf authentication:

- keccak256 hashing
- Content leaf encoding
- Sorted-pair merkle folding
- secp256k1 signature recovery
"""

from .hashing import keccak256
from .leaf import ContentLeafEncoder, encode_payload, strip_padding
from .merkle import MerkleProof, MerkleProofVerifier, MerkleBatchBuilder, hash_pair
from .signature import SignatureVerifier, Secp256k1Signer, recover_public_key

__all__ = [
    "keccak256",
    "ContentLeafEncoder",
    "encode_payload",
    "strip_padding",
    "MerkleProof",
    "MerkleProofVerifier",
    "MerkleBatchBuilder",
    "hash_pair",
    "SignatureVerifier",
    "Secp256k1Signer",
    "recover_public_key",
]
