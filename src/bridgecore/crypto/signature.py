"""
secp256k1 Signature Recovery

The bridge trusts exactly one authority key. Both withdrawal roots and key
rotation messages are authorized by recovering the public key from a
compact signature and comparing it to the key currently stored in the
AdminRecord.

REQUIREMENTS:
- Messages are 32-byte digests (merkle roots or keccak256(new_key)); no
  further hashing is applied before recovery
- Signatures are 64-byte compact r || s with a separate recovery id (0..3)
- Public keys are 64-byte uncompressed points without the 0x04 prefix
- Verification is offline; the expected key is always supplied by the caller
"""

from __future__ import annotations

import logging
from typing import Tuple

from coincurve import PrivateKey, PublicKey

from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import AuthError
from bridgecore.protocol.models import SIGNATURE_LEN

logger = logging.getLogger(__name__)

MESSAGE_LEN = 32
MAX_RECOVERY_ID = 3


def raw_public_key(public_key: PublicKey) -> bytes:
    """64-byte x || y encoding of a point."""
    return public_key.format(compressed=False)[1:]


def recover_public_key(message: bytes, signature: bytes, recovery_id: int) -> bytes:
    """
    Recover the 64-byte public key that produced signature over message.

    Raises:
        AuthError: INVALID_SIGNATURE if recovery is impossible
    """
    if len(message) != MESSAGE_LEN:
        raise AuthError(f"Signed message must be {MESSAGE_LEN} bytes", ErrorCode.INVALID_SIGNATURE)
    if len(signature) != SIGNATURE_LEN:
        raise AuthError(f"Signature must be {SIGNATURE_LEN} bytes", ErrorCode.INVALID_SIGNATURE)
    if not isinstance(recovery_id, int) or not 0 <= recovery_id <= MAX_RECOVERY_ID:
        raise AuthError(f"Invalid recovery id: {recovery_id!r}", ErrorCode.INVALID_SIGNATURE)

    try:
        recovered = PublicKey.from_signature_and_message(
            bytes(signature) + bytes([recovery_id]),
            bytes(message),
            hasher=None,
        )
    except ValueError as e:
        raise AuthError(f"Public key recovery failed: {e}", ErrorCode.INVALID_SIGNATURE) from None
    return raw_public_key(recovered)


class SignatureVerifier:
    """
    Checks that a signature over a 32-byte message was made by an expected key.

    Usage:
        verifier = SignatureVerifier()
        verifier.verify(root, signature, recovery_id, admin.authority_key)
    """

    def verify(
        self,
        message: bytes,
        signature: bytes,
        recovery_id: int,
        expected_key: bytes,
    ) -> None:
        """
        Raises:
            AuthError: INVALID_SIGNATURE if recovery fails,
                       WRONG_SIGNATURE if the recovered key is not expected_key
        """
        recovered = recover_public_key(message, signature, recovery_id)
        if recovered != bytes(expected_key):
            logger.debug("Recovered key %s does not match authority", recovered.hex()[:16])
            raise AuthError("Signature was not produced by the authority key", ErrorCode.WRONG_SIGNATURE)

    def is_valid(self, message: bytes, signature: bytes, recovery_id: int, expected_key: bytes) -> bool:
        try:
            self.verify(message, signature, recovery_id, expected_key)
            return True
        except AuthError:
            return False


class Secp256k1Signer:
    """
    Authority-side signer producing (signature, recovery_id) pairs.

    Usage:
        signer = Secp256k1Signer.generate()
        signature, recovery_id = signer.sign(root)

    WARNING: generate() is for testing. Production authority keys live with
    the relayer/signing service, never inside the bridge.
    """

    def __init__(self, private_key: PrivateKey):
        self._private_key = private_key
        self._public_key = raw_public_key(private_key.public_key)

    @property
    def public_key(self) -> bytes:
        """64-byte uncompressed public key (no prefix)."""
        return self._public_key

    def sign(self, message: bytes) -> Tuple[bytes, int]:
        """Sign a 32-byte digest. Returns (64-byte signature, recovery id)."""
        if len(message) != MESSAGE_LEN:
            raise ValueError(f"Message must be a {MESSAGE_LEN}-byte digest")
        recoverable = self._private_key.sign_recoverable(bytes(message), hasher=None)
        return recoverable[:SIGNATURE_LEN], recoverable[SIGNATURE_LEN]

    @classmethod
    def generate(cls) -> "Secp256k1Signer":
        return cls(PrivateKey())

    @classmethod
    def from_private_bytes(cls, key_bytes: bytes) -> "Secp256k1Signer":
        """Create signer from a raw 32-byte secret."""
        return cls(PrivateKey(key_bytes))


