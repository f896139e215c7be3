"""
Sorted-Pair Merkle Proofs

Batch roots are built and folded with the sorted-pair rule: at each level the
two 32-byte hashes are compared as big-endian integers and the larger one is
hashed first:

    parent = keccak256(max(a, b) || min(a, b))

A proof is therefore just the ordered list of sibling hashes; no left/right
direction flags are carried.

Key features:
- Keccak-256 node hashing
- Direction-free inclusion proofs
- Batch builder for relayer-side tooling and tests
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import DataError

from .hashing import keccak256

HASH_LEN = 32


# ===========================================================================
# Hash Functions
# ===========================================================================


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two nodes, numerically larger first."""
    if a >= b:
        return keccak256(a, b)
    return keccak256(b, a)


def _check_node(value: bytes, what: str) -> None:
    if not isinstance(value, (bytes, bytearray)) or len(value) != HASH_LEN:
        raise DataError(f"{what} must be {HASH_LEN} bytes", ErrorCode.MALFORMED_PROOF)


# ===========================================================================
# Merkle Proof
# ===========================================================================


@dataclass
class MerkleProof:
    """
    Inclusion proof for one leaf of a batch.

    Attributes:
        leaf_hash: Hash of the leaf being proved
        path: Sibling hashes from leaf to root
        root: Expected batch root
    """

    leaf_hash: bytes
    path: List[bytes]
    root: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leafHash": self.leaf_hash.hex(),
            "path": [p.hex() for p in self.path],
            "root": self.root.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MerkleProof":
        return cls(
            leaf_hash=bytes.fromhex(data["leafHash"]),
            path=[bytes.fromhex(p) for p in data["path"]],
            root=bytes.fromhex(data["root"]),
        )


# ===========================================================================
# Verifier
# ===========================================================================


class MerkleProofVerifier:
    """
    Folds a leaf hash with its sibling path into a batch root.

    An empty path is rejected: every leaf must be attested by at least one
    batching step before it can authorize a withdrawal.
    """

    def compute_root(self, leaf_hash: bytes, path: Sequence[bytes]) -> bytes:
        """
        Recompute the batch root.

        Raises:
            DataError: MALFORMED_PROOF if the path is empty or any node is not 32 bytes
        """
        if len(path) == 0:
            raise DataError("Merkle path must not be empty", ErrorCode.MALFORMED_PROOF)
        _check_node(leaf_hash, "Leaf hash")

        running = bytes(leaf_hash)
        for sibling in path:
            _check_node(sibling, "Merkle sibling")
            running = hash_pair(bytes(sibling), running)
        return running

    def verify(self, proof: MerkleProof) -> bool:
        """Check a proof against its own root. Malformed proofs do not verify."""
        try:
            return self.compute_root(proof.leaf_hash, proof.path) == proof.root
        except DataError:
            return False


# ===========================================================================
# Batch Builder
# ===========================================================================


class MerkleBatchBuilder:
    """
    Builds a sorted-pair merkle tree over content leaf hashes.

    A node without a sibling on its level is promoted unchanged, so its proof
    simply has no entry for that level.

    Usage:
        builder = MerkleBatchBuilder()
        index = builder.add_leaf(leaf_hash)
        root = builder.build()
        path = builder.proof(index)
    """

    def __init__(self) -> None:
        self._leaves: List[bytes] = []
        self._levels: Optional[List[List[bytes]]] = None

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    @property
    def root(self) -> Optional[bytes]:
        return self._levels[-1][0] if self._levels else None

    def add_leaf(self, leaf_hash: bytes) -> int:
        """Add a leaf hash. Returns its index."""
        if self._levels is not None:
            raise RuntimeError("Cannot add leaves after batch is built")
        _check_node(leaf_hash, "Leaf hash")
        self._leaves.append(bytes(leaf_hash))
        return len(self._leaves) - 1

    def build(self) -> bytes:
        """
        Build the tree and return the root.

        Raises:
            ValueError: If the batch has no leaves
        """
        if not self._leaves:
            raise ValueError("Cannot build batch with no leaves")
        if self._levels is not None:
            return self._levels[-1][0]

        levels = [list(self._leaves)]
        while len(levels[-1]) > 1:
            current = levels[-1]
            parents: List[bytes] = []
            for i in range(0, len(current), 2):
                if i + 1 < len(current):
                    parents.append(hash_pair(current[i], current[i + 1]))
                else:
                    parents.append(current[i])
            levels.append(parents)

        self._levels = levels
        return levels[-1][0]

    def proof(self, index: int) -> List[bytes]:
        """
        Sibling path for the leaf at index.

        Raises:
            ValueError: If the batch is not built or index is out of range
            DataError: MALFORMED_PROOF if the leaf has no siblings (single-leaf batch)
        """
        if self._levels is None:
            raise ValueError("Batch must be built before generating proofs")
        if index < 0 or index >= len(self._leaves):
            raise ValueError(f"Invalid leaf index: {index}")

        path: List[bytes] = []
        position = index
        for level in self._levels[:-1]:
            sibling = position ^ 1
            if sibling < len(level):
                path.append(level[sibling])
            position //= 2

        if not path:
            raise DataError(
                "Leaf has no siblings; a batch needs at least two leaves",
                ErrorCode.MALFORMED_PROOF,
            )
        return path

    def get_proof(self, index: int) -> MerkleProof:
        path = self.proof(index)
        return MerkleProof(leaf_hash=self._leaves[index], path=path, root=self.build())
