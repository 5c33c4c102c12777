"""Secrets and hash-lock commitments for cross-chain orders.

A cross-chain order is locked by a commitment over one or more random
secrets. With one secret the commitment is simply its keccak256 hash.
With several, each secret hash becomes an indexed Merkle leaf and the
commitment is the tree root, with the top 16 bits replaced by
``len(secrets) - 1`` so the escrow knows how many parts to expect.

Only secret generation is random. Everything derived from a given secret
list is deterministic. Leaves are sorted before the tree is built, as
resolvers do when they compute proofs; the position of each secret still
counts because it is hashed into its leaf.
"""

import secrets as _secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from eth_utils import keccak

SECRET_SIZE = 32

# Bits 240..255 of a multi-fill root carry the parts count
_PARTS_SHIFT = 240
_ROOT_MASK = (1 << _PARTS_SHIFT) - 1


class HashLockKind(str, Enum):
    SINGLE_FILL = "single_fill"
    MERKLE = "merkle"


@dataclass(frozen=True)
class HashLockCommitment:
    """The value an escrow is locked with."""

    kind: HashLockKind
    value: bytes  # 32 bytes
    parts: int = 1

    @property
    def hex(self) -> str:
        return "0x" + self.value.hex()

    @property
    def as_int(self) -> int:
        return int.from_bytes(self.value, "big")


@dataclass(frozen=True)
class SecretSet:
    """Generated secrets together with their public commitments.

    The secrets stay in memory only; they are hidden from ``repr`` so a
    stray log line cannot leak them.
    """

    secrets: tuple[bytes, ...] = field(repr=False)
    secret_hashes: tuple[bytes, ...]
    commitment: HashLockCommitment

    def __len__(self) -> int:
        return len(self.secrets)

    def secret_hex(self, index: int) -> str:
        return "0x" + self.secrets[index].hex()

    @property
    def secret_hashes_hex(self) -> list[str]:
        return ["0x" + h.hex() for h in self.secret_hashes]


def hash_secret(secret: bytes) -> bytes:
    """keccak256 of a secret."""
    if len(secret) != SECRET_SIZE:
        raise ValueError(f"Secret must be {SECRET_SIZE} bytes, got {len(secret)}")
    return keccak(secret)


def merkle_leaves(secret_hashes: list[bytes]) -> list[bytes]:
    """Indexed leaves: keccak256(uint64 index || secret hash)."""
    return [keccak(idx.to_bytes(8, "big") + h) for idx, h in enumerate(secret_hashes)]


def _hash_pair(a: bytes, b: bytes) -> bytes:
    return keccak(a + b) if a < b else keccak(b + a)


def merkle_root(leaves: list[bytes]) -> bytes:
    """Root of a binary Merkle tree over ``leaves``.

    Leaves are sorted first, then laid out in the flat-array layout
    (leaves stored right to left at the end of the array, parent ``i``
    over children ``2i+1``/``2i+2``) with sorted-pair hashing. This is
    the tree resolvers rebuild from the order's secret hashes, so the
    escrow accepts their proofs.
    """
    if not leaves:
        raise ValueError("Cannot build a Merkle tree without leaves")

    tree: list[Optional[bytes]] = [None] * (2 * len(leaves) - 1)
    for i, leaf in enumerate(sorted(leaves)):
        tree[len(tree) - 1 - i] = leaf
    for i in range(len(tree) - 1 - len(leaves), -1, -1):
        tree[i] = _hash_pair(tree[2 * i + 1], tree[2 * i + 2])
    return tree[0]


def commitment_for(secret_list: list[bytes]) -> HashLockCommitment:
    """Derive the hash-lock commitment for an ordered list of secrets."""
    if not secret_list:
        raise ValueError("At least one secret is required")

    if len(secret_list) == 1:
        return HashLockCommitment(
            kind=HashLockKind.SINGLE_FILL,
            value=hash_secret(secret_list[0]),
        )

    leaves = merkle_leaves([hash_secret(s) for s in secret_list])
    root = int.from_bytes(merkle_root(leaves), "big")
    value = (root & _ROOT_MASK) | ((len(secret_list) - 1) << _PARTS_SHIFT)
    return HashLockCommitment(
        kind=HashLockKind.MERKLE,
        value=value.to_bytes(32, "big"),
        parts=len(secret_list),
    )


def generate_commitment(
    secrets_count: int,
    random_bytes: Callable[[int], bytes] = _secrets.token_bytes,
) -> SecretSet:
    """Generate ``secrets_count`` random secrets and commit to them.

    Args:
        secrets_count: Number of secrets, dictated by the quote preset
        random_bytes: Source of randomness (override in tests)

    Returns:
        SecretSet with secrets, their hashes and the commitment
    """
    if secrets_count < 1:
        raise ValueError(f"secrets_count must be >= 1, got {secrets_count}")

    secret_list = [random_bytes(SECRET_SIZE) for _ in range(secrets_count)]
    return SecretSet(
        secrets=tuple(secret_list),
        secret_hashes=tuple(hash_secret(s) for s in secret_list),
        commitment=commitment_for(secret_list),
    )
