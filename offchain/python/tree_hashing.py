"""
Leaf and node hashing for the standard whitelist Merkle tree.

Leaves are double hashed, keccak256(keccak256(abi.encode(values))), while
internal nodes are a single keccak256 over 64 bytes. A leaf digest therefore
never has the shape of an internal-node preimage, which rules out passing an
internal node off as a leaf.
"""

from eth_utils import keccak

from leaf_encoder import encode_values
from merkle_errors import InvalidEntry

HASH_SIZE = 32


def leaf_hash(entry) -> bytes:
    return leaf_hash_values(entry.leaf_encoding, entry.values)


def leaf_hash_values(leaf_encoding, values) -> bytes:
    """Leaf digest straight from raw values, without building an entry."""
    return keccak(keccak(encode_values(leaf_encoding, values)))


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Commutative node hash: the smaller digest always goes first."""
    return keccak(a + b) if a < b else keccak(b + a)


def to_hex(digest: bytes) -> str:
    return "0x" + digest.hex()


def from_hex(value) -> bytes:
    """Accept a 32-byte digest as bytes or (0x-prefixed) hex."""
    if isinstance(value, (bytes, bytearray)):
        digest = bytes(value)
    elif isinstance(value, str):
        body = value[2:] if value.startswith(("0x", "0X")) else value
        try:
            digest = bytes.fromhex(body)
        except ValueError:
            raise InvalidEntry(f"Not a hex digest: {value!r}") from None
    else:
        raise InvalidEntry(f"Not a digest: {value!r}")

    if len(digest) != HASH_SIZE:
        raise InvalidEntry(f"Digest must be {HASH_SIZE} bytes, got {len(digest)}")
    return digest
