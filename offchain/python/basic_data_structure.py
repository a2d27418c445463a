from dataclasses import dataclass, field
from typing import Tuple

from leaf_encoder import DEFAULT_LEAF_ENCODING, canonicalize_values, normalize_leaf_encoding


@dataclass(frozen=True)
class WhitelistEntry:
    """One whitelist record: typed field values plus the ABI types they encode as.

    Values are canonicalized on construction, so two entries that differ only
    in address casing compare equal.
    """
    values: tuple
    leaf_encoding: Tuple[str, ...] = DEFAULT_LEAF_ENCODING

    def __post_init__(self):
        encoding = normalize_leaf_encoding(self.leaf_encoding)
        object.__setattr__(self, "leaf_encoding", encoding)
        object.__setattr__(self, "values", canonicalize_values(encoding, self.values))

    @classmethod
    def of(cls, address, amount):
        """Build the standard (address, uint256) airdrop entry."""
        return cls((address, amount))

    @property
    def address(self):
        return self.values[0]

    @property
    def amount(self):
        return self.values[1]

    def __repr__(self):
        return f"WhitelistEntry{self.values}"


@dataclass(frozen=True)
class MerkleProof:
    """Inclusion proof for one leaf: siblings ordered from the leaf level upward."""
    leaf: bytes
    leaf_index: int
    siblings: Tuple[bytes, ...] = field(default_factory=tuple)

    def __len__(self):
        return len(self.siblings)

    def hex_siblings(self):
        return ["0x" + s.hex() for s in self.siblings]

    @property
    def size_bytes(self):
        return len(self.siblings) * 32


@dataclass(frozen=True)
class MerkleMultiproof:
    """Compact proof for several leaves at once.

    `inputs` holds the proven leaves and the sibling digests they need, in the
    order the replay consumes them. Each flag is one replay step: True pushes
    the next input, False merges the two most recently reconstructed digests.
    """
    leaves: Tuple[bytes, ...]
    leaf_indices: Tuple[int, ...]
    inputs: Tuple[bytes, ...]
    proof_flags: Tuple[bool, ...]

    @property
    def proof(self):
        """The sibling digests, i.e. the inputs that are not proven leaves."""
        proven = set(self.leaves)
        return tuple(h for h in self.inputs if h not in proven)

    @property
    def size_bytes(self):
        return len(self.proof) * 32

    def bitmap(self):
        """Pack the flags into 256-bit words, bit i of word i // 256."""
        from stack_based_proof_generator import encode_bitmap
        return encode_bitmap(self.proof_flags)
