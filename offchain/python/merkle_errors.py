"""
Error types raised by the whitelist Merkle tree.

Failed verification is not an error: verifiers return False instead.
"""


class MerkleTreeError(ValueError):
    """Base class for every error raised while encoding, building or proving."""


class InvalidEntry(MerkleTreeError):
    """A field does not conform to its declared ABI type."""


class DuplicateLeaf(MerkleTreeError):
    """Two entries hash to the same leaf."""

    def __init__(self, leaf_hex, message=None):
        self.leaf_hex = leaf_hex
        super().__init__(message or f"Duplicate leaf {leaf_hex}: deduplicate the whitelist and rebuild")


class EmptyInput(MerkleTreeError):
    """A tree needs at least one entry."""


class EmptyIndexSet(MerkleTreeError):
    """A multiproof needs at least one leaf index."""


class IndexOutOfRange(MerkleTreeError, IndexError):
    """Leaf index is not a valid sorted-leaf position."""

    def __init__(self, index, leaf_count):
        self.index = index
        self.leaf_count = leaf_count
        super().__init__(f"Leaf index {index!r} out of range for a tree of {leaf_count} leaves")


class EntryNotFound(MerkleTreeError, LookupError):
    """The entry is not committed to by the tree."""


class TreeNotBuilt(MerkleTreeError):
    """Proofs were requested before build() ran."""


class InvalidTree(MerkleTreeError):
    """A stored node does not match the hash of its children."""
