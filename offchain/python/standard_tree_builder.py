"""
Standard Whitelist Merkle Tree Builder

This module builds the tree an airdrop contract checks claims against:
1. Every entry becomes a double-hashed leaf
2. Leaves are sorted by digest, so the root does not depend on input order
3. Pairs are hashed in sorted order, an odd node is carried up un-hashed
4. Single proofs and multiproofs are read off the stored levels
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from basic_data_structure import MerkleProof, WhitelistEntry
from merkle_errors import (
    DuplicateLeaf,
    EmptyInput,
    EntryNotFound,
    InvalidEntry,
    InvalidTree,
    TreeNotBuilt,
)
from stack_based_proof_generator import check_leaf_index, generate_multiproof
from tree_config import get_tree_config
from tree_hashing import hash_pair, leaf_hash, to_hex


def build_levels(leaves, executor=None, parallel_threshold=None):
    """
    Build every level above the sorted leaves.

    The last node of an odd-width level is promoted to the next level as is;
    leaves are never duplicated or padded.
    """
    levels = [tuple(leaves)]
    nodes = levels[0]

    while len(nodes) > 1:
        lefts = nodes[0:len(nodes) - 1:2]
        rights = nodes[1::2]

        if executor is not None and len(nodes) >= parallel_threshold:
            parents = list(executor.map(hash_pair, lefts, rights))
        else:
            parents = [hash_pair(a, b) for a, b in zip(lefts, rights)]

        if len(nodes) % 2 != 0:
            parents.append(nodes[-1])  # promote lone node

        nodes = tuple(parents)
        levels.append(nodes)

    return tuple(levels)


class StandardMerkleTreeBuilder:
    """Sorted-leaf Merkle tree over typed whitelist entries."""

    def __init__(self, entries, leaf_encoding=None, config=None, verbose=None):
        self.config = config if config is not None else get_tree_config()
        if leaf_encoding is not None:
            self.config = replace(self.config, leaf_encoding=leaf_encoding)
        self.verbose = self.config.verbose_logging if verbose is None else verbose

        self.all_entries = list(entries)
        self.ordered_entries = ()
        self.ordered_leaves = ()
        self.layers = ()
        self.merkle_root = None
        self._index_by_leaf = {}

    @classmethod
    def of(cls, values, leaf_encoding=None, config=None):
        """Build a tree straight from raw value tuples, e.g. [(address, amount), ...]."""
        config = config if config is not None else get_tree_config()
        encoding = leaf_encoding or config.leaf_encoding
        entries = [WhitelistEntry(tuple(v), encoding) for v in values]
        builder = cls(entries, leaf_encoding=encoding, config=config)
        builder.build()
        return builder

    def print_verbose(self, message: str):
        if self.verbose:
            print(message)

    def _coerce_entry(self, entry):
        if isinstance(entry, WhitelistEntry):
            if entry.leaf_encoding != self.config.leaf_encoding:
                raise InvalidEntry(
                    f"Entry encoded as {entry.leaf_encoding}, tree expects {self.config.leaf_encoding}"
                )
            return entry
        return WhitelistEntry(tuple(entry), self.config.leaf_encoding)

    def build(self):
        """Build the tree once and return the root as 0x hex."""
        if self.merkle_root is not None:
            return to_hex(self.merkle_root)

        if not self.all_entries:
            raise EmptyInput("Cannot build a Merkle tree from an empty whitelist")

        # --- 1. Hash every entry ---
        hashed = []
        seen = set()
        for entry in self.all_entries:
            entry = self._coerce_entry(entry)
            leaf = leaf_hash(entry)
            if leaf in seen:
                raise DuplicateLeaf(to_hex(leaf))
            seen.add(leaf)
            hashed.append((leaf, entry))

        # --- 2. Sort by leaf digest (unsigned byte order) ---
        hashed.sort(key=lambda pair: pair[0])
        self.ordered_leaves = tuple(leaf for leaf, _ in hashed)
        self.ordered_entries = tuple(entry for _, entry in hashed)
        self._index_by_leaf = {leaf: i for i, leaf in enumerate(self.ordered_leaves)}

        # --- 3. Hash levels bottom-up ---
        use_pool = (
            self.config.parallel_hashing
            and len(self.ordered_leaves) >= self.config.parallel_threshold
        )
        if use_pool:
            self.print_verbose(f"🧵 Hashing levels on a thread pool (max_workers={self.config.max_workers})")
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                self.layers = build_levels(self.ordered_leaves, executor, self.config.parallel_threshold)
        else:
            self.layers = build_levels(self.ordered_leaves)

        self.merkle_root = self.layers[-1][0]
        self.print_verbose(
            f"🌳 Built tree: {len(self.ordered_leaves)} leaves, {len(self.layers)} levels, "
            f"root {to_hex(self.merkle_root)}"
        )
        return to_hex(self.merkle_root)

    def _require_built(self):
        if self.merkle_root is None:
            raise TreeNotBuilt("Tree not built.")

    @property
    def root(self):
        self._require_built()
        return self.merkle_root

    @property
    def root_hex(self):
        return to_hex(self.root)

    @property
    def leaf_count(self):
        return len(self.ordered_leaves)

    def __len__(self):
        return self.leaf_count

    def entries(self):
        """Yield (sorted index, entry) pairs."""
        self._require_built()
        yield from enumerate(self.ordered_entries)

    def leaf_lookup(self, entry):
        """Return the sorted index of an entry (or raw value tuple)."""
        self._require_built()
        leaf = leaf_hash(self._coerce_entry(entry))
        try:
            return self._index_by_leaf[leaf]
        except KeyError:
            raise EntryNotFound(f"Entry not in tree: {entry!r}") from None

    def _resolve_index(self, entry_or_index):
        if isinstance(entry_or_index, int) and not isinstance(entry_or_index, bool):
            return entry_or_index
        return self.leaf_lookup(entry_or_index)

    def generate_proof(self, leaf_index):
        """Walk up from a leaf collecting the sibling at every level."""
        self._require_built()
        leaf_index = check_leaf_index(leaf_index, self.leaf_count)

        siblings = []
        current_index = leaf_index
        for layer in self.layers[:-1]:  # Exclude root layer
            sibling_index = current_index ^ 1
            # A promoted lone node has no sibling at this level
            if sibling_index < len(layer):
                siblings.append(layer[sibling_index])
            current_index //= 2

        return MerkleProof(
            leaf=self.ordered_leaves[leaf_index],
            leaf_index=leaf_index,
            siblings=tuple(siblings),
        )

    def get_proof(self, entry_or_index):
        """Proof for a sorted index or for an entry, looked up first."""
        return self.generate_proof(self._resolve_index(entry_or_index))

    def generate_multiproof(self, leaf_indices):
        """One compact proof covering several sorted indices."""
        self._require_built()
        return generate_multiproof(self.layers, leaf_indices)

    def get_multiproof(self, entries_or_indices):
        self._require_built()
        return generate_multiproof(self.layers, [self._resolve_index(e) for e in entries_or_indices])

    def validate(self):
        """Recompute every leaf and node; raise InvalidTree on any mismatch."""
        self._require_built()
        for i, entry in enumerate(self.ordered_entries):
            if leaf_hash(entry) != self.ordered_leaves[i]:
                raise InvalidTree(f"Leaf {i} does not match its entry")
            if i and self.ordered_leaves[i - 1] >= self.ordered_leaves[i]:
                raise InvalidTree(f"Leaves out of order at index {i}")

        if self.layers[0] != self.ordered_leaves:
            raise InvalidTree("Bottom level does not hold the sorted leaves")

        expected = build_levels(self.ordered_leaves)
        for depth, (stored, rebuilt) in enumerate(zip(self.layers, expected)):
            if stored != rebuilt:
                raise InvalidTree(f"Level {depth} does not match its children")
        if len(self.layers) != len(expected):
            raise InvalidTree("Tree height does not match the leaf count")
        return True

    def render(self):
        """Printable view of the levels, root first."""
        self._require_built()
        lines = []
        for depth in range(len(self.layers) - 1, -1, -1):
            label = "root" if depth == len(self.layers) - 1 else f"level {depth}"
            lines.append(f"{label}:")
            for pos, node in enumerate(self.layers[depth]):
                lines.append(f"  [{pos}] {to_hex(node)}")
        return "\n".join(lines)

    def __repr__(self):
        if self.merkle_root is None:
            return f"StandardMerkleTreeBuilder({len(self.all_entries)} entries, not built)"
        return f"StandardMerkleTreeBuilder({self.leaf_count} leaves, root={to_hex(self.merkle_root)})"
