import itertools

import pytest

from basic_data_structure import WhitelistEntry
from conftest import ALICE, BOB, CAROL, DAVE
from merkle_errors import (
    DuplicateLeaf,
    EmptyInput,
    EntryNotFound,
    IndexOutOfRange,
    InvalidEntry,
    InvalidTree,
    TreeNotBuilt,
)
from proof_verifier import verify
from standard_tree_builder import StandardMerkleTreeBuilder, build_levels
from tree_config import TreeConfig, enable_parallel_hashing
from tree_hashing import hash_pair, leaf_hash


def build(entries, **kwargs):
    builder = StandardMerkleTreeBuilder(entries, **kwargs)
    builder.build()
    return builder


class TestConstruction:
    def test_root_does_not_depend_on_input_order(self, three_entries):
        roots = {build(list(p)).root for p in itertools.permutations(three_entries)}
        assert len(roots) == 1

    def test_leaves_sorted_by_digest(self, make_entries):
        builder = build(make_entries(9))
        assert list(builder.ordered_leaves) == sorted(builder.ordered_leaves)
        for entry, leaf in zip(builder.ordered_entries, builder.ordered_leaves):
            assert leaf_hash(entry) == leaf

    def test_single_leaf_root_is_the_leaf(self):
        entry = WhitelistEntry.of(ALICE, 1)
        builder = build([entry])
        assert builder.root == leaf_hash(entry)
        assert builder.generate_proof(0).siblings == ()

    def test_two_leaves(self):
        builder = build([WhitelistEntry.of(ALICE, 1), WhitelistEntry.of(BOB, 1)])
        a, b = builder.ordered_leaves
        assert builder.root == hash_pair(a, b)

    def test_odd_node_is_carried_up(self, three_entries):
        builder = build(three_entries)
        l0, l1, l2 = builder.ordered_leaves
        assert builder.layers[1] == (hash_pair(l0, l1), l2)
        assert builder.root == hash_pair(hash_pair(l0, l1), l2)

    def test_five_leaves_shape(self, make_entries):
        builder = build(make_entries(5))
        widths = [len(level) for level in builder.layers]
        assert widths == [5, 3, 2, 1]
        # last leaf is promoted twice, so its proof is a single sibling
        assert len(builder.generate_proof(4)) == 1

    def test_empty_input(self):
        with pytest.raises(EmptyInput):
            StandardMerkleTreeBuilder([]).build()

    def test_duplicate_entries(self):
        entries = [WhitelistEntry.of(ALICE, 5), WhitelistEntry.of(ALICE.lower(), 5)]
        with pytest.raises(DuplicateLeaf) as excinfo:
            StandardMerkleTreeBuilder(entries).build()
        assert excinfo.value.leaf_hex == "0x" + leaf_hash(entries[0]).hex()

    def test_same_address_different_amount_is_not_a_duplicate(self):
        builder = build([WhitelistEntry.of(ALICE, 5), WhitelistEntry.of(ALICE, 6)])
        assert builder.leaf_count == 2

    def test_build_is_idempotent(self, three_entries):
        builder = StandardMerkleTreeBuilder(three_entries)
        assert builder.build() == builder.build() == builder.root_hex

    def test_of_builds_from_raw_values(self):
        builder = StandardMerkleTreeBuilder.of([(ALICE, 1000), (BOB, 1000), (CAROL, 1000)])
        expected = build([WhitelistEntry.of(a, 1000) for a in (ALICE, BOB, CAROL)])
        assert builder.root == expected.root

    def test_custom_leaf_encoding(self):
        builder = StandardMerkleTreeBuilder.of(
            [(ALICE, 1, True), (BOB, 2, False)],
            leaf_encoding=("address", "uint96", "bool"),
        )
        assert builder.leaf_count == 2
        assert builder.config.leaf_encoding == ("address", "uint96", "bool")

    def test_mismatched_entry_encoding(self):
        entry = WhitelistEntry((ALICE,), ("address",))
        with pytest.raises(InvalidEntry):
            StandardMerkleTreeBuilder([entry]).build()


class TestAccessors:
    def test_requires_build(self, three_entries):
        builder = StandardMerkleTreeBuilder(three_entries)
        with pytest.raises(TreeNotBuilt):
            builder.root
        with pytest.raises(TreeNotBuilt):
            builder.generate_proof(0)
        with pytest.raises(TreeNotBuilt):
            builder.generate_multiproof([0])
        assert "not built" in repr(builder)

    def test_leaf_lookup(self, three_entries):
        builder = build(three_entries)
        for index, entry in builder.entries():
            assert builder.leaf_lookup(entry) == index
        assert builder.leaf_lookup((CAROL.lower(), 1000)) == builder.leaf_lookup(three_entries[2])

    def test_leaf_lookup_missing_entry(self, three_entries):
        builder = build(three_entries)
        with pytest.raises(EntryNotFound):
            builder.leaf_lookup(WhitelistEntry.of(DAVE, 1000))
        with pytest.raises(EntryNotFound):
            builder.get_proof((ALICE, 999))

    @pytest.mark.parametrize("index", [-1, 3, 100, True, 1.0, "0"])
    def test_index_out_of_range(self, three_entries, index):
        builder = build(three_entries)
        with pytest.raises(IndexOutOfRange):
            builder.generate_proof(index)

    def test_get_proof_by_entry_or_index(self, three_entries):
        builder = build(three_entries)
        index = builder.leaf_lookup(three_entries[1])
        assert builder.get_proof(three_entries[1]) == builder.get_proof(index)

    def test_render_lists_every_node(self, three_entries):
        builder = build(three_entries)
        text = builder.render()
        assert text.splitlines()[0] == "root:"
        assert builder.root_hex in text
        for leaf in builder.ordered_leaves:
            assert "0x" + leaf.hex() in text


class TestValidation:
    def test_built_tree_validates(self, make_entries):
        assert build(make_entries(7)).validate() is True

    def test_tampered_node_detected(self, make_entries):
        builder = build(make_entries(4))
        layers = list(builder.layers)
        layers[1] = (b"\x00" * 32,) + layers[1][1:]
        builder.layers = tuple(layers)
        with pytest.raises(InvalidTree):
            builder.validate()

    def test_tampered_entry_detected(self, three_entries):
        builder = build(three_entries)
        builder.ordered_entries = (WhitelistEntry.of(DAVE, 1),) + builder.ordered_entries[1:]
        with pytest.raises(InvalidTree):
            builder.validate()


class TestParallelHashing:
    def test_thread_pool_gives_the_same_root(self, make_entries):
        entries = make_entries(37)
        sequential = build(entries)

        enable_parallel_hashing(max_workers=4, parallel_threshold=2)
        parallel = build(entries)

        assert parallel.layers == sequential.layers

    def test_explicit_config(self, make_entries):
        entries = make_entries(10)
        config = TreeConfig(parallel_hashing=True, max_workers=2, parallel_threshold=2)
        assert build(entries, config=config).root == build(entries).root

    def test_build_levels_matches_pairwise_hashing(self):
        leaves = [bytes([i]) * 32 for i in range(1, 4)]
        levels = build_levels(leaves)
        assert levels[-1] == (hash_pair(hash_pair(leaves[0], leaves[1]), leaves[2]),)

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            TreeConfig(max_workers=0)
        with pytest.raises(ValueError):
            TreeConfig(parallel_threshold=1)


def test_three_account_airdrop(three_entries):
    builder = build(three_entries)

    for index, entry in builder.entries():
        assert verify(entry, builder.generate_proof(index), builder.root)

    bob_proof = builder.get_proof(WhitelistEntry.of(BOB, 1000))
    assert verify((BOB, 1000), bob_proof, builder.root_hex)
    assert not verify((BOB, 999), bob_proof, builder.root_hex)


# Three-account airdrop with its root as computed by OpenZeppelin StandardMerkleTree
AIRDROP_WHITELIST = [
    ("0x328809Bc894f92807417D2dAD6b7C998c1aFdac6".lower(), 1000 * 10 ** 18),
    ("0x1D96F2f6BeF1202E4Ce1Ff6Dad0c2CB002861d3e".lower(), 1000 * 10 ** 18),
    ("0xea475d60c118d7058beF4bDd9c32bA51139a74e0".lower(), 1000 * 10 ** 18),
]
AIRDROP_ROOT = "0x09d4267a42b2b82ffc3599f877a3305637af8394f4d19ffb1fafdc9ab482c47b"


def test_known_airdrop_root():
    builder = StandardMerkleTreeBuilder.of(AIRDROP_WHITELIST)
    assert builder.root_hex == AIRDROP_ROOT

    for value in AIRDROP_WHITELIST:
        assert verify(value, builder.get_proof(value), AIRDROP_ROOT)


def test_changing_any_field_changes_the_root(three_entries):
    root = build(three_entries).root

    for i, entry in enumerate(three_entries):
        changed_address = WhitelistEntry.of(DAVE, entry.amount)
        changed_amount = WhitelistEntry.of(entry.address, entry.amount + 1)
        for replacement in (changed_address, changed_amount):
            entries = list(three_entries)
            entries[i] = replacement
            assert build(entries).root != root
