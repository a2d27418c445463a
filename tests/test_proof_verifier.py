import pytest

from basic_data_structure import WhitelistEntry
from conftest import ACCOUNTS, ALICE, DAVE
from merkle_errors import InvalidEntry
from proof_verifier import process_proof, verify, verify_leaf
from standard_tree_builder import StandardMerkleTreeBuilder
from tree_hashing import from_hex, to_hex


def flip_bit(digest, bit=0):
    return bytes([digest[0] ^ (1 << bit)]) + digest[1:]


@pytest.fixture(params=[1, 2, 3, 4, 5, 8, 13])
def tree(request, make_entries):
    builder = StandardMerkleTreeBuilder(make_entries(request.param))
    builder.build()
    return builder


def test_every_entry_verifies(tree):
    for index, entry in tree.entries():
        proof = tree.generate_proof(index)
        assert process_proof(proof.leaf, proof) == tree.root
        assert verify(entry, proof, tree.root)


def test_proof_length_bounded_by_height(tree):
    for index, _ in tree.entries():
        assert len(tree.generate_proof(index)) <= len(tree.layers) - 1


def test_hex_proof_and_root(tree):
    for index, entry in tree.entries():
        proof = tree.generate_proof(index)
        assert verify(entry, proof.hex_siblings(), tree.root_hex)
        assert verify(entry.values, [s.hex() for s in proof.siblings], tree.root_hex[2:])


def test_wrong_amount_fails(tree):
    proof = tree.generate_proof(0)
    entry = tree.ordered_entries[0]
    assert not verify(WhitelistEntry.of(entry.address, entry.amount + 1), proof, tree.root)


def test_unknown_account_fails(tree):
    proof = tree.generate_proof(0)
    assert not verify(WhitelistEntry.of(DAVE, 10 ** 18), proof, tree.root)


def test_tampered_sibling_fails(make_entries):
    builder = StandardMerkleTreeBuilder(make_entries(6))
    builder.build()
    proof = builder.generate_proof(2)
    entry = builder.ordered_entries[2]

    for i in range(len(proof.siblings)):
        siblings = list(proof.siblings)
        siblings[i] = flip_bit(siblings[i])
        assert not verify(entry, siblings, builder.root)


def test_tampered_root_fails(three_entries):
    builder = StandardMerkleTreeBuilder(three_entries)
    builder.build()
    proof = builder.generate_proof(1)
    assert not verify(builder.ordered_entries[1], proof, flip_bit(builder.root, 7))


def test_proof_from_another_tree_fails(make_entries):
    small = StandardMerkleTreeBuilder(make_entries(4))
    large = StandardMerkleTreeBuilder(make_entries(8))
    small.build()
    large.build()
    entry = small.ordered_entries[0]
    assert not verify(entry, small.get_proof(entry), large.root)


def test_dropped_sibling_fails(make_entries):
    builder = StandardMerkleTreeBuilder(make_entries(8))
    builder.build()
    proof = builder.generate_proof(3)
    assert not verify(builder.ordered_entries[3], proof.siblings[:-1], builder.root)


def test_internal_node_is_not_a_leaf(make_entries):
    builder = StandardMerkleTreeBuilder(make_entries(4))
    builder.build()
    node = builder.layers[1][0]
    # Presenting a level-1 node as a leaf with the level-1 sibling does reach
    # the root, so leaf digests must never be taken on trust from the caller
    assert verify_leaf(node, [builder.layers[1][1]], builder.root)
    assert not any(leaf == node for leaf in builder.ordered_leaves)


@pytest.mark.parametrize("root", ["0x1234", "not hex", b"\x00" * 31, None])
def test_malformed_root_is_rejected(three_entries, root):
    builder = StandardMerkleTreeBuilder(three_entries)
    builder.build()
    assert not verify(builder.ordered_entries[0], builder.generate_proof(0), root)


def test_malformed_sibling_is_rejected(three_entries):
    builder = StandardMerkleTreeBuilder(three_entries)
    builder.build()
    assert not verify(builder.ordered_entries[0], ["0xabc"], builder.root)


def test_invalid_entry_raises():
    with pytest.raises(InvalidEntry):
        verify(("0x1234", 1), [], b"\x00" * 32)


def test_custom_encoding_entries():
    values = [(a, i, i % 2 == 0) for i, a in enumerate(ACCOUNTS)]
    encoding = ("address", "uint128", "bool")
    builder = StandardMerkleTreeBuilder.of(values, leaf_encoding=encoding)

    for value in values:
        proof = builder.get_proof(value)
        assert verify(value, proof, builder.root, leaf_encoding=encoding)
    assert not verify((ALICE, 0, False), builder.get_proof(values[0]), builder.root, leaf_encoding=encoding)


def test_hex_round_trip():
    digest = bytes(range(32))
    assert from_hex(to_hex(digest)) == digest
    assert from_hex(to_hex(digest).upper().replace("0X", "0x")) == digest
