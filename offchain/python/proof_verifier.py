"""
Proof Verification

Recomputes a root from a leaf and its proof without needing the tree. A proof
that does not match is an ordinary outcome, so every verifier here returns
False instead of raising; only malformed entries raise InvalidEntry.
"""

import hmac

from basic_data_structure import MerkleMultiproof, MerkleProof, WhitelistEntry
from merkle_errors import InvalidEntry
from tree_hashing import from_hex, hash_pair, leaf_hash


def _siblings(proof):
    if isinstance(proof, MerkleProof):
        return proof.siblings
    return [from_hex(p) for p in proof]


def _as_entry(entry, leaf_encoding=None):
    if isinstance(entry, WhitelistEntry):
        return entry
    if leaf_encoding is None:
        return WhitelistEntry(tuple(entry))
    return WhitelistEntry(tuple(entry), leaf_encoding)


def _digests_equal(a, b):
    return hmac.compare_digest(a, b)


def process_proof(leaf, proof):
    """Fold the proof siblings into the leaf, bottom to top."""
    computed = from_hex(leaf)
    for sibling in _siblings(proof):
        computed = hash_pair(computed, sibling)
    return computed


def verify_leaf(leaf, proof, root):
    """Check a leaf digest against a root."""
    try:
        return _digests_equal(process_proof(leaf, proof), from_hex(root))
    except InvalidEntry:
        return False


def verify(entry, proof, root, leaf_encoding=None):
    """
    Check that an entry is committed to by the root.

    Args:
        entry: WhitelistEntry or raw value tuple such as (address, amount)
        proof: MerkleProof or sequence of sibling digests (bytes or hex)
        root: Root digest (bytes or hex)
        leaf_encoding: ABI types for raw value tuples, defaults to (address, uint256)

    Returns:
        True if the proof rebuilds the root from the entry's leaf
    """
    return verify_leaf(leaf_hash(_as_entry(entry, leaf_encoding)), proof, root)


def process_multiproof(multiproof: MerkleMultiproof):
    """
    Replay the push/merge flags on a stack and return the rebuilt root.

    Raises ValueError if the flags do not form a valid program for the inputs.
    """
    inputs = iter(multiproof.inputs)
    stack = []
    pushes = 0

    for flag in multiproof.proof_flags:
        if flag:
            try:
                stack.append(from_hex(next(inputs)))
            except StopIteration:
                raise ValueError("Multiproof flags push more values than it provides") from None
            pushes += 1
        else:
            if len(stack) < 2:
                raise ValueError("Multiproof merges with fewer than two values on the stack")
            right = stack.pop()
            left = stack.pop()
            stack.append(hash_pair(left, right))

    if pushes != len(multiproof.inputs):
        raise ValueError("Multiproof leaves inputs unused")
    if len(stack) != 1:
        raise ValueError(f"Multiproof replay ends with {len(stack)} values instead of one root")
    return stack[0]


def verify_multiproof_leaves(leaves, multiproof, root):
    """Check leaf digests against a root using one multiproof."""
    try:
        leaves = [from_hex(leaf) for leaf in leaves]
        if not leaves:
            return False
        provided = {from_hex(h) for h in multiproof.inputs}
        if any(leaf not in provided for leaf in leaves):
            return False
        return _digests_equal(process_multiproof(multiproof), from_hex(root))
    except (InvalidEntry, ValueError):
        return False


def verify_multiproof(entries, multiproof, root, leaf_encoding=None):
    """
    Check that every entry is committed to by the root.

    Each entry's leaf must be one of the multiproof inputs; a leaf digest can
    only sit at a leaf position, since internal nodes hash 64-byte preimages.
    """
    leaves = [leaf_hash(_as_entry(e, leaf_encoding)) for e in entries]
    return verify_multiproof_leaves(leaves, multiproof, root)
