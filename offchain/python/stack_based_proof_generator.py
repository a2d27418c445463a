"""
Generate multiproofs directly from the tree levels using depth-first traversal.

The key insight: stack-based verification can only merge the top two elements.
We need to traverse the tree such that when we want to merge two values,
they are both at the top of the stack.

This requires a depth-first post-order traversal where we fully process
left and right subtrees before processing the parent. A promoted node (the
lone last node of an odd level) is the same digest as its only child, so the
traversal passes straight through it without a merge step.
"""

from basic_data_structure import MerkleMultiproof
from merkle_errors import EmptyIndexSet, IndexOutOfRange


def check_leaf_index(index, leaf_count):
    """Return index if it is a valid sorted-leaf position."""
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < leaf_count:
        raise IndexOutOfRange(index, leaf_count)
    return index


def generate_multiproof(levels, leaf_indices):
    """
    Generate a multiproof for several leaves.

    Args:
        levels: Tree levels, level 0 = sorted leaves, last level = [root]
        leaf_indices: Sorted-leaf positions to prove (duplicates collapse)

    Returns:
        MerkleMultiproof with the replay inputs and the push/merge flags
    """
    leaf_indices = list(leaf_indices)
    if not leaf_indices:
        raise EmptyIndexSet("Cannot build a multiproof for an empty index set")

    leaf_count = len(levels[0])
    indices = sorted({check_leaf_index(i, leaf_count) for i in leaf_indices})

    # Step 1: Mark every node on a path from a requested leaf to the root
    needed = [set(indices)]
    for _ in range(1, len(levels)):
        needed.append({pos // 2 for pos in needed[-1]})

    # Step 2: Post-order traversal emitting pushes and merges
    inputs = []
    flags = []  # True = push next input, False = merge top two

    def traverse(level, pos):
        if level == 0:
            inputs.append(levels[0][pos])
            flags.append(True)
            return

        below = levels[level - 1]
        left, right = 2 * pos, 2 * pos + 1

        if right >= len(below):
            # Promoted lone node: nothing to hash at this level
            traverse(level - 1, left)
            return

        for child in (left, right):
            if child in needed[level - 1]:
                traverse(level - 1, child)
            else:
                # Sibling outside the proven subtree: push its digest
                inputs.append(below[child])
                flags.append(True)
        flags.append(False)

    traverse(len(levels) - 1, 0)

    return MerkleMultiproof(
        leaves=tuple(levels[0][i] for i in indices),
        leaf_indices=tuple(indices),
        inputs=tuple(inputs),
        proof_flags=tuple(flags),
    )


def encode_bitmap(operations):
    """Convert list of operations (True=push, False=merge) to bitmap format."""
    bitmap = []
    current_word = 0
    bit_position = 0

    for op in operations:
        if op:
            current_word |= (1 << bit_position)
        bit_position += 1

        if bit_position == 256:
            bitmap.append(current_word)
            current_word = 0
            bit_position = 0

    if bit_position > 0:
        bitmap.append(current_word)

    return bitmap


def decode_bitmap(bitmap, length):
    """Inverse of encode_bitmap; length is the number of flags packed."""
    if length < 0 or length > len(bitmap) * 256:
        raise ValueError(f"Bitmap of {len(bitmap)} words cannot hold {length} flags")
    return [bool((bitmap[i // 256] >> (i % 256)) & 1) for i in range(length)]
