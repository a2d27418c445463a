"""
Canonical Leaf Encoder

Serializes one whitelist entry into the exact bytes Solidity's abi.encode
produces for a tuple of static types. Every field takes one 32-byte word, so
no bytes of one field can be read as part of its neighbour.

Supported types: address, bool, uint<M>, int<M> (M = 8..256, step 8) and
bytes<N> (N = 1..32). Dynamic types are not part of a leaf encoding.
"""

import re

from eth_utils import (
    decode_hex,
    is_checksum_address,
    is_hex,
    is_hex_address,
    to_canonical_address,
    to_checksum_address,
)

from merkle_errors import InvalidEntry

WORD_SIZE = 32
DEFAULT_LEAF_ENCODING = ("address", "uint256")

_TYPE_PATTERN = re.compile(r"^(address|bool|uint|int|bytes)(\d*)$")


def parse_abi_type(type_name):
    """Split an ABI type name into (base, size); raise InvalidEntry if unsupported."""
    match = _TYPE_PATTERN.match(type_name) if isinstance(type_name, str) else None
    if not match:
        raise InvalidEntry(f"Unsupported leaf type: {type_name!r}")

    base, digits = match.group(1), match.group(2)
    if base in ("address", "bool"):
        if digits:
            raise InvalidEntry(f"Unsupported leaf type: {type_name!r}")
        return base, 20 if base == "address" else 1

    if base in ("uint", "int"):
        bits = int(digits) if digits else 256
        if bits < 8 or bits > 256 or bits % 8 != 0:
            raise InvalidEntry(f"Invalid integer width in {type_name!r}")
        return base, bits

    # bytes<N>; plain "bytes" is dynamic
    if not digits:
        raise InvalidEntry("Dynamic 'bytes' cannot be part of a leaf encoding")
    size = int(digits)
    if size < 1 or size > 32:
        raise InvalidEntry(f"Invalid byte length in {type_name!r}")
    return base, size


def normalize_leaf_encoding(leaf_encoding):
    """Return the leaf encoding as a tuple of canonical type names (uint -> uint256)."""
    if isinstance(leaf_encoding, str) or not leaf_encoding:
        raise InvalidEntry("Leaf encoding must be a non-empty sequence of ABI type names")

    normalized = []
    for type_name in leaf_encoding:
        base, size = parse_abi_type(type_name)
        if base in ("uint", "int"):
            normalized.append(f"{base}{size}")
        else:
            normalized.append(type_name)
    return tuple(normalized)


def _canonical_address(value):
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise InvalidEntry(f"Address must be 20 bytes, got {len(value)}")
        return to_checksum_address(bytes(value))

    if not isinstance(value, str) or not value.startswith("0x") or not is_hex_address(value):
        raise InvalidEntry(f"Invalid address: {value!r}")

    body = value[2:]
    mixed_case = body != body.lower() and body != body.upper()
    if mixed_case and not is_checksum_address(value):
        raise InvalidEntry(f"Address has an invalid EIP-55 checksum: {value}")
    return to_checksum_address(value)


def _canonical_integer(value, base, bits, type_name):
    # bool is an int subclass but never a valid integer field
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidEntry(f"{type_name} field expects an integer, got {type(value).__name__}")

    if base == "uint":
        low, high = 0, 2 ** bits
    else:
        low, high = -(2 ** (bits - 1)), 2 ** (bits - 1)
    if not low <= value < high:
        raise InvalidEntry(f"Value of {value.bit_length()} bits does not fit in {type_name}")
    return value


def _canonical_fixed_bytes(value, size, type_name):
    if isinstance(value, str):
        if not value.startswith("0x") or not is_hex(value):
            raise InvalidEntry(f"{type_name} field expects 0x-prefixed hex, got {value!r}")
        value = decode_hex(value)
    if not isinstance(value, (bytes, bytearray)):
        raise InvalidEntry(f"{type_name} field expects bytes, got {type(value).__name__}")
    if len(value) != size:
        raise InvalidEntry(f"{type_name} field expects {size} bytes, got {len(value)}")
    return bytes(value)


def canonicalize_value(type_name, value):
    """Validate one field and return its canonical Python value."""
    base, size = parse_abi_type(type_name)

    if base == "address":
        return _canonical_address(value)
    if base == "bool":
        if not isinstance(value, bool):
            raise InvalidEntry(f"bool field expects True or False, got {value!r}")
        return value
    if base in ("uint", "int"):
        return _canonical_integer(value, base, size, type_name)
    return _canonical_fixed_bytes(value, size, type_name)


def canonicalize_values(leaf_encoding, values):
    """Validate a full value tuple against its leaf encoding."""
    leaf_encoding = normalize_leaf_encoding(leaf_encoding)
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise InvalidEntry(f"Entry values must be a list or tuple, got {type(values).__name__}")
    if len(values) != len(leaf_encoding):
        raise InvalidEntry(
            f"Entry has {len(values)} fields but the leaf encoding declares {len(leaf_encoding)}"
        )
    return tuple(canonicalize_value(t, v) for t, v in zip(leaf_encoding, values))


def encode_word(type_name, value):
    """Encode one canonical value as a 32-byte ABI word."""
    base, _ = parse_abi_type(type_name)

    if base == "address":
        return to_canonical_address(value).rjust(WORD_SIZE, b"\x00")
    if base == "bool":
        return int(value).to_bytes(WORD_SIZE, "big")
    if base == "uint":
        return value.to_bytes(WORD_SIZE, "big")
    if base == "int":
        return (value % 2 ** 256).to_bytes(WORD_SIZE, "big")
    return value.ljust(WORD_SIZE, b"\x00")


def encode_values(leaf_encoding, values) -> bytes:
    """abi.encode(values) for the given static leaf encoding."""
    leaf_encoding = normalize_leaf_encoding(leaf_encoding)
    canonical = canonicalize_values(leaf_encoding, values)
    return b"".join(encode_word(t, v) for t, v in zip(leaf_encoding, canonical))


def encode(entry) -> bytes:
    """Encode a WhitelistEntry (anything with leaf_encoding and values)."""
    return encode_values(entry.leaf_encoding, entry.values)
