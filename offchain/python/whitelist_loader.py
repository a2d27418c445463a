"""
Whitelist Loader

Reads airdrop whitelists from disk and turns them into WhitelistEntry objects:
1. Text files: one "address amount" record per line
2. JSON files: [{"address": ..., "amount": ...}] or [[address, amount]]

Amounts are human decimal strings (e.g. "1,000.5") scaled to integer base
units with exact decimal arithmetic; nothing is ever rounded.
"""

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path

from eth_utils import is_hex_address, to_checksum_address

from basic_data_structure import WhitelistEntry
from merkle_errors import InvalidEntry

DEFAULT_DECIMALS = 18
MAX_UINT256_DIGITS = len(str(2 ** 256 - 1))


def _shown(amount):
    if isinstance(amount, int) and amount.bit_length() > 256:
        return f"<{amount.bit_length()}-bit integer>"
    return repr(amount)


class WhitelistFormatError(InvalidEntry):
    """A whitelist record could not be parsed."""

    def __init__(self, message, location=None):
        self.location = location
        super().__init__(f"{location}: {message}" if location else message)


def normalize_address(address):
    """Trim, add a missing 0x prefix and return the checksum address."""
    if not isinstance(address, str):
        raise WhitelistFormatError(f"Address must be a string, got {type(address).__name__}")
    address = address.strip()
    if not address.lower().startswith("0x"):
        address = "0x" + address
    address = "0x" + address[2:]
    if not is_hex_address(address):
        raise WhitelistFormatError(f"Invalid address: {address}")
    return to_checksum_address(address)


def to_base_units(amount, decimals=DEFAULT_DECIMALS):
    """
    Convert a decimal amount to integer base units.

    Args:
        amount: str, int or float; "," thousands separators are allowed in strings
        decimals: Token decimals, the scale factor is 10**decimals

    Returns:
        Non-negative int
    """
    if decimals < 0:
        raise WhitelistFormatError(f"decimals must be non-negative, got {decimals}")
    if isinstance(amount, bool):
        raise WhitelistFormatError(f"Invalid amount: {amount!r}")

    if isinstance(amount, int):
        value = Decimal(amount)
    else:
        if isinstance(amount, float):
            # repr gives the shortest decimal that round-trips
            amount = repr(amount)
        try:
            value = Decimal(str(amount).strip().replace(",", "").replace("_", ""))
        except InvalidOperation:
            raise WhitelistFormatError(f"Invalid amount: {amount!r}") from None

    if not value.is_finite():
        raise WhitelistFormatError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise WhitelistFormatError(f"Amount must not be negative: {_shown(amount)}")

    # Integer arithmetic on the decimal digits, so no context precision applies
    _, digits, exponent = value.as_tuple()
    digits = list(digits)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    if digits == [0]:
        return 0

    # uint256 holds at most 78 digits; reject before scaling huge exponents
    if value.adjusted() + decimals >= MAX_UINT256_DIGITS:
        raise WhitelistFormatError(
            f"Amount of about 10**{value.adjusted()} scaled by 10**{decimals} does not fit in uint256"
        )
    if exponent + decimals < 0:
        raise WhitelistFormatError(f"Amount {_shown(amount)} has more than {decimals} decimal places")

    return int("".join(map(str, digits))) * 10 ** (exponent + decimals)


def make_entry(address, amount, decimals=DEFAULT_DECIMALS, location=None):
    """Normalize one record into an (address, uint256) entry."""
    try:
        return WhitelistEntry.of(normalize_address(address), to_base_units(amount, decimals))
    except WhitelistFormatError as e:
        if location and not e.location:
            raise WhitelistFormatError(str(e), location) from None
        raise
    except InvalidEntry as e:
        raise WhitelistFormatError(str(e), location) from None


def parse_text_whitelist(text, decimals=DEFAULT_DECIMALS, source="<text>"):
    entries = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        fields = line.split()
        location = f"{source}:{line_no}"
        if len(fields) != 2:
            raise WhitelistFormatError(f"Expected 'address amount', got {line!r}", location)
        entries.append(make_entry(fields[0], fields[1], decimals, location))
    return entries


def parse_json_whitelist(data, decimals=DEFAULT_DECIMALS, source="<json>"):
    if not isinstance(data, list):
        raise WhitelistFormatError("Whitelist JSON must be an array", source)

    entries = []
    for i, record in enumerate(data):
        location = f"{source}[{i}]"
        if isinstance(record, dict):
            if "address" not in record or "amount" not in record:
                raise WhitelistFormatError("Record needs 'address' and 'amount'", location)
            address, amount = record["address"], record["amount"]
        elif isinstance(record, list) and len(record) == 2:
            address, amount = record
        else:
            raise WhitelistFormatError(f"Unsupported record: {record!r}", location)
        entries.append(make_entry(address, amount, decimals, location))
    return entries


def load_text_whitelist(path, decimals=DEFAULT_DECIMALS):
    path = Path(path)
    return parse_text_whitelist(path.read_text(encoding="utf-8"), decimals, str(path))


def load_json_whitelist(path, decimals=DEFAULT_DECIMALS):
    path = Path(path)
    with open(path, 'r', encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise WhitelistFormatError(f"Invalid JSON: {e}", str(path)) from None
    return parse_json_whitelist(data, decimals, str(path))


def load_whitelist(path, decimals=DEFAULT_DECIMALS):
    """Load a .json whitelist as JSON and anything else as text."""
    if Path(path).suffix.lower() == ".json":
        return load_json_whitelist(path, decimals)
    return load_text_whitelist(path, decimals)
